import asyncpg
import httpx
import redis.asyncio as redis
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from .config import settings
from .clients.movies_remote import TmdbMoviesRemoteSource
from .clients.reviews_remote import HttpReviewsRemoteSource
from .core.security import InvalidTokenError, decode_access_token
from .models.review import create_schema
from .repositories.movies_repository import MoviesRepository
from .schemas.user import User
from .stores.movie_store import RedisMovieStore
from .stores.review_store import PostgresMyReviewStore, ReviewChangeNotifier


# Global state for connections
class AppState:
    pg_pool: asyncpg.Pool = None
    redis_client: redis.Redis = None
    http_client: httpx.AsyncClient = None
    review_notifier: ReviewChangeNotifier = None


state = AppState()


async def init_resources():
    """Initialize all resources"""
    state.pg_pool = await asyncpg.create_pool(
        settings.DATABASE_URL,
        min_size=2,
        max_size=10,
        command_timeout=60
    )
    await create_schema(state.pg_pool)

    state.redis_client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True
    )

    state.http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    state.review_notifier = ReviewChangeNotifier()


async def close_resources():
    """Close all resources"""
    if state.http_client:
        await state.http_client.aclose()
    if state.redis_client:
        await state.redis_client.aclose()
    if state.pg_pool:
        await state.pg_pool.close()


# Dependencies
async def get_db_pool() -> asyncpg.Pool:
    return state.pg_pool


async def get_redis() -> redis.Redis:
    return state.redis_client


async def get_http_client() -> httpx.AsyncClient:
    return state.http_client


async def get_review_notifier() -> ReviewChangeNotifier:
    return state.review_notifier


# Auth Dependencies
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token")


async def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    try:
        return decode_access_token(token)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_movies_repository(
    db = Depends(get_db_pool),
    redis_client = Depends(get_redis),
    http_client = Depends(get_http_client),
    notifier = Depends(get_review_notifier),
    user: User = Depends(get_current_user),
) -> MoviesRepository:
    return MoviesRepository(
        movies_remote=TmdbMoviesRemoteSource(
            http_client,
            api_url=settings.TMDB_API_URL,
            api_key=settings.TMDB_API_KEY,
            language=settings.TMDB_LANGUAGE,
        ),
        movie_store=RedisMovieStore(redis_client, ttl_seconds=settings.MOVIE_CACHE_TTL_SECONDS),
        reviews_remote=HttpReviewsRemoteSource(http_client, api_url=settings.REVIEWS_API_URL),
        review_store=PostgresMyReviewStore(db, owner_id=user.id, notifier=notifier),
        image_base_url=settings.TMDB_IMAGE_BASE_URL,
    )
