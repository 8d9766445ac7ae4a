import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock

from themoviedb.clients.movies_remote import MoviesRemoteSource
from themoviedb.clients.reviews_remote import ReviewsRemoteSource
from themoviedb.repositories.movies_repository import MoviesRepository
from themoviedb.schemas.user import User

from tests.factories import IMAGE_BASE_URL, InMemoryMovieStore, InMemoryMyReviewStore


@pytest.fixture
def viewer():
    return User(id="viewer", email="viewer@example.com")


@pytest.fixture
def mock_movies_remote():
    return AsyncMock(spec=MoviesRemoteSource)


@pytest.fixture
def mock_reviews_remote():
    return AsyncMock(spec=ReviewsRemoteSource)


@pytest.fixture
def movie_store():
    return InMemoryMovieStore()


@pytest.fixture
def review_store():
    return InMemoryMyReviewStore()


@pytest.fixture
def reported_errors():
    return []


@pytest.fixture
def repository(mock_movies_remote, movie_store, mock_reviews_remote, review_store, reported_errors):
    return MoviesRepository(
        movies_remote=mock_movies_remote,
        movie_store=movie_store,
        reviews_remote=mock_reviews_remote,
        review_store=review_store,
        image_base_url=IMAGE_BASE_URL,
        error_reporter=lambda message, cause: reported_errors.append((message, cause)),
    )


@pytest_asyncio.fixture
async def client(repository, viewer):
    from themoviedb.main import app
    from themoviedb.dependencies import get_current_user, get_movies_repository
    from themoviedb.limiter import limiter

    # Override dependencies
    app.dependency_overrides[get_movies_repository] = lambda: repository
    app.dependency_overrides[get_current_user] = lambda: viewer

    transport = ASGITransport(app=app)
    limiter.enabled = False
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    limiter.enabled = True

    app.dependency_overrides = {}
