from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from typing import List

from ..dependencies import get_movies_repository
from ..exceptions import CouldNotLoadError
from ..limiter import limiter
from ..repositories.movies_repository import MoviesRepository
from ..schemas.movie import MovieRecord, MovieWithReviews, SearchMovieWithMyReview
from ..util.result import Error, Success

router = APIRouter()


def unwrap(result):
    """Value of a Success; any Error becomes a generic 'could not load'."""
    match result:
        case Success(value):
            return value
        case Error(cause):
            raise CouldNotLoadError(cause)


@router.get("/api/movies/search", response_model=List[SearchMovieWithMyReview])
@limiter.limit("30/minute")
async def search_movies(
    request: Request,  # Required for limiter
    query: str = Query(..., min_length=1, max_length=200),
    page: int = Query(1, ge=1, le=500),
    repo: MoviesRepository = Depends(get_movies_repository)
):
    """
    Search movies; each hit carries the viewer's own review if there is one
    """
    return unwrap(await repo.search_movies_with_reviews(query, page))


@router.get("/api/movies/{movie_id}", response_model=MovieRecord)
async def get_movie_details(
    movie_id: int,
    repo: MoviesRepository = Depends(get_movies_repository)
):
    return unwrap(await repo.get_movie_details(movie_id))


@router.get("/api/movies/{movie_id}/reviews", response_model=MovieWithReviews)
async def get_movie_details_with_reviews(
    movie_id: int,
    repo: MoviesRepository = Depends(get_movies_repository)
):
    """
    Movie details, the viewer's own review and everyone else's reviews
    """
    return unwrap(await repo.get_movie_details_with_reviews(movie_id))


@router.get("/api/movies/{movie_id}/reviews/stream")
async def stream_movie_details_with_reviews(
    movie_id: int,
    request: Request,
    repo: MoviesRepository = Depends(get_movies_repository)
):
    """
    Server-Sent Events: a MovieWithReviews now and after every change of
    the viewer's own review. A failed load sends one `error` event and ends.
    """
    subscription = repo.observe_movie_details_with_reviews(movie_id)

    async def event_stream():
        async with subscription:
            async for result in subscription:
                if await request.is_disconnected():
                    break
                match result:
                    case Success(value):
                        yield f"data: {value.model_dump_json()}\n\n"
                    case Error():
                        yield 'event: error\ndata: {"error": "Could not load"}\n\n'

    return StreamingResponse(event_stream(), media_type="text/event-stream")
