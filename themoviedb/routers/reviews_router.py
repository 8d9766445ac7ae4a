from fastapi import APIRouter, Depends, Request, Response, status

from ..dependencies import get_current_user, get_movies_repository
from ..limiter import limiter
from ..repositories.movies_repository import MoviesRepository
from ..schemas.review import ReviewDraft
from ..schemas.user import User
from .movies_router import unwrap

router = APIRouter()


@router.post("/api/reviews", status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def add_review(
    draft: ReviewDraft,
    request: Request,  # Required for limiter
    user: User = Depends(get_current_user),
    repo: MoviesRepository = Depends(get_movies_repository)
):
    """Submit a review; it is stored locally once the backend accepted it"""
    unwrap(await repo.add_review(draft, author_id=user.id, author_email=user.email))
    return {"status": "created", "movie_id": draft.movie_id}


@router.post("/api/reviews/sync", status_code=status.HTTP_202_ACCEPTED)
async def sync_reviews(
    user: User = Depends(get_current_user),
    repo: MoviesRepository = Depends(get_movies_repository)
):
    """
    Pull the viewer's reviews into the local store and warm the movie cache.
    Best effort: a failed sync is logged, the response is the same.
    """
    await repo.get_reviews_for_user(user.id)
    return {"status": "accepted"}


@router.delete("/api/reviews", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reviews(
    repo: MoviesRepository = Depends(get_movies_repository)
):
    """Forget the viewer's local reviews (logout)"""
    await repo.delete_user_reviews()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
