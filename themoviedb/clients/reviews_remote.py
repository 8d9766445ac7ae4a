import logging
from abc import ABC, abstractmethod
from typing import List

import httpx
from pydantic import TypeAdapter, ValidationError

from ..schemas.review import MyReviewDto, ReviewDraft, ReviewDto
from ..util.result import Error, Result, Success

logger = logging.getLogger(__name__)

_review_list = TypeAdapter(List[ReviewDto])


class ReviewsRemoteSource(ABC):
    @abstractmethod
    async def get_movie_reviews(self, movie_id: int) -> Result[List[ReviewDto], Exception]:
        """All reviews of a movie, by any author."""

    @abstractmethod
    async def get_my_reviews(self, user_id: str) -> Result[List[MyReviewDto], Exception]:
        ...

    @abstractmethod
    async def add_review(
        self, draft: ReviewDraft, author_id: str, author_email: str
    ) -> Result[MyReviewDto, Exception]:
        """Submit *draft*; the backend assigns the id and timestamp."""


class HttpReviewsRemoteSource(ReviewsRemoteSource):
    """REST reviews backend.

    GET  /movies/{movie_id}/reviews
    GET  /users/{user_id}/reviews
    POST /reviews
    """

    def __init__(self, client: httpx.AsyncClient, api_url: str):
        self.client = client
        self.api_url = api_url.rstrip("/")

    async def _fetch_list(self, path: str) -> List[ReviewDto]:
        response = await self.client.get(f"{self.api_url}{path}")
        response.raise_for_status()
        return _review_list.validate_json(response.content)

    async def get_movie_reviews(self, movie_id: int) -> Result[List[ReviewDto], Exception]:
        try:
            reviews = await self._fetch_list(f"/movies/{movie_id}/reviews")
        except (httpx.HTTPError, ValidationError) as e:
            logger.warning("Fetching movie reviews failed", extra={"movie_id": movie_id, "error": repr(e)})
            return Error(e)
        return Success(reviews)

    async def get_my_reviews(self, user_id: str) -> Result[List[MyReviewDto], Exception]:
        try:
            reviews = await self._fetch_list(f"/users/{user_id}/reviews")
        except (httpx.HTTPError, ValidationError) as e:
            logger.warning("Fetching user reviews failed", extra={"user_id": user_id, "error": repr(e)})
            return Error(e)
        return Success(reviews)

    async def add_review(
        self, draft: ReviewDraft, author_id: str, author_email: str
    ) -> Result[MyReviewDto, Exception]:
        body = {
            **draft.model_dump(),
            "author_id": author_id,
            "author_email": author_email,
        }
        try:
            response = await self.client.post(f"{self.api_url}/reviews", json=body)
            response.raise_for_status()
            review = MyReviewDto.model_validate_json(response.content)
        except (httpx.HTTPError, ValidationError) as e:
            logger.warning("Submitting review failed", extra={"movie_id": draft.movie_id, "error": repr(e)})
            return Error(e)
        return Success(review)
