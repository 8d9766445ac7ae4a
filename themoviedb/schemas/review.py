from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional

ReviewId = int


class Review(BaseModel):
    id: ReviewId
    author_id: str
    author_email: str
    movie_id: int
    rating: int
    text: str = ""
    created_at: datetime


class MyReviewRecord(BaseModel):
    """The viewer's own review, as kept in the local review store"""
    review: Review

    @property
    def movie_id(self) -> int:
        return self.review.movie_id


class SomeoneReview(BaseModel):
    """A review by any user; remote-only, never stored locally"""
    review: Review

    @property
    def author(self) -> str:
        return self.review.author_email


class ReviewDraft(BaseModel):
    """Review text as typed by the viewer, before the backend assigns an id"""
    movie_id: int
    rating: int = Field(..., ge=1, le=5)
    text: str = Field("", max_length=5000)


class ReviewDto(BaseModel):
    """Reviews backend wire format (all reviews of a movie and a user's own reviews)"""
    id: ReviewId
    author_id: str
    author_email: str
    movie_id: int
    rating: int
    text: Optional[str] = None
    created_at: datetime

    def to_review(self) -> Review:
        return Review(
            id=self.id,
            author_id=self.author_id,
            author_email=self.author_email,
            movie_id=self.movie_id,
            rating=self.rating,
            text=self.text or "",
            created_at=self.created_at,
        )

    def to_my_review(self) -> MyReviewRecord:
        return MyReviewRecord(review=self.to_review())

    def to_someone_review(self) -> SomeoneReview:
        return SomeoneReview(review=self.to_review())


# Same wire shape; kept as a separate name where the endpoint returns the
# viewer's own reviews.
MyReviewDto = ReviewDto
