from pydantic import BaseModel, Field
from typing import List, Optional

from .review import MyReviewRecord, SomeoneReview

MovieId = int


class GenreDto(BaseModel):
    id: int
    name: str


class MovieDto(BaseModel):
    """TMDB movie as returned by both /search/movie and /movie/{id}.

    Search hits carry `genre_ids` only and no `runtime`; detail responses
    carry full `genres` and `runtime`.
    """
    id: MovieId
    title: str = ""
    release_date: Optional[str] = None
    overview: Optional[str] = None
    genres: List[GenreDto] = Field(default_factory=list)
    genre_ids: List[int] = Field(default_factory=list)
    vote_average: float = 0.0
    poster_path: Optional[str] = None
    runtime: Optional[int] = None

    def to_record(self, image_base_url: str) -> "MovieRecord":
        duration = self.runtime or 0
        return MovieRecord(
            id=self.id,
            title=self.title,
            release_date=self.release_date or "",
            overview=self.overview or "",
            genres=", ".join(genre.name for genre in self.genres),
            rating=self.vote_average,
            poster_url=f"{image_base_url}{self.poster_path}" if self.poster_path else "",
            duration=duration,
            is_fully_loaded=duration > 0,
        )


class SearchMovieDtoPage(BaseModel):
    page: int = 1
    results: List[MovieDto] = Field(default_factory=list)
    total_pages: int = 1


class SearchMovieRecord(BaseModel):
    """Search-result projection of a cached movie"""
    id: MovieId
    title: str
    release_date: str = ""
    poster_url: str = ""
    rating: float = 0.0


class MovieRecord(BaseModel):
    """Cached movie. Stub records (from search) have is_fully_loaded=False."""
    id: MovieId
    title: str
    release_date: str = ""
    overview: str = ""
    genres: str = ""
    rating: float = 0.0
    poster_url: str = ""
    duration: int = 0  # minutes
    is_fully_loaded: bool = False

    def to_search_movie(self) -> SearchMovieRecord:
        return SearchMovieRecord(
            id=self.id,
            title=self.title,
            release_date=self.release_date,
            poster_url=self.poster_url,
            rating=self.rating,
        )


class MovieWithReviews(BaseModel):
    movie: MovieRecord
    my_review: Optional[MyReviewRecord] = None
    someone_else_reviews: List[SomeoneReview] = Field(default_factory=list)

    @classmethod
    def merge(
        cls,
        movie: MovieRecord,
        all_reviews: List[SomeoneReview],
        my_review: Optional[MyReviewRecord],
    ) -> "MovieWithReviews":
        """Combine the three sources; the viewer's own review is never listed twice."""
        my_review_id = my_review.review.id if my_review else None
        return cls(
            movie=movie,
            my_review=my_review,
            someone_else_reviews=[r for r in all_reviews if r.review.id != my_review_id],
        )


class SearchMovieWithMyReview(BaseModel):
    movie: SearchMovieRecord
    my_review: Optional[MyReviewRecord] = None
