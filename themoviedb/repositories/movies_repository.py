import asyncio
import logging
from contextlib import aclosing
from typing import AsyncIterator, Callable, Dict, Iterable, List, Tuple

from ..clients.movies_remote import MoviesRemoteSource
from ..clients.reviews_remote import ReviewsRemoteSource
from ..schemas.movie import (
    MovieId,
    MovieRecord,
    MovieWithReviews,
    SearchMovieRecord,
    SearchMovieWithMyReview,
)
from ..schemas.review import MyReviewRecord, ReviewDraft, SomeoneReview
from ..stores.movie_store import MovieLocalStore
from ..stores.review_store import MyReviewLocalStore
from ..util.result import (
    Error,
    Result,
    Success,
    VoidResult,
    to_success_or_error_list,
)
from ..util.subscription import Subscription

logger = logging.getLogger(__name__)

# Receives failures that an operation handles without returning them
ErrorReporter = Callable[[str, object], None]


def log_error(message: str, cause: object) -> None:
    exc_info = cause if isinstance(cause, BaseException) else None
    logger.error(message, extra={"cause": repr(cause)}, exc_info=exc_info)


class MoviesRepository:
    """
    Movies and reviews for one viewer, merged from three sources:
    1. the local movie cache (filled from remote on miss or stub)
    2. remote reviews of a movie, by anyone
    3. the viewer's own reviews in the local review store

    Local stores are written only after, and because of, a successful remote
    call. Store failures are not turned into Error results; they propagate.
    """

    def __init__(
        self,
        movies_remote: MoviesRemoteSource,
        movie_store: MovieLocalStore,
        reviews_remote: ReviewsRemoteSource,
        review_store: MyReviewLocalStore,
        image_base_url: str,
        error_reporter: ErrorReporter = log_error,
    ):
        self.movies_remote = movies_remote
        self.movie_store = movie_store
        self.reviews_remote = reviews_remote
        self.review_store = review_store
        self.image_base_url = image_base_url
        self.error_reporter = error_reporter

    # ───────────────────────────── search ──────────────────────────
    async def search_movies_with_reviews(
        self, query: str, page: int = 1
    ) -> Result[List[SearchMovieWithMyReview], Exception]:
        """Search remote, cache the hits as stub records, attach own reviews."""
        movies = await self._search_movies(query, page)
        return await movies.amap_success(self._fill_search_movies_with_my_reviews)

    async def _search_movies(self, query: str, page: int) -> Result[List[SearchMovieRecord], Exception]:
        result = await self.movies_remote.search_movies(query, page)
        records = result.map_success(lambda dtos: [dto.to_record(self.image_base_url) for dto in dtos])
        records = await records.do_on_success(self.movie_store.insert_all)
        return records.map_success(lambda entries: [record.to_search_movie() for record in entries])

    async def _fill_search_movies_with_my_reviews(
        self, movies: List[SearchMovieRecord]
    ) -> List[SearchMovieWithMyReview]:
        my_reviews = await self._get_my_reviews_for_movies([movie.id for movie in movies])
        return [
            SearchMovieWithMyReview(movie=movie, my_review=my_reviews.get(movie.id))
            for movie in movies
        ]

    async def _get_my_reviews_for_movies(self, movie_ids: List[MovieId]) -> Dict[MovieId, MyReviewRecord]:
        if not movie_ids:
            return {}
        reviews = await self.review_store.get_by_movie_ids(movie_ids)
        return {review.movie_id: review for review in reviews}

    # ───────────────────────────── details ──────────────────────────
    async def get_movie_details(self, movie_id: MovieId) -> Result[MovieRecord, Exception]:
        """Cached record if it is fully loaded, otherwise fetch and cache it."""
        cached = await self.movie_store.get_by_id(movie_id)
        if cached is not None and cached.is_fully_loaded:
            return Success(cached)
        return await self._load_movie_details_from_remote_and_store(movie_id)

    async def _load_movie_details_from_remote_and_store(self, movie_id: MovieId) -> Result[MovieRecord, Exception]:
        result = await self.movies_remote.get_movie_details(movie_id)
        record = result.map_success(lambda dto: dto.to_record(self.image_base_url))
        return await record.do_on_success(self.movie_store.insert)

    async def get_movie_details_list(
        self, movie_ids: Iterable[MovieId]
    ) -> Result[List[MovieRecord], List[Exception]]:
        """Concurrent `get_movie_details` for every id; all values or all causes."""
        async with asyncio.TaskGroup() as tg:
            calls = [tg.create_task(self.get_movie_details(movie_id)) for movie_id in movie_ids]
        return to_success_or_error_list(call.result() for call in calls)

    # ───────────────────────────── details + reviews ──────────────────────────
    async def get_movie_details_with_reviews(self, movie_id: MovieId) -> Result[MovieWithReviews, Exception]:
        """
        Fan out three reads and join them:
        1. remote reviews of the movie
        2. movie details (cache or remote)
        3. the viewer's own review
        Details are unwrapped first, so their failure wins over a reviews failure.
        """
        async with asyncio.TaskGroup() as tg:
            all_reviews_call = tg.create_task(self._get_someone_reviews(movie_id))
            details_call = tg.create_task(self.get_movie_details(movie_id))
            my_review_call = tg.create_task(self.review_store.get_by_movie_id(movie_id))

        all_reviews = all_reviews_call.result()
        my_review = my_review_call.result()
        return details_call.result().map_nested_success(
            lambda movie: all_reviews.map_success(
                lambda reviews: MovieWithReviews.merge(movie, reviews, my_review)
            )
        )

    def observe_movie_details_with_reviews(self, movie_id: MovieId) -> Subscription[Result[MovieWithReviews, Exception]]:
        """Live variant of `get_movie_details_with_reviews`.

        Movie and remote reviews are fetched once per subscription; a new
        MovieWithReviews is emitted each time the own review changes locally.
        A failed fetch is emitted once and the subscription completes.
        """
        return Subscription(self._movie_with_reviews_updates(movie_id))

    async def _movie_with_reviews_updates(self, movie_id: MovieId) -> AsyncIterator[Result[MovieWithReviews, Exception]]:
        result = await self._get_movie_and_all_reviews(movie_id)
        match result:
            case Error():
                yield result
            case Success((movie, all_reviews)):
                async with aclosing(self.review_store.observe_reviews(movie_id)) as my_reviews:
                    async for my_review in my_reviews:
                        yield Success(MovieWithReviews.merge(movie, all_reviews, my_review))

    async def _get_movie_and_all_reviews(
        self, movie_id: MovieId
    ) -> Result[Tuple[MovieRecord, List[SomeoneReview]], Exception]:
        async with asyncio.TaskGroup() as tg:
            all_reviews_call = tg.create_task(self._get_someone_reviews(movie_id))
            details_call = tg.create_task(self.get_movie_details(movie_id))

        all_reviews = all_reviews_call.result()
        return details_call.result().map_nested_success(
            lambda movie: all_reviews.map_success(lambda reviews: (movie, reviews))
        )

    async def _get_someone_reviews(self, movie_id: MovieId) -> Result[List[SomeoneReview], Exception]:
        result = await self.reviews_remote.get_movie_reviews(movie_id)
        return result.map_success(lambda dtos: [dto.to_someone_review() for dto in dtos])

    # ───────────────────────────── own reviews ──────────────────────────
    async def add_review(self, draft: ReviewDraft, author_id: str, author_email: str) -> VoidResult[Exception]:
        """Submit remotely, then store the server-confirmed review locally."""
        result = await self.reviews_remote.add_review(draft, author_id, author_email)
        stored = await result.map_success(lambda dto: dto.to_my_review()).do_on_success(self.review_store.insert)
        return stored.map_success(lambda _: None)

    async def get_reviews_for_user(self, user_id: str) -> None:
        """
        Sync the user's reviews into the local store and warm the movie cache
        for every reviewed movie. A remote failure is handed to the error
        reporter and not returned.
        """
        match await self._get_and_store_my_reviews(user_id):
            case Success(my_reviews):
                await self._get_and_store_my_reviewed_movies(my_reviews)
            case Error(cause):
                self.error_reporter("sync Local storage error", cause)

    async def _get_and_store_my_reviews(self, user_id: str) -> Result[List[MyReviewRecord], Exception]:
        result = await self.reviews_remote.get_my_reviews(user_id)
        my_reviews = result.map_success(lambda dtos: [dto.to_my_review() for dto in dtos])
        return await my_reviews.do_on_success(self.review_store.insert_all)

    async def _get_and_store_my_reviewed_movies(self, my_reviews: List[MyReviewRecord]) -> None:
        movie_ids = {review.movie_id for review in my_reviews}
        warmed = await self.get_movie_details_list(movie_ids)
        if isinstance(warmed, Error):
            logger.debug(
                "Movie cache warm-up incomplete",
                extra={"error": f"{len(warmed.cause)} of {len(movie_ids)} movies failed"},
            )

    async def delete_user_reviews(self) -> None:
        await self.review_store.delete_all()
