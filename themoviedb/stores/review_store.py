"""
Local store of the viewer's own reviews.

Every write goes through `MyReviewLocalStore`, which notifies watchers of
the affected movies after the write has completed, so `observe_reviews`
subscribers re-read and see the new row.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import AsyncIterator, Callable, Dict, Hashable, Iterable, List, Optional, Set

from asyncpg import Pool

from ..schemas.review import MyReviewRecord, Review

logger = logging.getLogger(__name__)


class ReviewChangeNotifier:
    """In-process registry of review watchers, keyed by channel.

    Each watcher owns a queue of size one: a burst of writes wakes it once
    and it re-reads the latest row.
    """

    def __init__(self):
        self._watchers: Dict[Hashable, Set[asyncio.Queue]] = defaultdict(set)

    def watch(self, channel: Hashable) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._watchers[channel].add(queue)
        return queue

    def unwatch(self, channel: Hashable, queue: asyncio.Queue) -> None:
        watchers = self._watchers.get(channel)
        if watchers is None:
            return
        watchers.discard(queue)
        if not watchers:
            del self._watchers[channel]

    def watcher_count(self, channel: Hashable) -> int:
        return len(self._watchers.get(channel, ()))

    def notify(self, channel: Hashable) -> None:
        for queue in self._watchers.get(channel, ()):
            if queue.empty():
                queue.put_nowait(None)

    def notify_where(self, predicate: Callable[[Hashable], bool]) -> None:
        for channel in [c for c in self._watchers if predicate(c)]:
            self.notify(channel)


class MyReviewLocalStore(ABC):
    """Reads are abstract; writes are template methods that notify watchers."""

    def __init__(self, notifier: Optional[ReviewChangeNotifier] = None):
        self.notifier = notifier or ReviewChangeNotifier()

    # ───────────────────────────── reads ──────────────────────────
    @abstractmethod
    async def get_by_movie_id(self, movie_id: int) -> Optional[MyReviewRecord]:
        ...

    @abstractmethod
    async def get_by_movie_ids(self, movie_ids: Iterable[int]) -> List[MyReviewRecord]:
        """One batched lookup; movies without an own review are simply absent."""

    async def observe_reviews(self, movie_id: int) -> AsyncIterator[Optional[MyReviewRecord]]:
        """Yield the current own review for *movie_id*, then again after each write.

        Closing the generator unregisters the watch.
        """
        channel = self._channel(movie_id)
        # Watch before the first read so a write in between is not missed
        queue = self.notifier.watch(channel)
        try:
            yield await self.get_by_movie_id(movie_id)
            while True:
                await queue.get()
                yield await self.get_by_movie_id(movie_id)
        finally:
            self.notifier.unwatch(channel, queue)

    # ───────────────────────────── writes ──────────────────────────
    async def insert(self, record: MyReviewRecord) -> None:
        await self._upsert([record])
        self.notifier.notify(self._channel(record.movie_id))

    async def insert_all(self, records: Iterable[MyReviewRecord]) -> None:
        records = list(records)
        if not records:
            return
        await self._upsert(records)
        for movie_id in {record.movie_id for record in records}:
            self.notifier.notify(self._channel(movie_id))

    async def delete_all(self) -> None:
        await self._delete_all()
        self.notifier.notify_where(self._owns_channel)

    @abstractmethod
    async def _upsert(self, records: List[MyReviewRecord]) -> None:
        ...

    @abstractmethod
    async def _delete_all(self) -> None:
        ...

    def _channel(self, movie_id: int) -> Hashable:
        return movie_id

    def _owns_channel(self, channel: Hashable) -> bool:
        return True


class PostgresMyReviewStore(MyReviewLocalStore):
    """Own reviews of one viewer (`owner_id`) in the `my_reviews` table."""

    def __init__(self, db: Pool, owner_id: str, notifier: Optional[ReviewChangeNotifier] = None):
        super().__init__(notifier)
        self.db = db
        self.owner_id = owner_id

    def _channel(self, movie_id: int) -> Hashable:
        # The notifier is shared by all viewers
        return (self.owner_id, movie_id)

    def _owns_channel(self, channel: Hashable) -> bool:
        return isinstance(channel, tuple) and channel[0] == self.owner_id

    async def get_by_movie_id(self, movie_id: int) -> Optional[MyReviewRecord]:
        query = """
            SELECT review_id, owner_id, author_email, movie_id, rating, text, created_at
            FROM my_reviews
            WHERE owner_id = $1 AND movie_id = $2
        """
        row = await self.db.fetchrow(query, self.owner_id, movie_id)
        return self._row_to_record(row) if row else None

    async def get_by_movie_ids(self, movie_ids: Iterable[int]) -> List[MyReviewRecord]:
        movie_ids = list(movie_ids)
        if not movie_ids:
            return []
        query = """
            SELECT review_id, owner_id, author_email, movie_id, rating, text, created_at
            FROM my_reviews
            WHERE owner_id = $1 AND movie_id = ANY($2::bigint[])
        """
        rows = await self.db.fetch(query, self.owner_id, movie_ids)
        return [self._row_to_record(row) for row in rows]

    async def _upsert(self, records: List[MyReviewRecord]) -> None:
        query = """
            INSERT INTO my_reviews (owner_id, movie_id, review_id, author_email, rating, text, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT (owner_id, movie_id) DO UPDATE SET
                review_id = EXCLUDED.review_id,
                author_email = EXCLUDED.author_email,
                rating = EXCLUDED.rating,
                text = EXCLUDED.text,
                created_at = EXCLUDED.created_at
        """
        await self.db.executemany(
            query,
            [
                (
                    self.owner_id,
                    record.review.movie_id,
                    record.review.id,
                    record.review.author_email,
                    record.review.rating,
                    record.review.text,
                    record.review.created_at,
                )
                for record in records
            ],
        )

    async def _delete_all(self) -> None:
        await self.db.execute("DELETE FROM my_reviews WHERE owner_id = $1", self.owner_id)
        logger.info("Deleted local reviews", extra={"user_id": self.owner_id})

    @staticmethod
    def _row_to_record(row) -> MyReviewRecord:
        return MyReviewRecord(
            review=Review(
                id=row["review_id"],
                author_id=row["owner_id"],
                author_email=row["author_email"],
                movie_id=row["movie_id"],
                rating=row["rating"],
                text=row["text"] or "",
                created_at=row["created_at"],
            )
        )
