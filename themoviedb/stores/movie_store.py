"""
Local movie cache.

Records are replaced whole, keyed by movie id, so concurrent writers can
only ever race to "last write wins", never to a half-updated record.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

import redis.asyncio as redis
from pydantic import ValidationError

from ..schemas.movie import MovieId, MovieRecord

logger = logging.getLogger(__name__)


class MovieLocalStore(ABC):
    @abstractmethod
    async def get_by_id(self, movie_id: MovieId) -> Optional[MovieRecord]:
        """Return the cached record or None on a miss."""

    @abstractmethod
    async def insert(self, record: MovieRecord) -> None:
        """Insert or replace by id."""

    @abstractmethod
    async def insert_all(self, records: Iterable[MovieRecord]) -> None:
        """Insert or replace each record by id."""


class RedisMovieStore(MovieLocalStore):
    """Movie cache in Redis, one JSON document per movie.

    Keys expire after `ttl_seconds` when it is positive; eviction is the only
    way a record ever leaves the cache.
    """

    KEY_PREFIX = "movie:"

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int = 0):
        self.redis_client = redis_client
        self.ttl_seconds = ttl_seconds

    def _key(self, movie_id: MovieId) -> str:
        return f"{self.KEY_PREFIX}{movie_id}"

    async def get_by_id(self, movie_id: MovieId) -> Optional[MovieRecord]:
        cached = await self.redis_client.get(self._key(movie_id))
        if cached is None:
            return None
        try:
            return MovieRecord.model_validate_json(cached)
        except ValidationError as e:
            # An unreadable entry is a miss; the next remote fetch overwrites it
            logger.warning("Discarding unreadable movie cache entry", extra={"movie_id": movie_id, "error": str(e)})
            return None

    async def insert(self, record: MovieRecord) -> None:
        if self.ttl_seconds > 0:
            await self.redis_client.setex(self._key(record.id), self.ttl_seconds, record.model_dump_json())
        else:
            await self.redis_client.set(self._key(record.id), record.model_dump_json())

    async def insert_all(self, records: Iterable[MovieRecord]) -> None:
        records = list(records)
        if not records:
            return
        pipe = self.redis_client.pipeline(transaction=False)
        for record in records:
            if self.ttl_seconds > 0:
                pipe.setex(self._key(record.id), self.ttl_seconds, record.model_dump_json())
            else:
                pipe.set(self._key(record.id), record.model_dump_json())
        await pipe.execute()
