"""
Cancellable handle over an async generator of updates.

The generator is pulled one value at a time inside a task, so `aclose()`
can cancel a pull that is still waiting on I/O (for example a remote fan-out)
and then close the generator, which releases whatever it watches.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator, Generic, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Subscription(Generic[T]):
    """Async iterator + async context manager over *source*.

        async with repo.observe_movie_details_with_reviews(movie_id) as updates:
            async for result in updates:
                ...
    """

    def __init__(self, source: AsyncGenerator[T, None]):
        self._source = source
        self._pending: Optional[asyncio.Task] = None
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def __aiter__(self) -> "Subscription[T]":
        return self

    async def __anext__(self) -> T:
        if not self._active:
            raise StopAsyncIteration

        self._pending = asyncio.create_task(self._pull())
        try:
            value = await self._pending
        except asyncio.CancelledError:
            if self._active:
                raise
            # the pull was cancelled by aclose()
            raise StopAsyncIteration
        except StopAsyncIteration:
            self._active = False
            raise
        finally:
            self._pending = None

        # Emit only if still active: aclose() may have run while the value
        # was being produced.
        if not self._active:
            raise StopAsyncIteration
        return value

    async def _pull(self) -> T:
        return await anext(self._source)

    async def aclose(self) -> None:
        """Stop the subscription, cancel in-flight work and release the source."""
        self._active = False

        pending = self._pending
        if pending is not None and not pending.done():
            pending.cancel()
            await asyncio.wait({pending})

        await self._source.aclose()
        logger.debug("Subscription closed")

    async def __aenter__(self) -> "Subscription[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
