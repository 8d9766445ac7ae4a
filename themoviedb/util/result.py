"""
Two-variant outcome type used across the data layer instead of raised
exceptions for expected failures (network, decoding).

    Success(value) | Error(cause)

Both variants expose the same combinators, so callers chain them without
branching:

    result = await remote.get_movie_details(movie_id)
    result = result.map_success(lambda dto: dto.to_record(base_url))
    await result.do_on_success(store.insert)
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Iterable, List, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def is_success(self) -> bool:
        return True

    def map_success(self, f: Callable[[T], U]) -> "Success[U]":
        return Success(f(self.value))

    async def amap_success(self, f: Callable[[T], Awaitable[U]]) -> "Success[U]":
        return Success(await f(self.value))

    def map_nested_success(self, f: Callable[[T], "Result[U, E]"]) -> "Result[U, E]":
        return f(self.value)

    async def do_on_success(self, action: Callable[[T], Any]) -> "Success[T]":
        """Run *action* for its side effect; exceptions from it propagate."""
        outcome = action(self.value)
        if inspect.isawaitable(outcome):
            await outcome
        return self


@dataclass(frozen=True)
class Error(Generic[E]):
    cause: E

    @property
    def is_success(self) -> bool:
        return False

    def map_success(self, f: Callable[[Any], Any]) -> "Error[E]":
        return self

    async def amap_success(self, f: Callable[[Any], Awaitable[Any]]) -> "Error[E]":
        return self

    def map_nested_success(self, f: Callable[[Any], Any]) -> "Error[E]":
        return self

    async def do_on_success(self, action: Callable[[Any], Any]) -> "Error[E]":
        return self


Result = Union[Success[T], Error[E]]
VoidResult = Union[Success[None], Error[E]]


def to_success_or_error_list(results: Iterable[Result[T, E]]) -> Result[List[T], List[E]]:
    """Collect results into one: every value if all succeeded, else every cause.

    Not fail-fast, the whole input is inspected so the error list carries
    all causes in their original order.
    """
    values: List[T] = []
    causes: List[E] = []
    for result in results:
        match result:
            case Success(value):
                values.append(value)
            case Error(cause):
                causes.append(cause)
    if causes:
        return Error(causes)
    return Success(values)
