import pytest
from unittest.mock import AsyncMock

from themoviedb.util.result import Error, Success, to_success_or_error_list


def test_map_success_transforms_value():
    assert Success(2).map_success(lambda v: v * 10) == Success(20)


def test_map_success_passes_error_through():
    cause = ValueError("boom")
    result = Error(cause).map_success(lambda v: v * 10)
    assert result == Error(cause)


def test_map_nested_success_flattens_inner_result():
    assert Success(3).map_nested_success(lambda v: Success(v + 1)) == Success(4)
    inner = RuntimeError("inner")
    assert Success(3).map_nested_success(lambda v: Error(inner)) == Error(inner)


def test_map_nested_success_keeps_outer_error():
    outer = RuntimeError("outer")
    called = []
    result = Error(outer).map_nested_success(lambda v: called.append(v) or Success(v))
    assert result == Error(outer)
    assert called == []


@pytest.mark.asyncio
async def test_do_on_success_runs_action_and_returns_original():
    action = AsyncMock()
    original = Success([1, 2])
    result = await original.do_on_success(action)
    assert result is original
    action.assert_awaited_once_with([1, 2])


@pytest.mark.asyncio
async def test_do_on_success_accepts_plain_callable():
    seen = []
    await Success("x").do_on_success(seen.append)
    assert seen == ["x"]


@pytest.mark.asyncio
async def test_do_on_success_skips_action_on_error():
    action = AsyncMock()
    await Error(ValueError()).do_on_success(action)
    action.assert_not_awaited()


@pytest.mark.asyncio
async def test_do_on_success_action_failure_propagates():
    action = AsyncMock(side_effect=ConnectionError("store down"))
    with pytest.raises(ConnectionError):
        await Success(1).do_on_success(action)


@pytest.mark.asyncio
async def test_amap_success():
    async def double(v):
        return v * 2

    assert await Success(4).amap_success(double) == Success(8)
    cause = KeyError("k")
    assert await Error(cause).amap_success(double) == Error(cause)


def test_to_success_or_error_list_all_success_keeps_order():
    result = to_success_or_error_list([Success(3), Success(1), Success(2)])
    assert result == Success([3, 1, 2])


def test_to_success_or_error_list_collects_every_cause_in_order():
    first, second = ValueError("a"), KeyError("b")
    result = to_success_or_error_list([Success(1), Error(first), Success(2), Error(second)])
    assert isinstance(result, Error)
    assert result.cause == [first, second]


def test_to_success_or_error_list_empty_input():
    assert to_success_or_error_list([]) == Success([])


def test_variants_support_match():
    match Error("cause"):
        case Success(value):
            pytest.fail(f"unexpected success {value}")
        case Error(cause):
            assert cause == "cause"
    assert Success(None).is_success
    assert not Error(None).is_success
