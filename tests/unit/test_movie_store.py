import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from themoviedb.schemas.movie import MovieRecord
from themoviedb.stores.movie_store import RedisMovieStore


@pytest.fixture
def mock_redis():
    mock = AsyncMock()
    mock.get.return_value = None  # Cache miss by default
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    mock.pipeline = MagicMock(return_value=pipe)
    return mock


def _record(movie_id=1, **kwargs):
    return MovieRecord(id=movie_id, title=f"Movie {movie_id}", **kwargs)


@pytest.mark.asyncio
async def test_get_by_id_miss(mock_redis):
    store = RedisMovieStore(mock_redis)

    assert await store.get_by_id(1) is None
    mock_redis.get.assert_awaited_once_with("movie:1")


@pytest.mark.asyncio
async def test_get_by_id_hit(mock_redis):
    mock_redis.get.return_value = _record(5, duration=120, is_fully_loaded=True).model_dump_json()
    store = RedisMovieStore(mock_redis)

    record = await store.get_by_id(5)

    assert record.id == 5
    assert record.is_fully_loaded


@pytest.mark.asyncio
async def test_unreadable_entry_is_a_miss(mock_redis):
    mock_redis.get.return_value = "{not json"
    store = RedisMovieStore(mock_redis)

    assert await store.get_by_id(5) is None


@pytest.mark.asyncio
async def test_insert_without_ttl_uses_set(mock_redis):
    store = RedisMovieStore(mock_redis, ttl_seconds=0)

    await store.insert(_record(3))

    key, value = mock_redis.set.await_args.args
    assert key == "movie:3"
    assert json.loads(value)["title"] == "Movie 3"
    mock_redis.setex.assert_not_called()


@pytest.mark.asyncio
async def test_insert_with_ttl_uses_setex(mock_redis):
    store = RedisMovieStore(mock_redis, ttl_seconds=60)

    await store.insert(_record(3))

    key, ttl, _ = mock_redis.setex.await_args.args
    assert (key, ttl) == ("movie:3", 60)


@pytest.mark.asyncio
async def test_insert_all_uses_one_pipeline(mock_redis):
    store = RedisMovieStore(mock_redis, ttl_seconds=60)

    await store.insert_all([_record(1), _record(2)])

    pipe = mock_redis.pipeline.return_value
    mock_redis.pipeline.assert_called_once_with(transaction=False)
    assert [c.args[0] for c in pipe.setex.call_args_list] == ["movie:1", "movie:2"]
    pipe.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_insert_all_empty_is_noop(mock_redis):
    store = RedisMovieStore(mock_redis)

    await store.insert_all([])

    mock_redis.pipeline.assert_not_called()
