import json
import httpx
import pytest

from themoviedb.clients.movies_remote import TmdbMoviesRemoteSource
from themoviedb.clients.reviews_remote import HttpReviewsRemoteSource
from themoviedb.schemas.review import ReviewDraft
from themoviedb.util.result import Error, Success

REVIEW_JSON = {
    "id": 42,
    "author_id": "viewer",
    "author_email": "viewer@example.com",
    "movie_id": 7,
    "rating": 5,
    "text": "Loved it",
    "created_at": "2024-05-01T12:00:00Z",
}


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# TmdbMoviesRemoteSource
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_search_movies_parses_results_and_sends_key():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json={
            "page": 1,
            "total_pages": 1,
            "results": [
                {"id": 1, "title": "The Matrix", "genre_ids": [28], "vote_average": 8.2, "poster_path": "/m.jpg"},
                {"id": 2, "title": "The Matrix Reloaded"},
            ],
        })

    async with _client(handler) as client:
        source = TmdbMoviesRemoteSource(client, "https://tmdb.test/3", api_key="k", language="en-US")
        result = await source.search_movies("matrix", page=2)

    assert isinstance(result, Success)
    assert [dto.id for dto in result.value] == [1, 2]
    assert seen["path"] == "/3/search/movie"
    assert seen["params"] == {"query": "matrix", "page": "2", "api_key": "k", "language": "en-US"}


@pytest.mark.asyncio
async def test_movie_details_parses_full_record():
    def handler(request):
        return httpx.Response(200, json={
            "id": 603,
            "title": "The Matrix",
            "release_date": "1999-03-30",
            "overview": "A hacker learns the truth.",
            "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
            "vote_average": 8.2,
            "poster_path": "/m.jpg",
            "runtime": 136,
        })

    async with _client(handler) as client:
        source = TmdbMoviesRemoteSource(client, "https://tmdb.test/3", api_key="k")
        result = await source.get_movie_details(603)

    record = result.value.to_record("https://img.test")
    assert record.genres == "Action, Science Fiction"
    assert record.poster_url == "https://img.test/m.jpg"
    assert record.duration == 136
    assert record.is_fully_loaded


@pytest.mark.asyncio
async def test_http_error_becomes_error_result():
    async with _client(lambda request: httpx.Response(404, json={"status_message": "not found"})) as client:
        source = TmdbMoviesRemoteSource(client, "https://tmdb.test/3", api_key="k")
        result = await source.get_movie_details(1)

    assert isinstance(result, Error)
    assert isinstance(result.cause, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_transport_error_becomes_error_result():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    async with _client(handler) as client:
        source = TmdbMoviesRemoteSource(client, "https://tmdb.test/3", api_key="k")
        result = await source.search_movies("matrix")

    assert isinstance(result.cause, httpx.ConnectError)


@pytest.mark.asyncio
async def test_malformed_payload_becomes_error_result():
    async with _client(lambda request: httpx.Response(200, json={"title": "no id"})) as client:
        source = TmdbMoviesRemoteSource(client, "https://tmdb.test/3", api_key="k")
        result = await source.get_movie_details(1)

    assert isinstance(result, Error)


# ---------------------------------------------------------------------------
# HttpReviewsRemoteSource
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_movie_reviews():
    def handler(request):
        assert request.url.path == "/movies/7/reviews"
        return httpx.Response(200, json=[REVIEW_JSON])

    async with _client(handler) as client:
        result = await HttpReviewsRemoteSource(client, "https://reviews.test/").get_movie_reviews(7)

    assert result.value[0].to_someone_review().author == "viewer@example.com"


@pytest.mark.asyncio
async def test_get_my_reviews():
    def handler(request):
        assert request.url.path == "/users/viewer/reviews"
        return httpx.Response(200, json=[REVIEW_JSON, {**REVIEW_JSON, "id": 43, "movie_id": 8}])

    async with _client(handler) as client:
        result = await HttpReviewsRemoteSource(client, "https://reviews.test").get_my_reviews("viewer")

    assert [dto.to_my_review().movie_id for dto in result.value] == [7, 8]


@pytest.mark.asyncio
async def test_add_review_posts_draft_with_author():
    sent = {}

    def handler(request):
        sent.update(json.loads(request.content))
        return httpx.Response(201, json=REVIEW_JSON)

    async with _client(handler) as client:
        source = HttpReviewsRemoteSource(client, "https://reviews.test")
        result = await source.add_review(ReviewDraft(movie_id=7, rating=5, text="Loved it"), "viewer", "viewer@example.com")

    assert result.value.id == 42
    assert sent == {
        "movie_id": 7,
        "rating": 5,
        "text": "Loved it",
        "author_id": "viewer",
        "author_email": "viewer@example.com",
    }


@pytest.mark.asyncio
async def test_add_review_rejected():
    async with _client(lambda request: httpx.Response(500)) as client:
        result = await HttpReviewsRemoteSource(client, "https://reviews.test").add_review(
            ReviewDraft(movie_id=7, rating=5), "viewer", "viewer@example.com"
        )

    assert isinstance(result, Error)
