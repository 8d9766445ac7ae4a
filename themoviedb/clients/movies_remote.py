import logging
from abc import ABC, abstractmethod
from typing import List

import httpx
from pydantic import ValidationError

from ..schemas.movie import MovieDto, MovieId, SearchMovieDtoPage
from ..util.result import Error, Result, Success

logger = logging.getLogger(__name__)


class MoviesRemoteSource(ABC):
    @abstractmethod
    async def search_movies(self, query: str, page: int = 1) -> Result[List[MovieDto], Exception]:
        ...

    @abstractmethod
    async def get_movie_details(self, movie_id: MovieId) -> Result[MovieDto, Exception]:
        ...


class TmdbMoviesRemoteSource(MoviesRemoteSource):
    """The Movie Database v3 API.

    Transport and decoding failures come back as `Error(cause)`; nothing
    here raises for them.
    """

    def __init__(self, client: httpx.AsyncClient, api_url: str, api_key: str, language: str = "en-US"):
        self.client = client
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.language = language

    async def _get(self, path: str, **params) -> httpx.Response:
        params["api_key"] = self.api_key
        params["language"] = self.language
        response = await self.client.get(f"{self.api_url}{path}", params=params)
        response.raise_for_status()
        return response

    async def search_movies(self, query: str, page: int = 1) -> Result[List[MovieDto], Exception]:
        try:
            response = await self._get("/search/movie", query=query, page=page)
            payload = SearchMovieDtoPage.model_validate_json(response.content)
        except (httpx.HTTPError, ValidationError) as e:
            logger.warning("TMDB search failed", extra={"error": repr(e)})
            return Error(e)
        return Success(payload.results)

    async def get_movie_details(self, movie_id: MovieId) -> Result[MovieDto, Exception]:
        try:
            response = await self._get(f"/movie/{movie_id}")
            dto = MovieDto.model_validate_json(response.content)
        except (httpx.HTTPError, ValidationError) as e:
            logger.warning("TMDB movie details failed", extra={"movie_id": movie_id, "error": repr(e)})
            return Error(e)
        return Success(dto)
