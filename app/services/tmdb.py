"""Utilities for resolving metadata from The Movie Database (TMDB)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..errors import ExternalServiceFailure
from ..utils import describe_error_response

logger = logging.getLogger(__name__)

SERVICE_NAME = "TMDB"


@dataclass(slots=True)
class MovieSummary:
    """One row of a TMDB movie search."""

    id: int
    title: str
    release_date: str | None = None
    poster_path: str | None = None


@dataclass(slots=True)
class MovieDetails:
    id: int
    title: str
    poster_path: str | None = None
    release_date: str | None = None
    production_companies: list[str] = field(default_factory=list)


@dataclass(slots=True)
class CrewMember:
    job: str
    name: str


@dataclass(slots=True)
class CreditList:
    crew: list[CrewMember] = field(default_factory=list)

    def director(self) -> str | None:
        """Return the first crew member credited as director, if any."""

        for member in self.crew:
            if member.job == "Director":
                return member.name
        return None


class TMDBClient:
    """Client for the TMDB search, details and credits endpoints."""

    def __init__(self, api_key: str, http_client: httpx.AsyncClient):
        if not api_key:
            raise ValueError("TMDB API key is required when initialising TMDBClient")
        self._api_key = api_key
        self._client = http_client

    async def search_movies(self, query: str) -> list[MovieSummary]:
        """Return search results in TMDB's ranking order."""

        payload = await self._get(
            "/search/movie",
            {"query": query, "include_adult": "false", "page": 1},
        )
        results = payload.get("results") or []
        if not isinstance(results, list):
            return []

        movies: list[MovieSummary] = []
        for result in results:
            if not isinstance(result, dict) or result.get("id") is None:
                continue
            try:
                movie_id = int(result["id"])
            except (TypeError, ValueError):
                continue
            movies.append(
                MovieSummary(
                    id=movie_id,
                    title=str(result.get("title") or result.get("original_title") or ""),
                    release_date=_optional_str(result.get("release_date")),
                    poster_path=_optional_str(result.get("poster_path")),
                )
            )
        logger.debug("TMDB search for %r returned %d result(s)", query, len(movies))
        return movies

    async def get_movie_details(self, movie_id: int) -> MovieDetails:
        payload = await self._get(f"/movie/{movie_id}", {})
        companies = payload.get("production_companies") or []
        company_names = [
            str(company["name"])
            for company in companies
            if isinstance(company, dict) and company.get("name")
        ] if isinstance(companies, list) else []
        title = str(payload.get("title") or payload.get("original_title") or "").strip()
        if not title:
            logger.warning("TMDB movie %s has no title", movie_id)
            raise ExternalServiceFailure(SERVICE_NAME, "Movie has no title")
        return MovieDetails(
            id=int(payload.get("id") or movie_id),
            title=title,
            poster_path=_optional_str(payload.get("poster_path")),
            release_date=_optional_str(payload.get("release_date")),
            production_companies=company_names,
        )

    async def get_movie_credits(self, movie_id: int) -> CreditList:
        payload = await self._get(f"/movie/{movie_id}/credits", {})
        crew = payload.get("crew") or []
        if not isinstance(crew, list):
            crew = []
        return CreditList(
            crew=[
                CrewMember(job=str(member.get("job") or ""), name=str(member.get("name") or ""))
                for member in crew
                if isinstance(member, dict)
            ]
        )

    async def _get(self, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        request_params = {**params, "api_key": self._api_key}
        try:
            response = await self._client.get(endpoint, params=request_params)
        except httpx.HTTPError as exc:
            logger.warning("TMDB request %s failed: %s", endpoint, exc)
            raise ExternalServiceFailure(
                SERVICE_NAME, f"{exc.__class__.__name__}: {exc}"
            ) from exc

        if not response.is_success:
            logger.warning(
                "TMDB request %s failed with HTTP %s: %s",
                endpoint,
                response.status_code,
                response.text,
            )
            raise ExternalServiceFailure(
                SERVICE_NAME,
                describe_error_response(response),
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ExternalServiceFailure(
                SERVICE_NAME,
                "Response body is not valid JSON",
                status=response.status_code,
            ) from exc
        if not isinstance(payload, dict):
            raise ExternalServiceFailure(
                SERVICE_NAME,
                "Unexpected response structure",
                status=response.status_code,
            )
        return payload


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None
