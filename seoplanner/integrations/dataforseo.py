"""DataForSEO API integration for keyword suggestions and bulk difficulty."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from seoplanner.config import Settings
from seoplanner.core.exceptions import APIKeyMissingError, ExternalAPIError, RateLimitExceededError

logger = logging.getLogger(__name__)

API_NAME = "DataForSEO"
SUCCESS_STATUS = 20000

# Suggestions harder than this (competition * 100) are not worth ranking for
MAX_SUGGESTION_COMPETITION_SCORE = 60
ALLOWED_COMPETITION_LEVELS = frozenset({"LOW", "MEDIUM"})


class DataForSEOClient:
    """Client for the DataForSEO Labs API.

    Provides the two capabilities keyword research relies on:
    - Keyword suggestions for a single seed (volume + competition)
    - Bulk keyword difficulty (max 1000 keywords per request)

    Credentials are passed in explicitly; a client without credentials can
    be constructed but every request raises `APIKeyMissingError`, which the
    research engine treats like any other outage.
    """

    BASE_URL = "https://api.dataforseo.com/v3"
    DIFFICULTY_BATCH_SIZE = 1000

    def __init__(
        self,
        login: str | None,
        password: str | None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.login = login
        self.password = password
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self.configured:
            logger.warning("DataForSEO credentials are not set; keyword research will use fallback data")

    @classmethod
    def from_settings(cls, settings: Settings) -> DataForSEOClient:
        return cls(
            login=settings.dataforseo_login,
            password=settings.dataforseo_password,
            timeout=settings.dataforseo_timeout_seconds,
        )

    @property
    def configured(self) -> bool:
        return bool(self.login and self.password)

    @property
    def _auth_header(self) -> str:
        """Generate Basic Auth header."""
        credentials = f"{self.login}:{self.password}"
        encoded = base64.b64encode(credentials.encode()).decode()
        return f"Basic {encoded}"

    async def __aenter__(self) -> DataForSEOClient:
        headers = {"Content-Type": "application/json"}
        if self.configured:
            headers["Authorization"] = self._auth_header
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=headers,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client must be used as async context manager")
        return self._client

    async def _make_request(
        self,
        endpoint: str,
        data: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """POST to a DataForSEO endpoint and return the flattened task results."""
        if not self.configured:
            raise APIKeyMissingError(API_NAME)

        logger.info("DataForSEO API request", extra={"endpoint": endpoint})
        url = f"{self.BASE_URL}/{endpoint}"

        try:
            response = await self.client.post(url, json=data)
        except httpx.HTTPError as e:
            logger.warning("DataForSEO HTTP error", extra={"endpoint": endpoint, "error": str(e)})
            raise ExternalAPIError(API_NAME, str(e)) from e

        if response.status_code == 429:
            logger.warning("DataForSEO rate limit hit", extra={"endpoint": endpoint})
            raise RateLimitExceededError(API_NAME)

        try:
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("DataForSEO bad response", extra={"endpoint": endpoint, "error": str(e)})
            raise ExternalAPIError(API_NAME, str(e)) from e

        if result.get("status_code") != SUCCESS_STATUS:
            logger.warning(
                "DataForSEO API error",
                extra={"endpoint": endpoint, "status": result.get("status_message")},
            )
            raise ExternalAPIError(API_NAME, result.get("status_message", "Unknown error"))

        tasks = result.get("tasks") or []
        results: list[dict[str, Any]] = []
        failed_statuses: list[str] = []
        for task in tasks:
            if task.get("status_code") == SUCCESS_STATUS:
                results.extend(task.get("result") or [])
            else:
                failed_statuses.append(str(task.get("status_message") or task.get("status_code")))
                logger.warning(
                    "DataForSEO task failed",
                    extra={
                        "endpoint": endpoint,
                        "task_status": task.get("status_code"),
                        "status": task.get("status_message"),
                    },
                )

        # A 20000 envelope can still carry only failed tasks (e.g. 40200 Payment Required)
        if len(failed_statuses) == len(tasks):
            message = "; ".join(failed_statuses) or "Response contained no tasks"
            raise ExternalAPIError(API_NAME, message)
        return results

    async def get_keyword_suggestions(
        self,
        seed: str,
        location_code: int = 2840,
        language_code: str = "en",
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """Get low/medium competition keyword suggestions for one seed.

        Args:
            seed: Seed keyword to expand
            location_code: DataForSEO location code (2840 = US)
            language_code: Language code (en, de, etc.)
            limit: Maximum suggestions to request (API max 1000, we use <= 100)

        Returns:
            List of dicts with keyword, search_volume, competition,
            competition_level and cpc
        """
        data = [
            {
                "keyword": seed,
                "location_code": location_code,
                "language_code": language_code,
                "include_seed_keyword": False,
                "include_serp_info": False,
                "ignore_synonyms": False,
                "exact_match": False,
                "filters": [
                    ["keyword_info.competition_level", "=", "LOW"],
                    "or",
                    ["keyword_info.competition_level", "=", "MEDIUM"],
                ],
                "limit": limit,
            }
        ]

        results = await self._make_request(
            "dataforseo_labs/google/keyword_suggestions/live",
            data,
        )

        suggestions: list[dict[str, Any]] = []
        for result in results:
            for item in result.get("items") or []:
                keyword = item.get("keyword")
                if not isinstance(keyword, str) or not keyword.strip():
                    continue
                info = item.get("keyword_info") or {}
                level = info.get("competition_level")
                competition = info.get("competition") or 0.0
                if level not in ALLOWED_COMPETITION_LEVELS:
                    continue
                if competition * 100 >= MAX_SUGGESTION_COMPETITION_SCORE:
                    continue
                suggestions.append({
                    "keyword": keyword.strip(),
                    "search_volume": info.get("search_volume") or 0,
                    "competition": competition,
                    "competition_level": level,
                    "cpc": info.get("cpc") or 0.0,
                })

        logger.info(
            "Keyword suggestions fetched",
            extra={"seed": seed, "returned": len(suggestions), "limit": limit},
        )
        return suggestions

    async def get_bulk_keyword_difficulty(
        self,
        keywords: list[str],
        location_code: int = 2840,
        language_code: str = "en",
    ) -> list[dict[str, Any]]:
        """Get keyword difficulty scores (0-100).

        Keywords are sent in batches of DIFFICULTY_BATCH_SIZE. Any failed batch,
        including one whose every task failed, fails the whole call; items with
        a null difficulty are omitted.

        Returns:
            List of dicts with keyword, difficulty and search_volume
        """
        if not keywords:
            return []

        logger.info(
            "Fetching bulk keyword difficulty",
            extra={"keyword_count": len(keywords), "location": location_code},
        )
        difficulties: list[dict[str, Any]] = []
        for i in range(0, len(keywords), self.DIFFICULTY_BATCH_SIZE):
            batch = keywords[i : i + self.DIFFICULTY_BATCH_SIZE]
            results = await self._make_request(
                "dataforseo_labs/google/bulk_keyword_difficulty/live",
                [
                    {
                        "keywords": batch,
                        "location_code": location_code,
                        "language_code": language_code,
                    }
                ],
            )
            for result in results:
                for item in result.get("items") or []:
                    keyword = item.get("keyword")
                    difficulty = item.get("keyword_difficulty")
                    if not isinstance(keyword, str) or difficulty is None:
                        continue
                    difficulties.append({
                        "keyword": keyword.strip(),
                        "difficulty": difficulty,
                        "search_volume": item.get("search_volume") or 0,
                    })

        return difficulties
