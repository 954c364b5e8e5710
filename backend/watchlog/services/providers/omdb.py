"""OMDb movie search (needs an API key)."""
from __future__ import annotations
import logging
from typing import Any

import aiohttp

from watchlog.errors import ProviderError
from watchlog.schemas.search import SearchResult
from watchlog.services.providers.base import SearchProvider, clean_text, normalize_poster, parse_year

logger = logging.getLogger(__name__)

# OMDb answers {"Response": "False", "Error": ...} with HTTP 200 for these; they mean "no hits"
_EMPTY_ERRORS = ("not found", "too many results")


class OMDbProvider(SearchProvider):
    name = "omdb"

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        session: aiohttp.ClientSession | None = None,
        timeout: float = 10.0,
    ):
        super().__init__(base_url, session=session, timeout=timeout)
        self.api_key = api_key

    def build_request(self, query: str) -> tuple[str, dict[str, str]]:
        if not self.api_key:
            raise ProviderError("omdb_api_key is not configured")
        return f"{self.base_url}/", {"apikey": self.api_key, "s": query}

    def parse(self, data: Any) -> list[SearchResult]:
        # {"Search": [{"Title", "Year", "imdbID", "Type", "Poster"}], "Response": "True"}
        if not isinstance(data, dict):
            raise ProviderError("omdb returned an unexpected payload")
        if str(data.get("Response", "True")).lower() == "false":
            error = str(data.get("Error") or "")
            if any(marker in error.lower() for marker in _EMPTY_ERRORS):
                return []
            logger.error(f"[omdb] provider error: {error}")
            raise ProviderError(f"omdb error: {error or 'unknown'}")

        results = []
        for item in data.get("Search") or []:
            if not isinstance(item, dict):
                continue
            external_id = clean_text(item.get("imdbID"))
            title = clean_text(item.get("Title"))
            if not external_id or not title:
                continue
            results.append(
                SearchResult(
                    external_id=external_id,
                    title=title,
                    year=parse_year(item.get("Year")),
                    poster_url=normalize_poster(item.get("Poster")),
                    category=clean_text(item.get("Type")),
                )
            )
        return results
