"""Common plumbing for title-search providers."""
from __future__ import annotations
import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

import aiohttp

from watchlog.errors import ProviderError
from watchlog.schemas.search import SearchResult

logger = logging.getLogger(__name__)

_YEAR_RE = re.compile(r"^\s*(\d{4})(?!\d)")
NO_POSTER_SENTINELS = {"", "n/a", "none", "null"}


def parse_year(value: Any) -> int | None:
    """Leading four-digit year of ``value`` ("2019-05-01", "2001–2005", 2019), else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 1000 <= value <= 9999 else None
    if not isinstance(value, str):
        return None
    match = _YEAR_RE.match(value)
    return int(match.group(1)) if match else None


def normalize_poster(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    if value.lower() in NO_POSTER_SENTINELS:
        return None
    return value


def clean_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


class SearchProvider(ABC):
    """One outbound title search, normalized to ``SearchResult``.

    Subclasses describe the request and parse the body; session handling,
    error mapping and the empty-query short circuit live here. Pass a
    ``session`` to share one ``aiohttp.ClientSession``; otherwise the provider
    opens its own and ``close()`` releases it.
    """

    name: str = "provider"

    def __init__(self, base_url: str, session: aiohttp.ClientSession | None = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def close(self):
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def search(self, query: str) -> list[SearchResult]:
        """Return normalized hits; ``[]`` for a blank query or no matches.

        Raises ``ProviderError`` when the provider cannot be reached or
        answers with an error, so "nothing found" and "search failed" stay
        distinguishable.
        """
        q = (query or "").strip()
        if not q:
            return []
        url, params = self.build_request(q)
        data = await self._get(url, params)
        results = self.parse(data)
        logger.info(f"[{self.name}] '{q}' -> {len(results)} result(s)")
        return results

    async def _get(self, url: str, params: dict[str, str]) -> Any:
        try:
            async with self.session.get(url, params=params) as resp:
                if resp.status >= 400:
                    text = await resp.text()
                    logger.error(f"[{self.name}] HTTP {resp.status}: {text[:200]}")
                    raise ProviderError(f"{self.name} returned HTTP {resp.status}")
                return await resp.json(content_type=None)
        except ProviderError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"[{self.name}] search request failed: {e!r}")
            raise ProviderError(f"{self.name} request failed") from e

    @abstractmethod
    def build_request(self, query: str) -> tuple[str, dict[str, str]]:
        """URL and query parameters for one search."""

    @abstractmethod
    def parse(self, data: Any) -> list[SearchResult]:
        """Map a decoded response body to search results."""
