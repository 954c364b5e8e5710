"""TVMaze show search (no API key)."""
from __future__ import annotations
from typing import Any

from watchlog.errors import ProviderError
from watchlog.schemas.search import SearchResult
from watchlog.services.providers.base import SearchProvider, clean_text, normalize_poster, parse_year


class TVMazeProvider(SearchProvider):
    name = "tvmaze"

    def build_request(self, query: str) -> tuple[str, dict[str, str]]:
        return f"{self.base_url}/search/shows", {"q": query}

    def parse(self, data: Any) -> list[SearchResult]:
        # [{"score": 0.9, "show": {"id": 1, "name": ..., "premiered": "2013-06-24", "image": {...}}}, ...]
        if data is None:
            return []
        if not isinstance(data, list):
            raise ProviderError("tvmaze returned an unexpected payload")
        results = []
        for item in data:
            show = item.get("show") if isinstance(item, dict) else None
            if not isinstance(show, dict):
                continue
            external_id = clean_text(show.get("id"))
            title = clean_text(show.get("name"))
            if not external_id or not title:
                continue
            image = show.get("image") or {}
            poster = None
            if isinstance(image, dict):
                poster = normalize_poster(image.get("original")) or normalize_poster(image.get("medium"))
            results.append(
                SearchResult(
                    external_id=external_id,
                    title=title,
                    year=parse_year(show.get("premiered")),
                    poster_url=poster,
                    category=clean_text(show.get("type")),
                )
            )
        return results
