from __future__ import annotations

import aiohttp

from watchlog.config import Settings
from watchlog.services.providers.base import SearchProvider
from watchlog.services.providers.omdb import OMDbProvider
from watchlog.services.providers.tvmaze import TVMazeProvider

PROVIDERS = ("tvmaze", "omdb")


def get_provider(settings: Settings, session: aiohttp.ClientSession | None = None) -> SearchProvider:
    """Build the search provider named by ``settings.search_provider``."""
    name = settings.search_provider.strip().lower()
    if name == "tvmaze":
        return TVMazeProvider(settings.tvmaze_base_url, session=session, timeout=settings.search_timeout_seconds)
    if name == "omdb":
        return OMDbProvider(
            settings.omdb_base_url,
            settings.omdb_api_key,
            session=session,
            timeout=settings.search_timeout_seconds,
        )
    raise ValueError(f"Unknown search provider '{settings.search_provider}' (expected one of {PROVIDERS})")


__all__ = ["SearchProvider", "TVMazeProvider", "OMDbProvider", "get_provider", "PROVIDERS"]
