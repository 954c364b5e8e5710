from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import aiohttp
import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from sqlalchemy.ext.asyncio import async_sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from watchlog.database import create_engine_for, init_models  # noqa: E402
from watchlog.services.watchlist import WatchlistStore  # noqa: E402

SEED_NAMES = ["Person 1", "Person 2", "Person 3"]


class FakeResponse:
    def __init__(self, payload: Any = None, status: int = 200, text: str | None = None):
        self.payload = payload
        self.status = status
        self._text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def text(self) -> str:
        return self._text if self._text is not None else str(self.payload)

    async def json(self, content_type=None):
        if self._text is not None:
            raise ValueError("not JSON")
        return self.payload


class FakeSession:
    """Stands in for aiohttp.ClientSession; records every GET."""

    closed = False

    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None):
        self.response = response or FakeResponse([])
        self.error = error
        self.calls: list[tuple[str, dict | None]] = []

    def get(self, url, params=None):
        self.calls.append((url, params))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def transport_error() -> Exception:
    return aiohttp.ClientConnectionError("connection refused")


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'watchlog.db'}"


@pytest.fixture()
def run(db_url: str):
    """Run ``scenario(Session)`` against a fresh database seeded with three users."""

    def _run(scenario):
        async def _main():
            engine = create_engine_for(db_url, poolclass=NullPool)
            await init_models(engine)
            Session = async_sessionmaker(engine, expire_on_commit=False)
            async with Session() as db:
                await WatchlistStore(db).seed_users(SEED_NAMES)
            try:
                return await scenario(Session)
            finally:
                await engine.dispose()

        return asyncio.run(_main())

    return _run
