"""Whole-dataset export and restore."""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, insert, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from watchlog.database import fits_integer, transaction
from watchlog.errors import PersistenceError, ValidationError
from watchlog.models import Movie, User
from watchlog.models.movie import utcnow
from watchlog.schemas.movie import MovieResponse
from watchlog.schemas.snapshot import ImportSummary, SnapshotDocument
from watchlog.schemas.user import UserResponse
from watchlog.services.providers.base import parse_year

logger = logging.getLogger(__name__)

_datetime = TypeAdapter(datetime)
_SKIP = object()


def _user_row(raw: Any) -> dict | None:
    if not isinstance(raw, dict):
        return None
    if not fits_integer(raw.get("id")) or not isinstance(raw.get("name"), str):
        return None
    return {"id": raw["id"], "name": raw["name"]}


def _added_at(value: Any, imported_at: datetime) -> Any:
    if value is None:
        return imported_at
    try:
        parsed = _datetime.validate_python(value)
    except PydanticValidationError:
        return _SKIP
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _movie_row(raw: Any, imported_at: datetime) -> dict | None:
    if not isinstance(raw, dict):
        return None
    user_id = raw.get("user_id")
    external_id = raw.get("external_id")
    title = raw.get("title")
    if not fits_integer(user_id):
        return None
    if isinstance(external_id, int) and not isinstance(external_id, bool):
        external_id = str(external_id)
    if not isinstance(external_id, str) or not external_id.strip():
        return None
    if not isinstance(title, str) or not title.strip():
        return None
    # Out-of-range ids would not fit the Integer columns
    if raw.get("id") is not None and not fits_integer(raw.get("id")):
        return None
    added_at = _added_at(raw.get("added_at"), imported_at)
    if added_at is _SKIP:
        return None

    row = {
        "user_id": user_id,
        "external_id": external_id.strip(),
        "title": title,
        "poster_url": raw.get("poster_url") if isinstance(raw.get("poster_url"), str) else None,
        "year": raw["year"] if fits_integer(raw.get("year")) else parse_year(raw.get("year")),
        "category": raw.get("category") if isinstance(raw.get("category"), str) else None,
        "added_at": added_at,
    }
    if fits_integer(raw.get("id")):
        row["id"] = raw["id"]
    return row


class SnapshotService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def export_all(self) -> SnapshotDocument:
        """Every user and every movie; each movie's user is in ``users``."""
        users = (await self.db.execute(select(User).order_by(User.id))).scalars().all()
        movies = (await self.db.execute(select(Movie).order_by(Movie.id))).scalars().all()
        return SnapshotDocument(
            users=[UserResponse.model_validate(u) for u in users],
            movies=[MovieResponse.model_validate(m) for m in movies],
        )

    async def import_all(self, document: Any) -> ImportSummary:
        """Replace the whole dataset with ``document``.

        This is a restore, not a merge: movies and users are deleted, then
        the document's users and movies are inserted, all in one
        transaction. Rows that are not well-formed are skipped. If any
        insert fails the previous data is left untouched and
        ``PersistenceError`` is raised.
        """
        if not isinstance(document, dict):
            raise ValidationError("Import body must be an object with users and movies")
        users_in, movies_in = document.get("users"), document.get("movies")
        if not isinstance(users_in, list) or not isinstance(movies_in, list):
            raise ValidationError("users and movies must both be arrays")

        imported_at = utcnow()
        user_rows = [row for row in map(_user_row, users_in) if row is not None]
        movie_rows = [row for row in (_movie_row(m, imported_at) for m in movies_in) if row is not None]
        summary = ImportSummary(
            users=len(user_rows),
            movies=len(movie_rows),
            skipped_users=len(users_in) - len(user_rows),
            skipped_movies=len(movies_in) - len(movie_rows),
        )
        if summary.skipped_users or summary.skipped_movies:
            logger.info(
                f"Import skipping {summary.skipped_users} malformed user(s) "
                f"and {summary.skipped_movies} malformed movie(s)"
            )

        try:
            async with transaction(self.db):
                # Children first, then parents; re-insert in the opposite order
                await self.db.execute(delete(Movie))
                await self.db.execute(delete(User))
                for row in user_rows:
                    await self.db.execute(insert(User).values(**row))
                for row in movie_rows:
                    await self.db.execute(insert(Movie).values(**row))
                if self.db.get_bind().dialect.name == "postgresql":
                    await self._reset_sequences()
        except SQLAlchemyError as e:
            logger.error(f"Import rolled back: {e}")
            raise PersistenceError("Import failed; previous data kept") from e

        # Rows loaded before the replace must not shadow the new ones
        self.db.expunge_all()
        logger.info(f"Imported {summary.users} user(s) and {summary.movies} movie(s)")
        return summary

    async def _reset_sequences(self) -> None:
        # Explicit ids bypass the serial sequences; move them past the imported rows
        for table in ("users", "movies"):
            await self.db.execute(
                text(
                    f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                    f"COALESCE((SELECT MAX(id) FROM {table}), 0) + 1, false)"
                )
            )
