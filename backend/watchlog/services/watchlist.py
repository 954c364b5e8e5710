"""Users and their watched titles."""
from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from watchlog.database import fits_integer, transaction
from watchlog.errors import ConflictError, NotFoundError, ValidationError
from watchlog.models import Movie, User
from watchlog.models.movie import MANUAL_CATEGORY, utcnow
from watchlog.services.providers.base import clean_text

logger = logging.getLogger(__name__)

MANUAL_PREFIX = "manual:"
SORT_ORDERS = ("added", "title", "year")


def new_manual_external_id() -> str:
    """Identifier for a hand-entered title.

    Providers hand out numeric ids (TVMaze) or ``tt``-prefixed ids (OMDb);
    nothing they return starts with ``manual:``.
    """
    return f"{MANUAL_PREFIX}{uuid.uuid4().hex}"


@dataclass
class AddResult:
    created: Movie | None = None

    @property
    def already_exists(self) -> bool:
        return self.created is None


class WatchlistStore:
    """Reads and writes users' watched lists; every mutation commits on its own."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.id))
        return list(result.scalars().all())

    async def get_user(self, user_id: int) -> User:
        # Ids outside the column range cannot exist
        user = await self.db.get(User, user_id) if fits_integer(user_id) else None
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def seed_users(self, names: list[str]) -> int:
        """Insert placeholder users when the table is empty; returns how many were added."""
        count = await self.db.scalar(select(func.count()).select_from(User))
        if count:
            return 0
        async with transaction(self.db):
            self.db.add_all([User(name=name) for name in names])
        logger.info(f"Seeded users table with {len(names)} users")
        return len(names)

    async def list_entries(self, user_id: int, sort: str = "added", query: str | None = None) -> list[Movie]:
        """Watched titles of one user, newest first unless ``sort`` says otherwise."""
        await self.get_user(user_id)
        stmt = select(Movie).where(Movie.user_id == user_id)
        if query and query.strip():
            stmt = stmt.where(Movie.title.icontains(query.strip(), autoescape=True))

        if sort == "added":
            stmt = stmt.order_by(Movie.added_at.desc(), Movie.id.desc())
        elif sort == "title":
            stmt = stmt.order_by(func.lower(Movie.title), Movie.id)
        elif sort == "year":
            stmt = stmt.order_by(Movie.year.desc().nulls_last(), Movie.added_at.desc(), Movie.id.desc())
        else:
            raise ValidationError(f"sort must be one of {', '.join(SORT_ORDERS)}")
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def add_entry(self, user_id: int, candidate: Mapping[str, Any]) -> AddResult:
        """Add a title to a user's list; adding the same external id twice is a no-op."""
        external_id = clean_text(candidate.get("external_id"))
        title = clean_text(candidate.get("title"))
        if not external_id or not title:
            raise ValidationError("external_id and title are required")
        year = candidate.get("year") or None
        if year is not None and not fits_integer(year):
            raise ValidationError("year is out of range")
        await self.get_user(user_id)

        try:
            movie = await self._insert(
                {
                    "user_id": user_id,
                    "external_id": external_id,
                    "title": title,
                    "poster_url": candidate.get("poster_url") or None,
                    "year": year,
                    "category": candidate.get("category") or None,
                    "added_at": utcnow(),
                }
            )
        except ConflictError:
            logger.info(f"User {user_id} already has '{external_id}'")
            return AddResult()
        logger.info(f"User {user_id} added '{title}' ({external_id})")
        return AddResult(created=movie)

    async def add_manual_entry(
        self,
        user_id: int,
        title: str | None,
        year: int | None = None,
        poster_url: str | None = None,
    ) -> AddResult:
        return await self.add_entry(
            user_id,
            {
                "external_id": new_manual_external_id(),
                "title": title,
                "year": year,
                "poster_url": clean_text(poster_url),
                "category": MANUAL_CATEGORY,
            },
        )

    async def _insert(self, values: dict[str, Any]) -> Movie:
        # The unique constraint decides duplicates; no check-then-insert window
        stmt = (
            self._dialect_insert()
            .values(**values)
            .on_conflict_do_nothing(index_elements=["user_id", "external_id"])
            .returning(Movie)
        )
        try:
            async with transaction(self.db):
                result = await self.db.execute(stmt)
                movie = result.scalars().first()
        except IntegrityError as e:
            # Only the foreign key can still fail here: the user went away since get_user()
            raise NotFoundError(f"User {values['user_id']} not found") from e
        if movie is None:
            raise ConflictError(f"'{values['external_id']}' already on user {values['user_id']}'s list")
        return movie

    def _dialect_insert(self):
        if self.db.get_bind().dialect.name == "postgresql":
            return pg_insert(Movie)
        return sqlite_insert(Movie)

    async def remove_entry(self, user_id: int, entry_id: int) -> None:
        """Delete one entry; it must belong to ``user_id``."""
        if not (fits_integer(user_id) and fits_integer(entry_id)):
            raise NotFoundError(f"Movie {entry_id} not found for user {user_id}")
        async with transaction(self.db):
            result = await self.db.execute(
                delete(Movie).where(Movie.id == entry_id, Movie.user_id == user_id)
            )
        if result.rowcount == 0:
            raise NotFoundError(f"Movie {entry_id} not found for user {user_id}")
        logger.info(f"User {user_id} removed movie {entry_id}")
