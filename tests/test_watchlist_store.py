from __future__ import annotations

import pytest
from sqlalchemy import func, select

from watchlog.errors import NotFoundError, ValidationError
from watchlog.models import Movie
from watchlog.services.watchlist import MANUAL_PREFIX, WatchlistStore


async def _count(db, user_id: int) -> int:
    return await db.scalar(select(func.count()).select_from(Movie).where(Movie.user_id == user_id))


def test_seeded_users_are_listed_by_id(run):
    async def scenario(Session):
        async with Session() as db:
            store = WatchlistStore(db)
            users = await store.list_users()
            assert [(u.id, u.name) for u in users] == [(1, "Person 1"), (2, "Person 2"), (3, "Person 3")]
            # Not seeded twice
            assert await store.seed_users(["Someone else"]) == 0

    run(scenario)


def test_add_then_add_again_reports_already_exists(run):
    async def scenario(Session):
        async with Session() as db:
            store = WatchlistStore(db)
            assert await store.list_entries(1) == []

            first = await store.add_entry(1, {"external_id": "tt001", "title": "Example"})
            assert not first.already_exists
            assert first.created.id is not None
            assert first.created.added_at is not None
            assert len(await store.list_entries(1)) == 1

            second = await store.add_entry(1, {"external_id": "tt001", "title": "Example"})
            assert second.already_exists
            assert second.created is None
            # The first result is still readable after the duplicate
            assert first.created.external_id == "tt001"
            assert len(await store.list_entries(1)) == 1

    run(scenario)


def test_same_external_id_is_allowed_for_different_users(run):
    async def scenario(Session):
        async with Session() as db:
            store = WatchlistStore(db)
            a = await store.add_entry(1, {"external_id": 169, "title": "Breaking Bad"})
            b = await store.add_entry(2, {"external_id": "169", "title": "Breaking Bad"})
            assert not a.already_exists and not b.already_exists
            # Numeric ids are stored as text, so 169 and "169" are the same title
            again = await store.add_entry(1, {"external_id": "169", "title": "Breaking Bad"})
            assert again.already_exists
            assert a.created.external_id == "169"

    run(scenario)


def test_added_at_is_set_by_the_store(run):
    async def scenario(Session):
        async with Session() as db:
            result = await WatchlistStore(db).add_entry(
                1, {"external_id": "tt1", "title": "Old", "added_at": "1990-01-01T00:00:00Z"}
            )
            assert result.created.added_at.year != 1990

    run(scenario)


@pytest.mark.parametrize(
    "candidate",
    [
        {"title": "No id"},
        {"external_id": "tt1"},
        {"external_id": "  ", "title": "Blank id"},
        {"external_id": "tt1", "title": "   "},
        {"external_id": None, "title": None},
    ],
)
def test_add_requires_external_id_and_title(run, candidate):
    async def scenario(Session):
        async with Session() as db:
            with pytest.raises(ValidationError):
                await WatchlistStore(db).add_entry(1, candidate)
            assert await _count(db, 1) == 0

    run(scenario)


def test_add_for_unknown_user_is_not_found(run):
    async def scenario(Session):
        async with Session() as db:
            store = WatchlistStore(db)
            with pytest.raises(NotFoundError):
                await store.add_entry(99, {"external_id": "tt1", "title": "Ghost"})
            with pytest.raises(NotFoundError):
                await store.list_entries(99)

    run(scenario)


def test_year_is_not_validated(run):
    async def scenario(Session):
        async with Session() as db:
            result = await WatchlistStore(db).add_entry(1, {"external_id": "x", "title": "Odd", "year": -5})
            assert result.created.year == -5

    run(scenario)


def test_remove_is_scoped_to_the_owner(run):
    async def scenario(Session):
        async with Session() as db:
            store = WatchlistStore(db)
            entry = (await store.add_entry(1, {"external_id": "tt1", "title": "Mine"})).created

            with pytest.raises(NotFoundError):
                await store.remove_entry(2, entry.id)
            assert await _count(db, 1) == 1

            await store.remove_entry(1, entry.id)
            assert await _count(db, 1) == 0

            with pytest.raises(NotFoundError):
                await store.remove_entry(1, entry.id)

    run(scenario)


def test_list_entries_newest_first_and_other_orders(run):
    async def scenario(Session):
        async with Session() as db:
            store = WatchlistStore(db)
            await store.add_entry(1, {"external_id": "a", "title": "beta", "year": 2001})
            await store.add_entry(1, {"external_id": "b", "title": "Alpha", "year": None})
            await store.add_entry(1, {"external_id": "c", "title": "Gamma", "year": 2020})
            await store.add_entry(2, {"external_id": "d", "title": "Other user"})

            assert [m.external_id for m in await store.list_entries(1)] == ["c", "b", "a"]
            assert [m.title for m in await store.list_entries(1, sort="title")] == ["Alpha", "beta", "Gamma"]
            assert [m.external_id for m in await store.list_entries(1, sort="year")] == ["c", "a", "b"]
            assert [m.title for m in await store.list_entries(1, query="ALP")] == ["Alpha"]

            with pytest.raises(ValidationError):
                await store.list_entries(1, sort="rating")

    run(scenario)


def test_manual_entries_never_collide_with_provider_ids(run):
    async def scenario(Session):
        async with Session() as db:
            store = WatchlistStore(db)
            for i in range(1000):
                manual = await store.add_manual_entry(1, f"Home video {i}", year=2000 + i % 20)
                assert not manual.already_exists
                assert manual.created.external_id.startswith(MANUAL_PREFIX)
                assert manual.created.category == "manual"
            for i in range(1000):
                provider_id = str(i + 1) if i % 2 else f"tt{i:07d}"
                provided = await store.add_entry(1, {"external_id": provider_id, "title": f"Show {i}"})
                assert not provided.already_exists

            entries = await store.list_entries(1)
            assert len(entries) == 2000
            assert len({m.external_id for m in entries}) == 2000

    run(scenario)


def test_manual_entry_requires_title(run):
    async def scenario(Session):
        async with Session() as db:
            with pytest.raises(ValidationError):
                await WatchlistStore(db).add_manual_entry(1, "  ")

    run(scenario)


def test_earlier_results_survive_failed_operations(run):
    async def scenario(Session):
        async with Session() as db:
            store = WatchlistStore(db)
            kept = (await store.add_entry(1, {"external_id": "tt1", "title": "Kept"})).created
            other = (await store.add_entry(2, {"external_id": "tt2", "title": "Other"})).created

            assert (await store.add_entry(1, {"external_id": "tt1", "title": "Kept"})).already_exists
            with pytest.raises(NotFoundError):
                await store.remove_entry(1, other.id)
            with pytest.raises(NotFoundError):
                await store.add_entry(99, {"external_id": "tt3", "title": "Nobody"})

            assert (kept.title, kept.user_id) == ("Kept", 1)
            assert [m.id for m in await store.list_entries(1)] == [kept.id]
            await store.remove_entry(2, other.id)
            assert await store.list_entries(2) == []

    run(scenario)


def test_out_of_range_integers_are_rejected(run):
    async def scenario(Session):
        async with Session() as db:
            store = WatchlistStore(db)
            with pytest.raises(ValidationError):
                await store.add_entry(1, {"external_id": "tt1", "title": "Huge", "year": 10**20})
            with pytest.raises(NotFoundError):
                await store.add_entry(10**20, {"external_id": "tt1", "title": "Huge"})
            with pytest.raises(NotFoundError):
                await store.list_entries(10**20)
            with pytest.raises(NotFoundError):
                await store.remove_entry(1, 10**20)
            assert await _count(db, 1) == 0

    run(scenario)
