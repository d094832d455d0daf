# ruff: noqa: INP001
"""Entity store: commit discipline, change sets and secondary-context merges."""

from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import DateTime
from sqlmodel import SQLModel, col

from doneday.core.errors import StoreSaveFailed
from doneday.core.result import Err, Ok
from doneday.db.store import ChangeSet, EntityStore, RecordChange
from doneday.models import Area, Project, Tag, Task


async def _insert_area(store: EntityStore, name: str = "Home") -> Area:
    async with store.primary() as ctx:
        area = Area(name=name)
        ctx.insert(area)
        (await ctx.commit()).unwrap()
    return area


@pytest.mark.asyncio
async def test_commit_without_changes_is_a_silent_noop(store: EntityStore) -> None:
    published: list[ChangeSet] = []
    store.subscribe(published.append)

    async with store.primary() as ctx:
        assert await ctx.commit() == Ok(None)

    assert published == []


@pytest.mark.asyncio
async def test_commit_publishes_inserts_and_updates(store: EntityStore) -> None:
    published: list[ChangeSet] = []
    store.subscribe(published.append)

    area = await _insert_area(store)
    async with store.primary() as ctx:
        area.name = "Household"
        (await ctx.commit()).unwrap()

    inserted, updated = published
    assert inserted.origin == "primary"
    assert inserted.changes[0].entity == "areas"
    assert inserted.changes[0].operation == "insert"
    assert inserted.changes[0].record_id == area.id
    assert updated.changes[0].operation == "update"
    assert "name" in updated.changes[0].fields
    assert updated.touches("areas", {"name"})
    assert not updated.touches("areas", {"color"})
    assert not updated.touches("tasks")


def test_inserts_and_deletes_touch_every_field() -> None:
    changeset = ChangeSet(
        origin="test",
        changes=(RecordChange("tasks", "a", "delete"),),
    )
    assert changeset.touches("tasks", {"reminder_time"})


@pytest.mark.asyncio
async def test_secondary_commit_is_visible_to_primary_before_next_read(
    store: EntityStore,
) -> None:
    area = await _insert_area(store)

    async with store.secondary("import") as ctx:
        copy = (await ctx.get(Area, area.id)).unwrap()
        assert copy is not None
        copy.name = "Renamed elsewhere"
        (await ctx.commit()).unwrap()

    assert store.pending_merges == 1
    async with store.primary() as ctx:
        reloaded = (await ctx.get(Area, area.id)).unwrap()
    assert reloaded is area
    assert area.name == "Renamed elsewhere"
    assert store.pending_merges == 0


@pytest.mark.asyncio
async def test_secondary_delete_is_expunged_from_primary(store: EntityStore) -> None:
    area = await _insert_area(store)

    async with store.secondary() as ctx:
        copy = (await ctx.get(Area, area.id)).unwrap()
        await ctx.delete(copy)
        (await ctx.commit()).unwrap()

    async with store.primary() as ctx:
        assert (await ctx.get(Area, area.id)).unwrap() is None


@pytest.mark.asyncio
async def test_failed_commit_leaves_committed_state_untouched(store: EntityStore) -> None:
    async with store.primary() as ctx:
        existing = Tag(name="home")
        ctx.insert(existing)
        (await ctx.commit()).unwrap()

    async with store.primary() as ctx:
        existing.color = "red"
        ctx.insert(Tag(name="home"))
        result = await ctx.commit()

    assert isinstance(result, Err)
    assert isinstance(result.error, StoreSaveFailed)
    assert existing.color is None

    async with store.primary() as ctx:
        rows = (await ctx.fetch(Tag)).unwrap()
    assert [row.name for row in rows] == ["home"]


@pytest.mark.asyncio
async def test_fetch_applies_predicates_order_and_limit(store: EntityStore) -> None:
    for name in ("Work", "Health", "Home"):
        await _insert_area(store, name)

    async with store.primary() as ctx:
        ordered = (await ctx.fetch(Area, order_by=(col(Area.name).asc(),))).unwrap()
        first_h = (
            await ctx.fetch_one(Area, col(Area.name).startswith("H"), order_by=(col(Area.name),))
        ).unwrap()

    assert [area.name for area in ordered] == ["Health", "Home", "Work"]
    assert first_h is not None and first_h.name == "Health"


@pytest.mark.asyncio
async def test_clear_all_removes_every_record(store: EntityStore) -> None:
    await _insert_area(store)
    async with store.primary() as ctx:
        ctx.insert(Tag(name="errand"))
        (await ctx.commit()).unwrap()

    assert (await store.clear_all()).is_ok

    async with store.primary() as ctx:
        assert (await ctx.fetch(Area)).unwrap() == []
        assert (await ctx.fetch(Tag)).unwrap() == []


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_commit(store: EntityStore) -> None:
    def _explode(_: ChangeSet) -> None:
        raise RuntimeError("listener bug")

    store.subscribe(_explode)
    area = await _insert_area(store)
    assert area.id is not None


@pytest.mark.parametrize("model", [Area, Project, Tag, Task])
def test_timestamp_columns_use_plain_naive_datetime(model: type[SQLModel]) -> None:
    table = model.__table__  # type: ignore[attr-defined]

    for name in ("created_at", "updated_at"):
        column_type = table.c[name].type
        assert type(column_type) is DateTime
        assert column_type.timezone is False


def test_task_schedule_columns_use_plain_naive_datetime() -> None:
    table = Task.__table__  # type: ignore[attr-defined]

    for name in ("due_date", "start_date", "completed_at", "reminder_time"):
        assert type(table.c[name].type) is DateTime
        assert table.c[name].type.timezone is False


@pytest.mark.asyncio
async def test_naive_timestamps_round_trip(store: EntityStore) -> None:
    due = datetime(2026, 3, 11, 9, 30)
    async with store.primary() as ctx:
        task = Task(title="Buy milk", due_date=due, reminder_time=due)
        ctx.insert(task)
        (await ctx.commit()).unwrap()

    async with store.secondary("check") as ctx:
        found = (await ctx.fetch(Task, col(Task.due_date) <= due)).unwrap()

    assert [item.title for item in found] == ["Buy milk"]
    assert found[0].reminder_time == due
    assert found[0].created_at.tzinfo is None
