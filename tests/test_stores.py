import asyncio
import json

import pytest

from sourcebrief.db.base import BriefStore
from sourcebrief.db.database import SqliteBriefStore
from sourcebrief.db.factory import create_store
from sourcebrief.db.json_file import JsonFileBriefStore
from sourcebrief.db.memory import MemoryBriefStore
from sourcebrief.orchestrator.errors import StorageError

FIRST_SAVE = "2025-01-01T00:00:00.000Z"
SECOND_SAVE = "2026-06-01T12:00:00.000Z"


@pytest.fixture(params=["memory", "file", "sqlite"])
async def store(request, tmp_path):
    if request.param == "memory":
        s = MemoryBriefStore()
    elif request.param == "file":
        s = JsonFileBriefStore(tmp_path / "briefs.json")
    else:
        s = SqliteBriefStore(str(tmp_path / "briefs.db"))
    await s.connect()
    yield s
    await s.close()


async def test_satisfies_protocol(store):
    assert isinstance(store, BriefStore)


async def test_read_your_writes(store, make_brief):
    brief = make_brief()
    await store.append(brief)
    assert await store.get(brief.id) == brief
    assert await store.list_recent(5) == [brief]


async def test_get_unknown(store):
    assert await store.get("00000000-0000-4000-8000-000000000000") is None


async def test_list_recent_returns_newest_first(store, make_brief):
    briefs = [make_brief() for _ in range(7)]
    for b in briefs:
        await store.append(b)
    recent = await store.list_recent(5)
    assert [b.id for b in recent] == [b.id for b in reversed(briefs[2:])]
    assert await store.list_recent(0) == []
    assert len(await store.list_recent(50)) == 7


async def test_mark_saved_is_idempotent(store, make_brief):
    brief = make_brief()
    await store.append(brief)

    first = await store.mark_saved(brief.id, at=FIRST_SAVE)
    assert first.saved_at == FIRST_SAVE
    second = await store.mark_saved(brief.id, at=SECOND_SAVE)
    assert second.saved_at == FIRST_SAVE
    assert (await store.get(brief.id)).saved_at == FIRST_SAVE


async def test_mark_saved_defaults_to_now(store, make_brief):
    brief = make_brief()
    await store.append(brief)
    saved = await store.mark_saved(brief.id)
    assert saved.saved_at is not None
    assert saved.created_at == brief.created_at


async def test_mark_saved_unknown_id(store, make_brief):
    await store.append(make_brief())
    assert await store.mark_saved("00000000-0000-4000-8000-000000000000") is None
    assert await store.count() == 1


async def test_list_saved(store, make_brief):
    briefs = [make_brief() for _ in range(4)]
    for b in briefs:
        await store.append(b)
    await store.mark_saved(briefs[2].id)
    await store.mark_saved(briefs[0].id)
    saved = await store.list_saved()
    assert [b.id for b in saved] == [briefs[0].id, briefs[2].id]
    assert all(b.is_saved for b in saved)


async def test_duplicate_append_rejected(store, make_brief):
    brief = make_brief()
    await store.append(brief)
    with pytest.raises(StorageError):
        await store.append(brief)
    assert await store.count() == 1


async def test_concurrent_appends_are_not_lost(store, make_brief):
    briefs = [make_brief() for _ in range(20)]
    await asyncio.gather(*(store.append(b) for b in briefs))
    assert await store.count() == 20


async def test_check_reports_count(store, make_brief):
    await store.append(make_brief())
    result = await store.check()
    assert result.status == "ok"
    assert "1 briefs" in result.message


async def test_file_store_persists_across_instances(tmp_path, make_brief):
    path = tmp_path / "briefs.json"
    brief = make_brief()
    first = JsonFileBriefStore(path)
    await first.connect()
    await first.append(brief)
    await first.mark_saved(brief.id, at=FIRST_SAVE)

    raw = json.loads(path.read_text())
    assert isinstance(raw, list) and len(raw) == 1
    assert raw[0]["saved_at"] == FIRST_SAVE
    assert "claimA" in raw[0]["conflicts"][0]

    second = JsonFileBriefStore(path)
    await second.connect()
    assert (await second.get(brief.id)).saved_at == FIRST_SAVE


async def test_file_store_reports_corruption(tmp_path):
    path = tmp_path / "briefs.json"
    path.write_text("{not json")
    store = JsonFileBriefStore(path)
    await store.connect()
    assert (await store.check()).status == "error"
    with pytest.raises(StorageError):
        await store.get("anything")


async def test_sqlite_store_persists_across_connections(tmp_path, make_brief):
    path = str(tmp_path / "briefs.db")
    brief = make_brief()
    first = SqliteBriefStore(path)
    await first.connect()
    await first.append(brief)
    await first.close()

    second = SqliteBriefStore(path)
    await second.connect()
    try:
        assert await second.get(brief.id) == brief
    finally:
        await second.close()


async def test_sqlite_store_requires_connect():
    store = SqliteBriefStore(":memory:")
    with pytest.raises(StorageError):
        await store.count()


@pytest.mark.parametrize(
    "backend, cls",
    [("memory", MemoryBriefStore), ("file", JsonFileBriefStore), ("sqlite", SqliteBriefStore)],
)
def test_factory(make_settings, backend, cls):
    assert isinstance(create_store(make_settings(store_backend=backend)), cls)


async def test_file_store_removes_temp_file_on_failed_write(tmp_path, make_brief, monkeypatch):
    store = JsonFileBriefStore(tmp_path / "briefs.json")
    await store.connect()

    def fail_replace(src, dst):
        raise OSError("read-only file system")

    monkeypatch.setattr("sourcebrief.db.json_file.os.replace", fail_replace)
    with pytest.raises(StorageError):
        await store.append(make_brief())
    assert sorted(p.name for p in tmp_path.iterdir()) == ["briefs.json"]
