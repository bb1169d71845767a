import asyncio
import json

import pytest

from config import Settings
from store import FileStore, MemoryStore, StoreError, build_store


@pytest.mark.asyncio
async def test_memory_store_returns_copies():
    store = MemoryStore()
    value = {"bookings": []}
    await store.set("a", value)
    value["bookings"].append("changed")

    loaded = await store.get("a")
    assert loaded == {"bookings": []}
    loaded["bookings"].append("again")
    assert await store.get("a") == {"bookings": []}


@pytest.mark.asyncio
async def test_memory_store_missing_key_and_delete():
    store = MemoryStore()
    assert await store.get("nope") is None
    await store.delete("nope")
    await store.set("x", 1)
    assert await store.list_keys() == ["x"]
    await store.delete("x")
    assert await store.list_keys() == []


@pytest.mark.asyncio
async def test_memory_store_rejects_non_json_values():
    store = MemoryStore()
    with pytest.raises(StoreError):
        await store.set("bad", {"when": object()})


@pytest.mark.asyncio
async def test_file_store_roundtrip_with_awkward_keys(tmp_path):
    store = FileStore(tmp_path, "bookings")
    await store.set("yoga/mon 9am", {"classId": "yoga/mon 9am"})
    await store.set("pilates", {"classId": "pilates"})

    assert await store.get("yoga/mon 9am") == {"classId": "yoga/mon 9am"}
    assert sorted(await store.list_keys()) == ["pilates", "yoga/mon 9am"]
    # everything stays inside the namespace directory
    assert all(p.parent == tmp_path / "bookings" for p in (tmp_path / "bookings").iterdir())


@pytest.mark.asyncio
async def test_file_store_empty_namespace(tmp_path):
    store = FileStore(tmp_path, "bookings")
    assert await store.list_keys() == []
    assert await store.get("missing") is None
    await store.delete("missing")


@pytest.mark.asyncio
async def test_file_store_corrupt_file_raises(tmp_path):
    store = FileStore(tmp_path, "bookings")
    await store.set("yoga", {"ok": True})
    (tmp_path / "bookings" / "yoga.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        await store.get("yoga")


@pytest.mark.asyncio
async def test_file_store_writes_json(tmp_path):
    store = FileStore(tmp_path, "bookings")
    await store.set("yoga", {"maxSpots": 3})
    with open(tmp_path / "bookings" / "yoga.json", encoding="utf-8") as f:
        assert json.load(f) == {"maxSpots": 3}
    await store.delete("yoga")
    assert not (tmp_path / "bookings" / "yoga.json").exists()


def test_build_store_picks_backend(tmp_path):
    assert isinstance(build_store(Settings(admin_key="k", store_backend="memory")), MemoryStore)
    file_store = build_store(Settings(admin_key="k", store_backend="file", store_dir=tmp_path, namespace="ns"))
    assert isinstance(file_store, FileStore)
    assert file_store.path == tmp_path / "ns"
    with pytest.raises(ValueError):
        build_store(Settings(admin_key="k", store_backend="redis"))


@pytest.mark.asyncio
async def test_file_store_concurrent_writes_to_one_key(tmp_path):
    store = FileStore(tmp_path, "bookings")
    values = [{"classId": "yoga", "bookings": ["x" * (i * 500)]} for i in range(8)]

    for _ in range(25):
        await asyncio.gather(*(store.set("yoga", v) for v in values))
        assert await store.get("yoga") in values

    assert await store.list_keys() == ["yoga"]
    assert [p.name for p in (tmp_path / "bookings").iterdir()] == ["yoga.json"]
