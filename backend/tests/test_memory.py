"""Tests for the memory stores handed to nodes."""
import asyncio
import json

import pytest

from nodeflow.config import Settings
from nodeflow.engine.memory import InMemoryStore, JsonFileMemoryStore, make_memory_store


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStore()
    return JsonFileMemoryStore(tmp_path / "memory.json")


class TestMemoryContract:
    def test_get_after_set(self, store):
        async def scenario():
            await store.set("k", {"a": [1, 2]})
            return await store.get("k")
        assert asyncio.run(scenario()) == {"a": [1, 2]}

    def test_missing_key(self, store):
        assert asyncio.run(store.get("nope")) is None

    def test_overwrite(self, store):
        async def scenario():
            await store.set("k", 1)
            await store.set("k", 2)
            return await store.get("k")
        assert asyncio.run(scenario()) == 2

    def test_delete(self, store):
        async def scenario():
            await store.set("k", 1)
            first = await store.delete("k")
            second = await store.delete("k")
            return first, second, await store.get("k")
        assert asyncio.run(scenario()) == (True, False, None)

    def test_clear(self, store):
        async def scenario():
            await store.set("a", 1)
            await store.set("b", 2)
            await store.clear()
            return await store.get("a"), await store.get("b")
        assert asyncio.run(scenario()) == (None, None)

    def test_empty_key_rejected(self, store):
        with pytest.raises(ValueError):
            asyncio.run(store.set("  ", 1))


class TestJsonFileMemoryStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "nested" / "memory.json"
        asyncio.run(JsonFileMemoryStore(path).set("greeting", "hello"))
        assert json.loads(path.read_text()) == {"greeting": "hello"}
        assert asyncio.run(JsonFileMemoryStore(path).get("greeting")) == "hello"

    def test_concurrent_writers_all_persisted(self, tmp_path):
        path = tmp_path / "memory.json"
        store = JsonFileMemoryStore(path)

        async def scenario():
            await asyncio.gather(*(store.set(f"k{i}", i) for i in range(20)))
            await store.delete("k0")

        asyncio.run(scenario())
        on_disk = json.loads(path.read_text())
        assert on_disk == {f"k{i}": i for i in range(1, 20)}
        assert not path.with_suffix(".json.tmp").exists()

    def test_unserializable_value_rejected(self, tmp_path):
        store = JsonFileMemoryStore(tmp_path / "memory.json")
        with pytest.raises(TypeError):
            asyncio.run(store.set("k", object()))
        assert not (tmp_path / "memory.json").exists()


class TestFactory:
    def test_backends(self, tmp_path):
        assert isinstance(make_memory_store(Settings(memory_backend="memory")), InMemoryStore)
        file_store = make_memory_store(
            Settings(memory_backend="file", memory_file=tmp_path / "m.json")
        )
        assert isinstance(file_store, JsonFileMemoryStore)
        assert file_store.path == tmp_path / "m.json"
