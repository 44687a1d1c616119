import asyncio
from types import SimpleNamespace

from backend.app import store as store_module
from backend.app.contracts import UserVibeProfile, VibeVector
from backend.app.store import MemoryStore, ProfileRepository


def test_memory_store_returns_copies():
    store = MemoryStore()

    async def scenario():
        value = {"items": [1, 2]}
        await store.set("k", value)
        value["items"].append(3)
        first = await store.get("k")
        first["items"].append(4)
        return await store.get("k")

    assert asyncio.run(scenario()) == {"items": [1, 2]}


def test_memory_store_evicts_least_recently_used():
    store = MemoryStore(max_entries=2)

    async def scenario():
        await store.set("a", 1)
        await store.set("b", 2)
        await store.get("a")
        await store.set("c", 3)
        return await store.get("a"), await store.get("b"), await store.get("c")

    assert asyncio.run(scenario()) == (1, None, 3)
    assert len(store) == 2


def test_memory_store_expires_entries(monkeypatch):
    clock = {"now": 1000.0}
    monkeypatch.setattr(store_module, "time", SimpleNamespace(monotonic=lambda: clock["now"]))
    store = MemoryStore()

    async def put():
        await store.set("k", "v", ttl_seconds=10)
        await store.set("forever", "v")

    asyncio.run(put())
    clock["now"] += 11
    assert asyncio.run(store.get("k")) is None
    assert asyncio.run(store.get("forever")) == "v"


def test_profile_repository_round_trip():
    repository = ProfileRepository(MemoryStore())
    profile = UserVibeProfile(id="u1", vibe_vector=VibeVector(lighting=12), favorite_photos=["dim-romantic"])

    async def scenario():
        await repository.put(profile)
        loaded = await repository.get("u1")
        await repository.delete("u1")
        return loaded, await repository.get("u1")

    loaded, gone = asyncio.run(scenario())
    assert loaded.vibe_vector.lighting == 12
    assert loaded.favorite_photos == ["dim-romantic"]
    assert gone is None
