import asyncio
import json
import threading
import time

import pytest

from ghomap import Ghomap, StoreOptions
from ghomap.storage import FileStorageBackend


class SlowBackend(FileStorageBackend):
    """File backend whose writes take a while and are counted."""

    def __init__(self, data_dir, delay=0.05, fail_first=False):
        super().__init__(data_dir)
        self.delay = delay
        self.fail_first = fail_first
        self.lock = threading.Lock()
        self.active = 0
        self.max_active = 0
        self.writes = []

    def save(self, namespace, key, data):
        with self.lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            if self.fail_first:
                self.fail_first = False
                raise OSError("disk full")
            super().save(namespace, key, data)
            with self.lock:
                self.writes.append(data)
        finally:
            with self.lock:
                self.active -= 1


@pytest.fixture(params=[True, False], ids=["cached", "disk"])
def use_cache(request):
    return request.param


def make_store(tmp_path, use_cache, **backend_opts):
    backend = SlowBackend(tmp_path, **backend_opts)
    store = Ghomap(StoreOptions(name="default", use_cache=use_cache), data_dir=tmp_path, backend=backend)
    return store, backend


def on_disk(tmp_path, key):
    return json.loads((tmp_path / "default" / f"{key}.json").read_text(encoding="utf-8"))


def test_second_set_is_picked_up_by_running_writer(tmp_path, use_cache):
    db, backend = make_store(tmp_path, use_cache)

    async def scenario():
        await db.open()
        first = asyncio.create_task(db.set("key", "A"))
        await asyncio.sleep(0)
        second = db.set("key", "B")
        results = await asyncio.gather(first, second)
        return results, await db.get("key")

    results, value = asyncio.run(scenario())
    assert results == ["A", "B"]
    assert value == "B"
    assert on_disk(tmp_path, "key") == "B"
    assert backend.writes == [b'"A"', b'"B"']
    assert backend.max_active == 1


def test_burst_of_sets_converges_to_last_value(tmp_path, use_cache):
    db, backend = make_store(tmp_path, use_cache)

    async def scenario():
        await db.open()
        await asyncio.gather(*(db.set("key", i) for i in range(10)))

    asyncio.run(scenario())
    assert on_disk(tmp_path, "key") == 9
    assert backend.writes[0] == b"0"
    assert backend.writes[-1] == b"9"
    assert len(backend.writes) < 10
    assert backend.max_active == 1
    assert db._in_flight == {}
    assert db._pending == {}


def test_same_value_again_does_not_rewrite(tmp_path, use_cache):
    db, backend = make_store(tmp_path, use_cache)

    async def scenario():
        await db.open()
        await asyncio.gather(db.set("key", [1]), db.set("key", [1]))

    asyncio.run(scenario())
    assert backend.writes == [b"[1]"]


def test_failed_write_reaches_every_caller(tmp_path, use_cache):
    db, backend = make_store(tmp_path, use_cache, fail_first=True)

    async def scenario():
        await db.open()
        first = asyncio.create_task(db.set("key", "A"))
        await asyncio.sleep(0)
        results = await asyncio.gather(first, db.set("key", "B"), return_exceptions=True)
        # the marker is cleared, so the key can be written again
        await db.set("key", "C")
        return results

    results = asyncio.run(scenario())
    assert all(isinstance(r, OSError) for r in results)
    assert on_disk(tmp_path, "key") == "C"
    assert db._in_flight == {}


def test_delete_waits_for_running_write(tmp_path, use_cache):
    db, backend = make_store(tmp_path, use_cache)

    async def scenario():
        await db.open()
        pending = asyncio.create_task(db.set("key", "A"))
        await asyncio.sleep(0)
        await db.delete("key")
        await pending
        return await db.has("key")

    assert asyncio.run(scenario()) is False
    assert not (tmp_path / "default" / "key.json").exists()


def test_destroy_waits_for_running_writes(tmp_path, use_cache):
    db, backend = make_store(tmp_path, use_cache)

    async def scenario():
        await db.open()
        pending = [asyncio.create_task(db.set(key, 1)) for key in ("alpha", "bravo")]
        await asyncio.sleep(0)
        await db.destroy()
        await asyncio.gather(*pending)

    asyncio.run(scenario())
    assert not (tmp_path / "default").exists()
