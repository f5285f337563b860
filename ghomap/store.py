"""Ghomap: a map-like store persisting each value as one JSON file.

A store owns one collection, laid out on disk as
`<data_dir>/<name>/<key>.json`. With the cache enabled (the default) every
entry is also mirrored in memory and reads never touch the disk.

All operations are coroutines. Blocking filesystem calls run in the event
loop's default executor; those are the only points where an operation
suspends, so cache updates and key validation happen atomically with
respect to other tasks.

Usage:

    store = Ghomap("users", data_dir="data")
    await store.open()
    await store.set("alice", {"score": 3})
    await store.push("admins", "alice")
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import random
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from ghomap.config import StoreOptions, default_data_dir
from ghomap.errors import CorruptEntry, NotReady, TargetTypeError
from ghomap.storage import FileStorageBackend, JSONSerializer, Serializer, StorageProtocol
from ghomap.util import json_equal, validate_key

logger = logging.getLogger(__name__)

Visitor = Callable[[Any, str], Any]


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    """Call a plain or coroutine function and return its (awaited) result."""
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class Ghomap:
    """A single named collection of JSON entries.

    Parameters
    - options: a `StoreOptions` instance, or just the store name.
    - data_dir: root directory holding one subdirectory per store.
      Defaults to `<cwd>/data` at construction time.
    - backend / serializer: override the file backend or the JSON encoding.

    The store must be `open()`-ed before use (a cache-only store is usable
    right away). Every other operation raises `NotReady` until then and
    again after `destroy()`.
    """

    def __init__(
        self,
        options: StoreOptions | str = "default",
        *,
        data_dir: str | Path | None = None,
        backend: Optional[StorageProtocol] = None,
        serializer: Optional[Serializer] = None,
    ) -> None:
        if isinstance(options, str):
            options = StoreOptions(name=validate_key(options))
        self.options = options
        self.name = options.name
        self.use_cache = options.use_cache
        self.cache_only = options.cache_only
        self.fetch_all_on_start = options.fetch_all_on_start
        self.strict_reads = options.strict_reads
        self.data_dir = Path(data_dir) if data_dir is not None else default_data_dir()

        self._serializer: Serializer = serializer or JSONSerializer()
        self._backend: StorageProtocol = backend or FileStorageBackend(
            self.data_dir, extension=self._serializer.extension
        )
        self._cache: Dict[str, Any] = {}
        # key -> latest value a running writer must converge to
        self._pending: Dict[str, Any] = {}
        # key -> future resolved once the key's writer has converged
        self._in_flight: Dict[str, asyncio.Future] = {}
        self._ready = self.cache_only

    # -- lifecycle ---------------------------------------------------------

    async def open(self, on_entry_loaded: Optional[Callable[[str, Any], Any]] = None) -> None:
        """Make this store ready for usage.

        Creates the data and store directories when missing. With
        `fetch_all_on_start` and the cache enabled, every entry on disk is
        loaded into the cache and `on_entry_loaded(key, value)` is called
        for each of them, in key order. Calling `open()` again re-scans.
        """
        if not self.cache_only:
            await self._io(self._backend.ensure_namespace, self.name)
            if self.fetch_all_on_start and self.use_cache:
                for key in await self._io(self._list_keys):
                    value = await self._read(key)
                    if value is None:
                        continue
                    self._cache[key] = value
                    if on_entry_loaded is not None:
                        await _call(on_entry_loaded, key, value)
        self._ready = True
        logger.debug("Opened store %r (%d cached entries)", self.name, len(self._cache))

    async def destroy(self) -> None:
        """Remove the store and all its data: files, directory and cache."""
        self._check_ready("destroy")
        await self._drain_writes()
        await self.delete_all()
        if not self.cache_only:
            await self._io(self._backend.remove_namespace, self.name)
        self._ready = False
        logger.debug("Destroyed store %r", self.name)

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def cache_used(self) -> bool:
        """True when reads are served from memory (`use_cache` or `cache_only`)."""
        return self.use_cache or self.cache_only

    @property
    def path(self) -> Path:
        return self.data_dir / self.name

    # -- core CRUD ---------------------------------------------------------

    async def set(self, key: str, value: Any) -> Any:
        """Store `value` under `key` and return it.

        Returns once the file holds `value` or a value set after it.
        Storing None deletes the key, since None reads back as absent.
        """
        self._check_ready("set")
        validate_key(key)
        if value is None:
            await self.delete(key)
            return None
        data = self._serializer.dump(value)
        if self.cache_used:
            self._cache[key] = value
        if not self.cache_only:
            await self._write(key, value, data)
        return value

    async def get(self, key: str) -> Any:
        """Return the value stored under `key`, or None."""
        self._check_ready("get")
        validate_key(key)
        if self.cache_used:
            return self._cache.get(key)
        return await self._read(key)

    async def has(self, key: str) -> bool:
        self._check_ready("has")
        validate_key(key)
        if self.cache_used:
            return key in self._cache
        return await self._io(self._backend.exists, self.name, key)

    async def delete(self, key: str) -> None:
        """Delete `key`. Deleting an absent key does nothing."""
        self._check_ready("delete")
        validate_key(key)
        if not self.cache_only:
            await self._wait_for_write(key)
            try:
                await self._io(self._backend.delete, self.name, key)
            except KeyError:
                logger.debug("delete(%r): no such entry in store %r", key, self.name)
        self._cache.pop(key, None)

    async def delete_all(self) -> None:
        """Delete every key, including files that hold null or do not parse."""
        self._check_ready("delete_all")
        keys = list(self._cache)
        if not self.cache_only:
            keys += [key for key in await self._io(self._list_keys) if key not in self._cache]
        for key in keys:
            await self.delete(key)

    async def ensure(self, key: str, default_value: Any) -> Any:
        """Return the value under `key`, storing `default_value` first if absent.

        Example:

            counter = await store.ensure("counter", 0)
        """
        self._check_ready("ensure")
        data = await self.get(key)
        if data is None:
            return await self.set(key, default_value)
        return data

    async def count(self) -> int:
        self._check_ready("count")
        if self.cache_used:
            return len(self._cache)
        return len(await self._io(self._list_keys))

    async def random(self) -> Any:
        """Return a uniformly chosen value, or None if the store is empty."""
        self._check_ready("random")
        keys = list(self._cache) if self.cache_used else await self._io(self._list_keys)
        if not keys:
            return None
        return await self.get(random.choice(keys))

    # -- array helpers -----------------------------------------------------

    async def push(self, key: str, *items: Any) -> List[Any]:
        """Append `items` to the list under `key`; returns the appended items."""
        data = await self._get_list(key, "push")
        data.extend(items)
        await self.set(key, data)
        return list(items)

    async def unshift(self, key: str, item: Any) -> Any:
        """Insert `item` at the front of the list under `key` and return it."""
        data = await self._get_list(key, "unshift")
        data.insert(0, item)
        await self.set(key, data)
        return item

    async def pop(self, key: str) -> Any:
        """Remove and return the last item (None for an empty list)."""
        data = await self._get_list(key, "pop")
        item = data.pop() if data else None
        await self.set(key, data)
        return item

    async def shift(self, key: str) -> Any:
        """Remove and return the first item (None for an empty list)."""
        data = await self._get_list(key, "shift")
        item = data.pop(0) if data else None
        await self.set(key, data)
        return item

    async def remove(self, key: str, item: Any) -> Any:
        """Remove the first occurrence of `item`; returns it, or None if missing."""
        data = await self._get_list(key, "remove")
        for index, current in enumerate(data):
            if json_equal(current, item):
                del data[index]
                await self.set(key, data)
                return item
        return None

    async def includes(self, key: str, item: Any) -> bool:
        data = await self._get_list(key, "includes")
        return any(json_equal(current, item) for current in data)

    # -- bulk scans --------------------------------------------------------
    #
    # Each scan works on a snapshot of the entries: the cache when it is
    # used, otherwise one fresh read of the whole directory. Visitors are
    # called as visitor(value, key) one at a time; coroutine visitors are
    # awaited before the next entry is visited.

    async def for_each(self, visitor: Visitor) -> None:
        self._check_ready("for_each")
        for key, value in await self._entries():
            await _call(visitor, value, key)

    async def map(self, visitor: Visitor) -> List[Any]:
        self._check_ready("map")
        return [await _call(visitor, value, key) for key, value in await self._entries()]

    async def some(self, predicate: Visitor) -> bool:
        """True as soon as one entry satisfies `predicate`."""
        self._check_ready("some")
        for key, value in await self._entries():
            if await _call(predicate, value, key):
                return True
        return False

    async def every(self, predicate: Visitor) -> bool:
        """False as soon as one entry fails `predicate`; True for an empty store."""
        self._check_ready("every")
        for key, value in await self._entries():
            if not await _call(predicate, value, key):
                return False
        return True

    async def filter(self, predicate: Visitor) -> Dict[str, Any]:
        """Return the matching entries as a dict, in iteration order."""
        self._check_ready("filter")
        output: Dict[str, Any] = {}
        for key, value in await self._entries():
            if await _call(predicate, value, key):
                output[key] = value
        return output

    async def filter_array(self, predicate: Visitor) -> List[Any]:
        """Like `filter` but returns only the matching values."""
        self._check_ready("filter_array")
        output: List[Any] = []
        for key, value in await self._entries():
            if await _call(predicate, value, key):
                output.append(value)
        return output

    async def find(self, predicate: Visitor) -> Any:
        self._check_ready("find")
        for key, value in await self._entries():
            if await _call(predicate, value, key):
                return value
        return None

    async def fetch_keys(self) -> List[str]:
        """Return every key, as listed on disk (the cache for cache-only stores)."""
        self._check_ready("fetch_keys")
        if self.cache_only:
            return list(self._cache)
        return await self._io(self._list_keys)

    async def fetch_all(self) -> Dict[str, Any]:
        """Read every entry from disk. The cache is left untouched.

        Missing, null and (unless `strict_reads`) unparseable entries are
        skipped.
        """
        self._check_ready("fetch_all")
        return await self._fetch_all()

    async def fetch_values(self) -> List[Any]:
        self._check_ready("fetch_values")
        return list((await self._fetch_all()).values())

    # -- internals ---------------------------------------------------------

    def _check_ready(self, operation: str) -> None:
        if not self._ready:
            raise NotReady(operation)

    async def _io(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    def _list_keys(self) -> List[str]:
        return list(self._backend.list_keys(self.name))

    async def _read(self, key: str) -> Any:
        try:
            raw = await self._io(self._backend.load, self.name, key)
        except KeyError:
            return None
        try:
            return self._serializer.load(raw)
        except CorruptEntry as exc:
            if self.strict_reads:
                raise CorruptEntry(key, str(exc.__cause__ or exc)) from exc
            logger.warning("Ignoring unreadable entry %r in store %r: %s", key, self.name, exc)
            return None

    async def _fetch_all(self) -> Dict[str, Any]:
        if self.cache_only:
            return dict(self._cache)
        entries: Dict[str, Any] = {}
        for key in await self._io(self._list_keys):
            value = await self._read(key)
            if value is not None:
                entries[key] = value
        return entries

    async def _entries(self) -> List[Tuple[str, Any]]:
        if self.cache_used:
            return list(self._cache.items())
        return list((await self._fetch_all()).items())

    async def _get_list(self, key: str, operation: str) -> list:
        self._check_ready(operation)
        data = await self.get(key)
        if not isinstance(data, list):
            raise TargetTypeError(operation)
        return data

    async def _write(self, key: str, value: Any, data: bytes) -> None:
        """Persist `value` (serialized as `data`) with at most one writer per key.

        A call arriving while the key is being written only replaces the
        pending value and waits for the running writer, which keeps
        rewriting until the file matches the latest pending value.
        """
        self._pending[key] = value
        in_flight = self._in_flight.get(key)
        if in_flight is not None:
            await asyncio.shield(in_flight)
            return

        done = asyncio.get_running_loop().create_future()
        self._in_flight[key] = done
        try:
            while True:
                await self._io(self._backend.save, self.name, key, data)
                latest = self._serializer.dump(self._pending[key])
                if latest == data:
                    break
                logger.debug("Newer value for %r in store %r arrived mid-write, rewriting", key, self.name)
                data = latest
        except asyncio.CancelledError:
            done.cancel()
            raise
        except Exception as exc:
            done.set_exception(exc)
            # the writer re-raises below; waiters, if any, get it via the future
            done.exception()
            raise
        else:
            done.set_result(None)
        finally:
            del self._in_flight[key]
            del self._pending[key]

    async def _wait_for_write(self, key: str) -> None:
        in_flight = self._in_flight.get(key)
        if in_flight is not None:
            await asyncio.wait({in_flight})

    async def _drain_writes(self) -> None:
        if self._in_flight:
            await asyncio.wait(set(self._in_flight.values()))
