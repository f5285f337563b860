"""A caller-owned set of stores that can be opened and destroyed together."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, Optional

from ghomap.config import Settings, StoreOptions
from ghomap.store import Ghomap

logger = logging.getLogger(__name__)


class StoreRegistry:
    """Keeps track of stores by name.

    Stores built with `create` are rooted at the registry's data directory.
    Names must be unique within a registry.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self._stores: Dict[str, Ghomap] = {}

    def create(self, options: StoreOptions | str = "default", **kwargs: Any) -> Ghomap:
        store = Ghomap(options, data_dir=self.settings.data_dir, **kwargs)
        return self.add(store)

    def add(self, store: Ghomap) -> Ghomap:
        if store.name in self._stores:
            raise ValueError(f"a store named {store.name!r} is already registered")
        self._stores[store.name] = store
        return store

    def get(self, name: str) -> Ghomap:
        try:
            return self._stores[name]
        except KeyError:
            raise KeyError(f"No store registered under name '{name}'") from None

    def __iter__(self) -> Iterator[Ghomap]:
        return iter(list(self._stores.values()))

    def __len__(self) -> int:
        return len(self._stores)

    def __contains__(self, name: object) -> bool:
        return name in self._stores

    async def open_all(self, callback: Optional[Callable[[str, str, Any], Any]] = None) -> None:
        """Open every registered store, in registration order.

        `callback(store_name, key, value)` is forwarded as the per-entry
        observer of each store's `open()`, e.g. for custom startup logs.
        """
        for store in self:
            on_entry = None
            if callback is not None:
                on_entry = _bind_store_name(callback, store.name)
            await store.open(on_entry)
        logger.debug("Opened %d stores", len(self._stores))

    async def destroy_all(self) -> None:
        """Destroy every store that is currently ready."""
        for store in self:
            if store.is_ready:
                await store.destroy()


def _bind_store_name(callback: Callable[[str, str, Any], Any], name: str) -> Callable[[str, Any], Any]:
    def on_entry(key: str, value: Any) -> Any:
        return callback(name, key, value)
    return on_entry
