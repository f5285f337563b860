from typing import Protocol, Iterable, runtime_checkable


@runtime_checkable
class StorageProtocol(Protocol):
    """Storage backend protocol mirroring `ghomap.storage.StorageBackend`.

    Implementations should follow the semantics documented on the abstract
    base class in `ghomap.storage.base` (KeyError for missing keys, bytes
    in and out, no torn writes).
    """

    def ensure_namespace(self, namespace: str) -> None: ...

    def remove_namespace(self, namespace: str) -> None: ...

    def save(self, namespace: str, key: str, data: bytes) -> None: ...

    def load(self, namespace: str, key: str) -> bytes: ...

    def delete(self, namespace: str, key: str) -> None: ...

    def list_keys(self, namespace: str) -> Iterable[str]: ...

    def exists(self, namespace: str, key: str) -> bool: ...
