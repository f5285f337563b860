"""Storage backend interface definitions.

Defines the StorageBackend abstract class the store engine uses to
persist raw payloads. A namespace is one collection (one store); a key is
one entry inside it. Backends deal in bytes only: encoding values is the
job of a `Serializer`.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterable


class StorageBackend(ABC):
    """Abstract storage backend.

    Methods are blocking; the store engine runs them in an executor.
    """

    @abstractmethod
    def ensure_namespace(self, namespace: str) -> None:
        """Create the root location and the `namespace` location if missing."""

    @abstractmethod
    def remove_namespace(self, namespace: str) -> None:
        """Remove the (empty) `namespace` location."""

    @abstractmethod
    def save(self, namespace: str, key: str, data: bytes) -> None:
        """Save `data` under `namespace` and `key`.

        Readers must never observe a partially written payload.
        """

    @abstractmethod
    def load(self, namespace: str, key: str) -> bytes:
        """Load and return the payload stored under `namespace`/`key`.

        Should raise `KeyError` if the key does not exist.
        """

    @abstractmethod
    def delete(self, namespace: str, key: str) -> None:
        """Delete the stored payload. Raise `KeyError` if not found."""

    @abstractmethod
    def list_keys(self, namespace: str) -> Iterable[str]:
        """Return an iterable of keys stored in `namespace`."""

    @abstractmethod
    def exists(self, namespace: str, key: str) -> bool:
        """Return True if `key` exists under `namespace`."""
