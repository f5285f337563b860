"""File-backed storage backend.

This backend stores one payload per file under
`<data_dir>/<namespace>/<key><extension>` (`.json` by default). Writes go
to a temporary file first and are then renamed over the target, so a
reader sees either the old or the new payload.
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable

from ghomap.util import ensure_dir
from .base import StorageBackend

logger = logging.getLogger(__name__)


class FileStorageBackend(StorageBackend):
    def __init__(self, data_dir: str | Path = "./data", extension: str = ".json") -> None:
        self.data_dir = Path(data_dir)
        if not extension.startswith('.'):
            extension = '.' + extension
        self.extension = extension

    def _ns_dir(self, namespace: str) -> Path:
        return self.data_dir / namespace

    def _path_for(self, namespace: str, key: str) -> Path:
        return self._ns_dir(namespace) / f"{key}{self.extension}"

    def ensure_namespace(self, namespace: str) -> None:
        ensure_dir(self.data_dir)
        ensure_dir(self._ns_dir(namespace))

    def remove_namespace(self, namespace: str) -> None:
        ns = self._ns_dir(namespace)
        # leftovers of interrupted saves
        for tmp in ns.glob(f"*{self.extension}.tmp"):
            tmp.unlink()
        ns.rmdir()
        logger.debug("Removed directory %s", ns)

    def save(self, namespace: str, key: str, data: bytes) -> None:
        path = self._path_for(namespace, key)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "wb") as f:
            f.write(data)
        tmp.replace(path)

    def load(self, namespace: str, key: str) -> bytes:
        path = self._path_for(namespace, key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            raise KeyError(key) from None

    def delete(self, namespace: str, key: str) -> None:
        path = self._path_for(namespace, key)
        try:
            path.unlink()
        except FileNotFoundError:
            raise KeyError(key) from None

    def list_keys(self, namespace: str) -> Iterable[str]:
        ns = self._ns_dir(namespace)
        for p in sorted(ns.iterdir()):
            if p.is_file() and p.suffix == self.extension:
                yield p.stem

    def exists(self, namespace: str, key: str) -> bool:
        return self._path_for(namespace, key).exists()
