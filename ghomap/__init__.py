"""ghomap: a map-like key-value store keeping each value in its own JSON file."""

from .config import Settings, StoreOptions, load_settings
from .errors import CorruptEntry, GhomapError, InvalidKey, NotReady, NotSerializable, TargetTypeError
from .registry import StoreRegistry
from .store import Ghomap

__all__ = [
    "Ghomap",
    "StoreRegistry",
    "StoreOptions",
    "Settings",
    "load_settings",
    "GhomapError",
    "NotReady",
    "InvalidKey",
    "NotSerializable",
    "TargetTypeError",
    "CorruptEntry",
]
