"""Storage abstraction package for ghomap."""

from .base import StorageBackend
from .file_backend import FileStorageBackend
from .interfaces import StorageProtocol
from .serializer import JSONSerializer, Serializer

__all__ = ["StorageBackend", "FileStorageBackend", "StorageProtocol", "JSONSerializer", "Serializer"]
