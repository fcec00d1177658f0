from .base import ObjectNotFoundError, ObjectStore, StoreError
from .filesystem import FilesystemObjectStore
from .registry import build_store

__all__ = [
    "ObjectNotFoundError",
    "ObjectStore",
    "StoreError",
    "FilesystemObjectStore",
    "build_store",
]
