from __future__ import annotations

from abc import ABC, abstractmethod


class StoreError(Exception):
    """Any failure talking to the object store (network, auth, I/O)."""


class ObjectNotFoundError(StoreError):
    def __init__(self, path: str) -> None:
        super().__init__(f"object not found: {path}")
        self.path = path


class ObjectStore(ABC):
    """
    Async object-store handle.

    Keys are POSIX-like relative paths. Each call is atomic per object;
    nothing is transactional across objects.
    """

    @abstractmethod
    async def get(self, path: str) -> bytes: ...

    @abstractmethod
    async def put(self, path: str, data: bytes, content_type: str) -> None: ...

    @abstractmethod
    async def delete(self, path: str) -> None: ...
