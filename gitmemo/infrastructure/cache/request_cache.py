"""
Infrastructure: Request-Scoped Read Cache

Memoizes remote reads for the lifetime of one incoming request. A new
cache is built per request by the factory and dropped afterwards; nothing
here is process-wide.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from gitmemo.domain.errors import StoreError
from gitmemo.domain.memos.repositories import DirEntry, IRemoteObjectClient, RemoteObject

CacheKey = Tuple[str, str]


def parent_dir(path: str) -> str:
    return path.strip("/").rsplit("/", 1)[0] if "/" in path.strip("/") else ""


class RequestReadCache:
    """
    Read-through memo of in-flight and finished reads.

    Concurrent reads of one key share a single task. Failures (NotFound
    included) are memoized too, for the same request only; every caller
    receives its own copy of the error.
    """

    def __init__(self):
        self._entries: Dict[CacheKey, asyncio.Future] = {}
        self.hits = 0
        self.misses = 0

    async def get_or_load(self, kind: str, path: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        key = (kind, path.strip("/"))
        task = self._entries.get(key)
        if task is None:
            self.misses += 1
            task = asyncio.ensure_future(loader())
            self._entries[key] = task
        else:
            self.hits += 1
        # A cancelled caller must not cancel the shared read
        try:
            return await asyncio.shield(task)
        except StoreError as e:
            # Each caller annotates its own copy of a memoized failure
            raise e.clone().with_traceback(e.__traceback__) from e.__cause__

    def invalidate(self, path: str) -> None:
        """Forget a written path and the listing of its directory."""
        clean = path.strip("/")
        self._entries.pop(("object", clean), None)
        self._entries.pop(("dir", parent_dir(clean)), None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class CachedObjectClient:
    """
    IRemoteObjectClient decorator that reads through a RequestReadCache
    and invalidates on every write through it.
    """

    def __init__(self, client: IRemoteObjectClient, cache: Optional[RequestReadCache] = None):
        self.client = client
        self.cache = cache or RequestReadCache()

    async def get_bytes(self, path: str) -> RemoteObject:
        return await self.cache.get_or_load("object", path, lambda: self.client.get_bytes(path))

    async def get_text(self, path: str) -> Tuple[str, str]:
        obj = await self.get_bytes(path)
        return obj.text, obj.version

    async def list_dir(self, path: str) -> List[DirEntry]:
        entries = await self.cache.get_or_load("dir", path, lambda: self.client.list_dir(path))
        return list(entries)

    async def put_text(
        self, path: str, content: str, message: str, expected_version: Optional[str] = None
    ) -> str:
        try:
            return await self.client.put_text(path, content, message, expected_version)
        finally:
            self.cache.invalidate(path)

    async def put_bytes(
        self, path: str, content: bytes, message: str, expected_version: Optional[str] = None
    ) -> str:
        try:
            return await self.client.put_bytes(path, content, message, expected_version)
        finally:
            self.cache.invalidate(path)

    async def delete_object(
        self, path: str, message: str, expected_version: Optional[str] = None
    ) -> bool:
        try:
            return await self.client.delete_object(path, message, expected_version)
        finally:
            self.cache.invalidate(path)
