"""
Application Interfaces for Memo Actions

Contracts the use cases depend on. Concrete implementations live in
gitmemo.infrastructure and are wired by MemoStoreFactory.
"""

from typing import Any, Dict, List, Optional, Protocol, Tuple

from gitmemo.domain.images.entities import NormalizedImage
from gitmemo.domain.memos.entities import DeleteResult, Memo, UpdateResult
from gitmemo.domain.memos.services import ShardPage


class ILogger(Protocol):
    """Interface for logging operations."""

    def log_message(
        self,
        trace_id: str,
        direction: str,
        message_type: str,
        payload: Dict[str, Any],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a message with structured metadata."""
        ...

    def log_event(
        self,
        trace_id: str,
        event_type: str,
        data: Dict[str, Any],
        metrics: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log an event with metrics."""
        ...

    def warning(self, message: str) -> None:
        ...


class IMemoRepository(Protocol):
    """Document store operations the memo actions use."""

    async def create(
        self, content: str, images: Optional[List[str]] = None, memo_id: Optional[str] = None
    ) -> Memo:
        ...

    async def update_with_assets(
        self,
        memo_id: str,
        created_time: str,
        content: Optional[str] = None,
        images: Optional[List[str]] = None,
    ) -> UpdateResult:
        ...

    async def delete_with_assets(self, memo_id: str, created_time: str) -> DeleteResult:
        ...

    async def list_month(self, key: str) -> List[Memo]:
        ...

    async def list_months(self, keys: List[str]) -> Dict[str, List[Memo]]:
        ...


class IShardIndex(Protocol):
    async def list_keys(self) -> List[str]:
        ...

    async def paginate(self, end: Optional[str] = None, limit: Any = None) -> ShardPage:
        ...


class IAssetStore(Protocol):
    def validate(self, data: bytes, mime_type: Optional[str]) -> None:
        ...

    def build_path(self, record_id: str, ext: str = "webp") -> str:
        ...

    async def upload(self, data: bytes, mime_type: str, path: str) -> str:
        ...

    async def read(self, path: str) -> Tuple[bytes, str]:
        ...


class INormalizer(Protocol):
    def normalize(
        self,
        raw: bytes,
        source_mime_type: Optional[str],
        budget_bytes: int,
        max_dimension: int,
    ) -> NormalizedImage:
        ...
