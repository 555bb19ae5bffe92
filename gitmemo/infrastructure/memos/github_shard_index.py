"""
Infrastructure: GitHub Shard Index

Recomputes the shard index from a directory listing on every query.
Nothing is persisted, so the index is only as fresh as the listing.
"""

from typing import Any, List, Optional

from gitmemo.domain.errors import StoreError
from gitmemo.domain.memos.repositories import IRemoteObjectClient
from gitmemo.domain.memos.services import ShardLayout, ShardPage, ShardPaginator, is_month_key
from gitmemo.logging_utils import StructuredLogger, ComponentType


class GitHubShardIndex:
    """Lists shard keys newest first and windows them for pagination."""

    def __init__(
        self,
        client: IRemoteObjectClient,
        layout: Optional[ShardLayout] = None,
        paginator: Optional[ShardPaginator] = None,
    ):
        self.client = client
        self.layout = layout or ShardLayout()
        self.paginator = paginator or ShardPaginator()
        self.logger = StructuredLogger(ComponentType.INDEX_SERVICE)

    async def list_keys(self) -> List[str]:
        """Month keys of existing shard files, strictly descending."""
        try:
            entries = await self.client.list_dir(self.layout.directory)
        except StoreError as e:
            raise e.with_context(operation="list_shards", directory=self.layout.directory)

        keys = set()
        for entry in entries:
            if entry.type != "file":
                continue
            key = self.layout.key_from_path(entry.name)
            if key is None or not is_month_key(key):
                continue
            keys.add(key)

        ordered = sorted(keys, reverse=True)
        self.logger.logger.debug(f"Shard index: {len(ordered)} shard(s) in {self.layout.directory}")
        return ordered

    async def paginate(self, end: Optional[str] = None, limit: Any = None) -> ShardPage:
        """Window of at most limit shards starting at end (clamped, never rejected)."""
        return self.paginator.paginate(await self.list_keys(), end, limit)
