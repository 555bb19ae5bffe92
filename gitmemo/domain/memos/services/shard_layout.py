"""
Domain Service: Shard Layout

Shard file naming: {directory}/{prefix}{YYYYMM}{suffix}.
"""

from typing import Optional

from .shard_key_resolver import MONTH_KEY_PATTERN


class ShardLayout:
    """Builds shard paths and recovers month keys from listed paths."""

    def __init__(
        self,
        directory: str = "data/memos",
        prefix: str = "memos-",
        suffix: str = ".json",
    ):
        self.directory = directory.strip("/")
        self.prefix = prefix
        self.suffix = suffix

    def path_for(self, key: str) -> str:
        return f"{self.directory}/{self.prefix}{key}{self.suffix}"

    def key_from_path(self, path: str) -> Optional[str]:
        """Month key for a shard path, or None if the name does not follow the convention."""
        filename = (path or "").rsplit("/", 1)[-1]
        if not filename.startswith(self.prefix) or not filename.endswith(self.suffix):
            return None
        key = filename[len(self.prefix):len(filename) - len(self.suffix)]
        return key if MONTH_KEY_PATTERN.match(key) else None
