"""
Domain Services for Memos

Pure logic: timestamp-to-shard mapping, shard file naming and pagination.
"""

from .shard_key_resolver import (
    ShardKeyResolver,
    is_month_key,
    MONTH_KEY_PATTERN,
    TIME_FORMAT,
)
from .shard_layout import ShardLayout
from .shard_pagination import ShardPaginator, ShardPage

__all__ = [
    "ShardKeyResolver",
    "is_month_key",
    "MONTH_KEY_PATTERN",
    "TIME_FORMAT",
    "ShardLayout",
    "ShardPaginator",
    "ShardPage",
]
