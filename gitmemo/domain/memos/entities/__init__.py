"""
Domain Entities for Memos

Pure domain objects with no external dependencies.
"""

from .memo import Memo, dedupe_paths
from .shard import Shard, sort_records
from .mutation_result import UpdateResult, DeleteResult

__all__ = [
    "Memo",
    "Shard",
    "dedupe_paths",
    "sort_records",
    "UpdateResult",
    "DeleteResult",
]
