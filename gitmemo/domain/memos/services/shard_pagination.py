"""
Domain Service: Shard Pagination

Windows over the descending shard index. "end" names the newest shard of
the window and "limit" how many shards it spans. Out-of-range input is
clamped, never rejected.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .shard_key_resolver import is_month_key

DASHED_MONTH_PATTERN = re.compile(r"^\d{4}-\d{2}$")


@dataclass
class ShardPage:
    """One window of shard keys."""

    keys: List[str] = field(default_factory=list)
    end: str = ""
    limit: int = 0
    total_available: int = 0

    @property
    def has_more(self) -> bool:
        return self.limit < self.total_available

    def to_dict(self) -> dict:
        return {
            "keys": list(self.keys),
            "end": self.end,
            "limit": self.limit,
            "total_available": self.total_available,
            "has_more": self.has_more,
        }


class ShardPaginator:
    """
    Args:
        default_page_size: Shards per page when no usable limit is given;
            also the minimum page when at least that many shards remain
    """

    def __init__(self, default_page_size: int = 2):
        self.default_page_size = max(1, default_page_size)

    def normalize_end(self, end: Optional[str], index: List[str]) -> str:
        """Resolve an end key against the index, falling back to the newest shard."""
        fallback = index[0] if index else ""
        if not end:
            return fallback
        value = str(end).strip()
        if DASHED_MONTH_PATTERN.match(value):
            value = value.replace("-", "")
        if not is_month_key(value) or value not in index:
            return fallback
        return value

    def clamp_limit(self, value: Any, total: int) -> int:
        if total <= 0:
            return 0
        minimum = min(self.default_page_size, total)
        try:
            number = float(value)
        except (TypeError, ValueError):
            return minimum
        if not math.isfinite(number):
            return minimum
        return min(max(minimum, int(math.floor(number))), total)

    def paginate(self, index: List[str], end: Optional[str], limit: Any) -> ShardPage:
        if not index:
            return ShardPage()
        end_key = self.normalize_end(end, index)
        start = index.index(end_key)
        available = max(0, len(index) - start)
        count = self.clamp_limit(limit, available)
        return ShardPage(
            keys=index[start:start + count],
            end=end_key,
            limit=count,
            total_available=available,
        )
