"""
Domain Entity: Shard

All memos created in one calendar month, persisted as one JSON document.
A shard is only ever replaced as a whole, so every mutation here returns
a new Shard carrying the version it was read at.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from gitmemo.domain.errors import NotFoundError
from .memo import Memo


def sort_records(records: List[Memo]) -> List[Memo]:
    """Newest first. Canonical timestamps sort lexicographically."""
    return sorted(records, key=lambda m: m.created_time, reverse=True)


@dataclass
class Shard:
    """
    One month of memos.

    Attributes:
        key: Month key "YYYYMM"
        records: Memos, newest first
        version: Remote version token the shard was read at,
                 None when the shard document does not exist yet
    """

    key: str
    records: List[Memo] = field(default_factory=list)
    version: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.version is not None

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, memo_id: str) -> bool:
        return self.index_of(memo_id) is not None

    def index_of(self, memo_id: str) -> Optional[int]:
        for i, memo in enumerate(self.records):
            if memo.id == memo_id:
                return i
        return None

    def get(self, memo_id: str) -> Memo:
        i = self.index_of(memo_id)
        if i is None:
            raise NotFoundError("Memo not found", context={"memo_id": memo_id, "shard": self.key})
        return self.records[i]

    def prepend(self, memo: Memo) -> "Shard":
        records = sort_records([memo] + [m for m in self.records if m.id != memo.id])
        return Shard(key=self.key, records=records, version=self.version)

    def replace(self, memo: Memo) -> Tuple["Shard", Memo]:
        """Swap in a revised memo at its current position; returns (shard, old memo)."""
        i = self.index_of(memo.id)
        if i is None:
            raise NotFoundError("Memo not found", context={"memo_id": memo.id, "shard": self.key})
        old = self.records[i]
        records = list(self.records)
        records[i] = memo
        return Shard(key=self.key, records=records, version=self.version), old

    def remove(self, memo_id: str) -> Tuple["Shard", Memo]:
        removed = self.get(memo_id)
        records = [m for m in self.records if m.id != memo_id]
        return Shard(key=self.key, records=records, version=self.version), removed

    def to_wire(self) -> List[dict]:
        return [memo.to_dict() for memo in self.records]
