"""
Domain Entity: Memo

A short timestamped note. createdTime never changes after creation and
decides which monthly shard holds the memo.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional

from gitmemo.models import MemoPayload
from gitmemo.domain.errors import ValidationError


def dedupe_paths(paths: Optional[List[str]]) -> List[str]:
    """Drop repeated asset paths, keeping first occurrence order."""
    seen = set()
    result = []
    for path in paths or []:
        if path not in seen:
            seen.add(path)
            result.append(path)
    return result


@dataclass
class Memo:
    """
    A memo record.

    Timestamps are kept in their canonical wire form
    ("YYYY-MM-DD HH:mm:ss" in the store's timezone) so records round-trip
    through a shard byte for byte.
    """

    id: str
    content: str
    created_time: str
    images: List[str] = field(default_factory=list)
    updated_time: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise ValidationError("Memo id must not be empty")
        if not self.created_time:
            raise ValidationError("Memo createdTime must not be empty", context={"memo_id": self.id})
        self.images = dedupe_paths(self.images)

    def revise(self, content: str, images: List[str], updated_time: str) -> "Memo":
        """Return a copy with new content/images; id and createdTime are kept."""
        return replace(
            self,
            content=content,
            images=dedupe_paths(images),
            updated_time=updated_time,
        )

    def removed_images(self, new_images: List[str]) -> List[str]:
        """Images referenced by this memo but absent from new_images."""
        keep = set(new_images)
        return [path for path in self.images if path not in keep]

    @classmethod
    def from_payload(cls, payload: MemoPayload) -> "Memo":
        return cls(
            id=payload.id,
            content=payload.content,
            images=list(payload.images),
            created_time=payload.createdTime,
            updated_time=payload.updatedTime,
        )

    def to_payload(self) -> MemoPayload:
        return MemoPayload(
            id=self.id,
            content=self.content,
            images=list(self.images),
            createdTime=self.created_time,
            updatedTime=self.updated_time,
        )

    def to_dict(self) -> dict:
        """Wire form, as stored in the shard document."""
        return self.to_payload().to_wire()
