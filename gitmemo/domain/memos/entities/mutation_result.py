"""
Domain Entity: Mutation Results

What a document store mutation hands back so the caller can cascade
asset cleanup (or report what the cascade did).
"""

from dataclasses import dataclass, field
from typing import List, Optional

from gitmemo.domain.memos.repositories.asset_cleaner import AssetCleanupReport
from .memo import Memo


@dataclass
class UpdateResult:
    """
    Attributes:
        memo: The memo as written
        removed_images: Paths the previous version referenced and this one does not
        cleanup: Report from orphan cleanup, None when no cleanup ran
    """

    memo: Memo
    removed_images: List[str] = field(default_factory=list)
    cleanup: Optional[AssetCleanupReport] = None

    def to_dict(self) -> dict:
        return {
            "memo": self.memo.to_dict(),
            "removed_images": list(self.removed_images),
            "cleanup": self.cleanup.to_dict() if self.cleanup else None,
        }


@dataclass
class DeleteResult:
    memo: Memo
    cleanup: Optional[AssetCleanupReport] = None

    def to_dict(self) -> dict:
        return {
            "memo": self.memo.to_dict(),
            "cleanup": self.cleanup.to_dict() if self.cleanup else None,
        }
