"""
Repository Interface: Asset Cleaner

What the document store needs from the asset store to garbage-collect
images a mutation left unreferenced.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol


@dataclass
class AssetCleanupReport:
    deleted: List[str] = field(default_factory=list)
    missing: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "deleted": list(self.deleted),
            "missing": list(self.missing),
            "failed": list(self.failed),
        }


class IAssetCleaner(Protocol):
    async def delete_many(
        self, paths: List[str], trace_id: Optional[str] = None
    ) -> AssetCleanupReport:
        """
        Delete assets one at a time, best effort.

        Never raises for a single failed path; failures are reported and
        logged.
        """
        ...
