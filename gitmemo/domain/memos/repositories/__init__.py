"""
Repository Interfaces for Memos

These interfaces define contracts for data access without
specifying implementation details (Dependency Inversion Principle).
"""

from .object_client import IRemoteObjectClient, RemoteObject, DirEntry, EXPECT_ABSENT
from .asset_cleaner import IAssetCleaner, AssetCleanupReport

__all__ = [
    "IRemoteObjectClient",
    "RemoteObject",
    "DirEntry",
    "EXPECT_ABSENT",
    "IAssetCleaner",
    "AssetCleanupReport",
]
