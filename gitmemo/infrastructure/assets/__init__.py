"""
Infrastructure Asset Storage
"""

from .github_asset_store import GitHubAssetStore, content_type_for, CONTENT_TYPES

__all__ = ["GitHubAssetStore", "content_type_for", "CONTENT_TYPES"]
