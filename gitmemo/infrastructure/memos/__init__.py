"""
Infrastructure Memo Storage
"""

from .github_memo_repository import GitHubMemoRepository
from .github_shard_index import GitHubShardIndex

__all__ = ["GitHubMemoRepository", "GitHubShardIndex"]
