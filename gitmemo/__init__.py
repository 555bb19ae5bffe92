"""
gitmemo Core Package

Memo storage engine on top of a git hosting contents API.

Architecture: Monthly JSON Shards
- One JSON document per calendar month, replaced wholesale on write
- Shard index recomputed from a directory listing on every query
- Images stored beside the shards, orphans deleted after mutations
- Images normalized to WebP under a byte budget before upload
"""

__version__ = "0.1.0"

from .models import ComponentType, EventType, MemoPayload
from .domain.errors import (
    StoreError, ValidationError, AuthError, PermissionDeniedError,
    RateLimitError, NotFoundError, ConflictError, TransientError,
)
