"""
Domain Layer

Pure domain objects, protocols and services with no I/O of their own.
"""

from .errors import (
    StoreError,
    ValidationError,
    AuthError,
    PermissionDeniedError,
    RateLimitError,
    NotFoundError,
    ConflictError,
    TransientError,
)

__all__ = [
    "StoreError",
    "ValidationError",
    "AuthError",
    "PermissionDeniedError",
    "RateLimitError",
    "NotFoundError",
    "ConflictError",
    "TransientError",
]
