"""
Domain Errors

Error taxonomy shared by every layer. The remote client raises these,
stores annotate them with operation context as they propagate, and the
application boundary turns them into tagged results.
"""

import copy
from typing import Any, Dict, Optional


class StoreError(Exception):
    """Base error for memo store operations."""

    kind = "unknown"
    retryable = True

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        retryable: Optional[bool] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        if retryable is not None:
            self.retryable = retryable
        self.context: Dict[str, Any] = dict(context or {})

    def with_context(self, **context: Any) -> "StoreError":
        """Annotate with operation context; inner (earlier) keys win."""
        for key, value in context.items():
            self.context.setdefault(key, value)
        return self

    def clone(self) -> "StoreError":
        """Shallow copy with its own context dict."""
        duplicate = copy.copy(self)
        duplicate.context = dict(self.context)
        return duplicate

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class ValidationError(StoreError):
    """Bad input. Never retried."""

    kind = "validation"
    retryable = False


class AuthError(StoreError):
    """Invalid or missing credential (401)."""

    kind = "auth"
    retryable = False


class PermissionDeniedError(StoreError):
    """Credential lacks permission (403). Left to the caller to retry later."""

    kind = "permission"
    retryable = True


class RateLimitError(PermissionDeniedError):
    """403 caused by an exhausted remote rate limit."""

    kind = "rate_limit"


class NotFoundError(StoreError):
    """Record, shard or object absent."""

    kind = "not_found"
    retryable = False


class ConflictError(StoreError):
    """Version mismatch on write. Retry by re-reading and re-applying."""

    kind = "conflict"
    retryable = True


class TransientError(StoreError):
    """Network failure, 429 or 5xx. Retried inside the remote client."""

    kind = "transient"
    retryable = True

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
