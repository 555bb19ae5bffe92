"""
Unit tests for the error taxonomy.
"""

from gitmemo.domain.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    StoreError,
    TransientError,
    ValidationError,
)


class TestRetryableFlags:
    def test_defaults_per_kind(self):
        assert ValidationError("x").retryable is False
        assert AuthError("x").retryable is False
        assert NotFoundError("x").retryable is False
        assert PermissionDeniedError("x").retryable is True
        assert RateLimitError("x").retryable is True
        assert ConflictError("x").retryable is True
        assert TransientError("x").retryable is True

    def test_explicit_override(self):
        assert StoreError("x", retryable=False).retryable is False

    def test_rate_limit_is_a_permission_error(self):
        assert isinstance(RateLimitError("x"), PermissionDeniedError)
        assert RateLimitError("x").kind == "rate_limit"


class TestContext:
    def test_inner_context_wins(self):
        error = NotFoundError("Memo not found", context={"shard": "202403"})
        error.with_context(shard="ignored", operation="delete_memo")

        assert error.context == {"shard": "202403", "operation": "delete_memo"}

    def test_str_includes_context(self):
        error = ConflictError("Version conflict", context={"path": "a.json"})
        assert str(error) == "Version conflict (path=a.json)"
        assert str(ConflictError("plain")) == "plain"

    def test_transient_carries_retry_after(self):
        error = TransientError("busy", retry_after=2.5, status=503)
        assert error.retry_after == 2.5
        assert error.status == 503

    def test_clone_has_its_own_context(self):
        error = TransientError("busy", retry_after=1.0, status=502, context={"path": "a.json"})
        duplicate = error.clone().with_context(operation="list_memos")

        assert type(duplicate) is TransientError
        assert duplicate is not error
        assert duplicate.retry_after == 1.0
        assert duplicate.status == 502
        assert duplicate.context == {"path": "a.json", "operation": "list_memos"}
        assert error.context == {"path": "a.json"}
