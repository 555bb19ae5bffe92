"""
DTO: Action Result

Tagged result returned across the store boundary. Store errors never
escape a use case as exceptions; they arrive here as a code, a message
and a retryable flag.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

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


class ActionErrorCode(str, Enum):
    AUTH_INVALID = "AUTH_INVALID"
    RATE_LIMIT = "RATE_LIMIT"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION = "VALIDATION"
    NETWORK = "NETWORK"
    UNKNOWN = "UNKNOWN"


# Most specific first: RateLimitError is a PermissionDeniedError
_ERROR_CODES = (
    (ValidationError, ActionErrorCode.VALIDATION),
    (AuthError, ActionErrorCode.AUTH_INVALID),
    (RateLimitError, ActionErrorCode.RATE_LIMIT),
    (PermissionDeniedError, ActionErrorCode.PERMISSION_DENIED),
    (NotFoundError, ActionErrorCode.NOT_FOUND),
    (ConflictError, ActionErrorCode.CONFLICT),
    (TransientError, ActionErrorCode.NETWORK),
)


def code_for(error: BaseException) -> ActionErrorCode:
    for error_type, code in _ERROR_CODES:
        if isinstance(error, error_type):
            return code
    return ActionErrorCode.UNKNOWN


@dataclass
class ActionResult:
    """Outcome of one use case execution."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[ActionErrorCode] = None
    retryable: bool = False

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls, code: ActionErrorCode, error: str, retryable: bool = False
    ) -> "ActionResult":
        return cls(success=False, error=error, code=code, retryable=retryable)

    @classmethod
    def from_exception(cls, error: BaseException) -> "ActionResult":
        """
        Store errors keep their message and retryable flag; anything else
        is reported as UNKNOWN and retryable.
        """
        if isinstance(error, StoreError):
            return cls.fail(code_for(error), error.message, retryable=error.retryable)
        return cls.fail(ActionErrorCode.UNKNOWN, str(error) or type(error).__name__, retryable=True)

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {
            "success": False,
            "error": self.error,
            "code": self.code.value if self.code else None,
            "retryable": self.retryable,
        }
