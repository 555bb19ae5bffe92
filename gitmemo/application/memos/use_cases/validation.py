"""
Input checks shared by the memo actions.
"""

from typing import List, Optional

from gitmemo.domain.errors import AuthError, ValidationError

MAX_CONTENT_LENGTH = 10000


def require_token(token: Optional[str]) -> None:
    if not token:
        raise AuthError("GitHub token is required")


def require_identity(memo_id: str, created_time: str) -> None:
    if not memo_id:
        raise ValidationError("Memo id is required")
    if not created_time:
        raise ValidationError("Memo createdTime is required", context={"memo_id": memo_id})


def validate_memo_input(
    content: Optional[str],
    images: Optional[List[str]],
    max_length: int = MAX_CONTENT_LENGTH,
) -> str:
    """
    Trimmed content, after checking the memo is not empty and not too long.

    Raises:
        ValidationError
    """
    trimmed = (content or "").strip()
    if not trimmed and not images:
        raise ValidationError("Content or images are required")
    if len(trimmed) > max_length:
        raise ValidationError(
            f"Content exceeds maximum length of {max_length} characters",
            context={"length": len(trimmed)},
        )
    return trimmed
