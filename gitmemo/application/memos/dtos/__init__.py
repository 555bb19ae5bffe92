"""
Data Transfer Objects for Memo Actions
"""

from .action_result import ActionResult, ActionErrorCode, code_for
from .memo_requests import (
    CreateMemoRequest,
    UpdateMemoRequest,
    DeleteMemoRequest,
    LoadMemosRequest,
    ImageUpload,
    UploadImagesRequest,
)

__all__ = [
    "ActionResult",
    "ActionErrorCode",
    "code_for",
    "CreateMemoRequest",
    "UpdateMemoRequest",
    "DeleteMemoRequest",
    "LoadMemosRequest",
    "ImageUpload",
    "UploadImagesRequest",
]
