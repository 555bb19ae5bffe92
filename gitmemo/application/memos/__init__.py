"""
Memo Actions Application Layer

Use cases and DTOs for the memo storage engine.
"""

from .dtos import ActionResult, ActionErrorCode
from .use_cases import (
    CreateMemoUseCase,
    UpdateMemoUseCase,
    DeleteMemoUseCase,
    LoadMemosUseCase,
    UploadImagesUseCase,
)

__all__ = [
    "ActionResult",
    "ActionErrorCode",
    "CreateMemoUseCase",
    "UpdateMemoUseCase",
    "DeleteMemoUseCase",
    "LoadMemosUseCase",
    "UploadImagesUseCase",
]
