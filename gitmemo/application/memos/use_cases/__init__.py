"""
Use Cases for Memo Actions
"""

from .mutate_memo_use_cases import CreateMemoUseCase, UpdateMemoUseCase, DeleteMemoUseCase
from .load_memos_use_case import LoadMemosUseCase, dedupe_memos
from .upload_images_use_case import UploadImagesUseCase
from .validation import MAX_CONTENT_LENGTH, validate_memo_input

__all__ = [
    "CreateMemoUseCase",
    "UpdateMemoUseCase",
    "DeleteMemoUseCase",
    "LoadMemosUseCase",
    "UploadImagesUseCase",
    "dedupe_memos",
    "validate_memo_input",
    "MAX_CONTENT_LENGTH",
]
