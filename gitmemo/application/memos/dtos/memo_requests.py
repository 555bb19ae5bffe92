"""
DTO: Memo Requests

Incoming action payloads. from_dict accepts the camelCase keys the web
forms send as well as snake_case.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional


def _string_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value] if value else []
    return [str(item) for item in value if item]


@dataclass
class CreateMemoRequest:
    content: str = ""
    images: List[str] = field(default_factory=list)
    trace_id: str = "-"

    @classmethod
    def from_dict(cls, data: dict) -> "CreateMemoRequest":
        return cls(
            content=data.get("content") or "",
            images=_string_list(data.get("images")) or [],
            trace_id=data.get("trace_id", "-"),
        )


@dataclass
class UpdateMemoRequest:
    """images=None leaves the memo's images untouched."""

    memo_id: str
    created_time: str
    content: str = ""
    images: Optional[List[str]] = None
    trace_id: str = "-"

    @classmethod
    def from_dict(cls, data: dict) -> "UpdateMemoRequest":
        return cls(
            memo_id=data.get("id") or data.get("memo_id") or "",
            created_time=data.get("createdTime") or data.get("created_time") or "",
            content=data.get("content") or "",
            images=_string_list(data.get("images")),
            trace_id=data.get("trace_id", "-"),
        )


@dataclass
class DeleteMemoRequest:
    memo_id: str
    created_time: str
    trace_id: str = "-"

    @classmethod
    def from_dict(cls, data: dict) -> "DeleteMemoRequest":
        return cls(
            memo_id=data.get("id") or data.get("memo_id") or "",
            created_time=data.get("createdTime") or data.get("created_time") or "",
            trace_id=data.get("trace_id", "-"),
        )


@dataclass
class LoadMemosRequest:
    """end/limit window over the shard index; limit is clamped later."""

    end: Optional[str] = None
    limit: Any = None
    trace_id: str = "-"

    @classmethod
    def from_dict(cls, data: dict) -> "LoadMemosRequest":
        return cls(
            end=data.get("end"),
            limit=data.get("limit"),
            trace_id=data.get("trace_id", "-"),
        )


@dataclass
class ImageUpload:
    data: bytes
    mime_type: str
    filename: str = ""


@dataclass
class UploadImagesRequest:
    """Images to attach to memo_id; each becomes {asset_dir}/{memo_id}_{suffix}.webp."""

    memo_id: str
    images: List[ImageUpload] = field(default_factory=list)
    trace_id: str = "-"
