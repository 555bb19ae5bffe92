from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from enum import Enum
import time

class ComponentType(str, Enum):
    REMOTE_CLIENT = "RemoteObjectClient"
    DOCUMENT_STORE = "DocumentStore"
    INDEX_SERVICE = "IndexService"
    ASSET_STORE = "AssetStore"
    IMAGE_NORMALIZER = "ImageNormalizer"
    APPLICATION = "Application"

class EventType(str, Enum):
    MEMO_CREATED = "Memo_Created"
    MEMO_UPDATED = "Memo_Updated"
    MEMO_DELETED = "Memo_Deleted"
    SHARD_WRITTEN = "Shard_Written"
    ASSET_UPLOADED = "Asset_Uploaded"
    ASSET_DELETED = "Asset_Deleted"
    ASSET_CLEANUP_FAILED = "Asset_Cleanup_Failed"
    RETRY_SCHEDULED = "Retry_Scheduled"
    IMAGE_NORMALIZED = "Image_Normalized"
    ACTION_COMPLETED = "Action_Completed"
    ACTION_FAILED = "Action_Failed"

class LogEntry(BaseModel):
    trace_id: str
    timestamp: float = Field(default_factory=time.time)
    component: ComponentType
    event_type: EventType
    payload_hash: Optional[str] = None
    metrics: Dict[str, Any] = Field(default_factory=dict)
    message: Optional[str] = None


class MemoPayload(BaseModel):
    """One memo as persisted inside a shard document."""
    id: str
    content: str
    images: List[str] = Field(default_factory=list)
    createdTime: str
    updatedTime: Optional[str] = None

    @field_validator("images", mode="before")
    @classmethod
    def _none_images(cls, value):
        return [] if value is None else value

    def to_wire(self) -> Dict[str, Any]:
        # updatedTime is omitted rather than written as null
        return self.model_dump(exclude_none=True)


class DirEntryPayload(BaseModel):
    """Directory listing item returned by the contents API."""
    name: str
    path: str
    type: str = "file"

    model_config = {"extra": "ignore"}


class ContentPayload(BaseModel):
    """File body returned by the contents API (GET)."""
    path: str
    sha: str
    size: int = 0
    type: str = "file"
    encoding: Optional[str] = None
    content: Optional[str] = None

    model_config = {"extra": "ignore"}
