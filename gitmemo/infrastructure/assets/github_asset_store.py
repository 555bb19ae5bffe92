"""
Infrastructure: GitHub Asset Store

Binary image objects at {directory}/{record_id}_{suffix}.{ext}. Ownership
is by path convention only; the document store decides what is still
referenced and hands orphans to delete_many.
"""

from typing import Iterable, List, Optional, Tuple

from gitmemo.domain.errors import StoreError, ValidationError
from gitmemo.domain.memos.entities import dedupe_paths
from gitmemo.domain.memos.repositories import AssetCleanupReport, IRemoteObjectClient
from gitmemo.domain.memos.services.identifiers import random_suffix
from gitmemo.logging_utils import StructuredLogger, ComponentType
from gitmemo.models import EventType

CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "bmp": "image/bmp",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

DEFAULT_SUPPORTED_TYPES = (
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/heic",
    "image/heif",
)


def content_type_for(path: str) -> str:
    ext = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


class GitHubAssetStore:
    """
    Upload, read and delete image assets through a remote object client.

    Uploads overwrite unconditionally (idempotent by path). Deletes run
    one at a time and never raise for a single path.
    """

    def __init__(
        self,
        client: IRemoteObjectClient,
        directory: str = "assets/memos",
        max_size_bytes: int = 10 * 1024 * 1024,
        supported_types: Iterable[str] = DEFAULT_SUPPORTED_TYPES,
        upload_message: str = "docs: add image {path}",
        delete_message: str = "docs: delete image {path}",
        trace_id: str = "-",
    ):
        self.client = client
        self.directory = directory.strip("/")
        self.max_size_bytes = max_size_bytes
        self.supported_types = frozenset(t.lower() for t in supported_types)
        self.upload_message = upload_message
        self.delete_message = delete_message
        self.trace_id = trace_id
        self.logger = StructuredLogger(ComponentType.ASSET_STORE)

    @classmethod
    def from_settings(cls, settings, client: IRemoteObjectClient, trace_id: str = "-") -> "GitHubAssetStore":
        assets = settings.assets
        return cls(
            client=client,
            directory=assets.directory,
            max_size_bytes=assets.max_size_bytes,
            supported_types=assets.supported_types,
            upload_message=assets.upload_message,
            delete_message=assets.delete_message,
            trace_id=trace_id,
        )

    def is_supported(self, mime_type: Optional[str]) -> bool:
        return bool(mime_type) and mime_type.lower() in self.supported_types

    def validate(self, data: bytes, mime_type: Optional[str]) -> None:
        """
        Raises:
            ValidationError: unsupported type, empty payload or over the size limit
        """
        if not self.is_supported(mime_type):
            supported = ", ".join(sorted(self.supported_types))
            raise ValidationError(
                f"Unsupported image type: {mime_type}. Supported: {supported}",
                context={"mime_type": mime_type},
            )
        if not data:
            raise ValidationError("Image is empty")
        if len(data) > self.max_size_bytes:
            limit_mb = self.max_size_bytes / 1024 / 1024
            raise ValidationError(
                f"Image size exceeds limit (max {limit_mb:g}MB)",
                context={"size": len(data)},
            )

    def build_path(self, record_id: str, ext: str = "webp") -> str:
        """{directory}/{record_id}_{4 random base36 chars}.{ext}"""
        if not record_id:
            raise ValidationError("Asset owner id is required")
        owner = record_id.replace("/", "_")
        return f"{self.directory}/{owner}_{random_suffix()}.{ext.lstrip('.').lower()}"

    async def upload(self, data: bytes, mime_type: str, path: str) -> str:
        self.validate(data, mime_type)
        if not path or path.endswith("/"):
            raise ValidationError("Asset path is required", context={"path": path})

        try:
            version = await self.client.put_bytes(
                path, data, self.upload_message.format(path=path)
            )
        except StoreError as e:
            raise e.with_context(operation="upload_asset", path=path)

        self.logger.log_event(
            trace_id=self.trace_id,
            event_type=EventType.ASSET_UPLOADED,
            payload={"path": path, "mime_type": mime_type},
            metrics={"bytes": len(data), "version": version},
        )
        return path

    async def read(self, path: str) -> Tuple[bytes, str]:
        """Stored bytes and the content type implied by the extension."""
        try:
            obj = await self.client.get_bytes(path)
        except StoreError as e:
            raise e.with_context(operation="read_asset", path=path)
        return obj.content, content_type_for(path)

    async def delete_many(self, paths: List[str], trace_id: Optional[str] = None) -> AssetCleanupReport:
        """Sequential best-effort delete; one failure never blocks the rest."""
        trace_id = trace_id or self.trace_id
        report = AssetCleanupReport()

        for path in dedupe_paths(paths):
            try:
                deleted = await self.client.delete_object(path, self.delete_message.format(path=path))
            except Exception as e:
                report.failed.append(path)
                self.logger.logger.warning(f"Failed to delete image {path}: {e}")
                self.logger.log_event(
                    trace_id=trace_id,
                    event_type=EventType.ASSET_CLEANUP_FAILED,
                    payload={"path": path, "error": str(e)},
                )
                continue

            if deleted:
                report.deleted.append(path)
                self.logger.log_event(
                    trace_id=trace_id,
                    event_type=EventType.ASSET_DELETED,
                    payload={"path": path},
                )
            else:
                report.missing.append(path)

        return report
