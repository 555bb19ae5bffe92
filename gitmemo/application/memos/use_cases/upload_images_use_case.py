"""
Use Case: Upload Images

Validates, normalizes and uploads the images attached to one memo.

Fan-out: normalization runs in worker threads and uploads go out in
concurrent batches of batch_size. Assets are independent objects, so a
failure affects only its own image. (Deletes, by contrast, are issued
one at a time by the asset store.)
"""

import asyncio
from typing import Any, Dict, List, Optional

from gitmemo.domain.errors import ValidationError
from ..dtos import ActionResult, ImageUpload, UploadImagesRequest, code_for
from ..interfaces import IAssetStore, ILogger, INormalizer
from .mutate_memo_use_cases import failure
from .validation import require_token


class UploadImagesUseCase:
    def __init__(
        self,
        asset_store: IAssetStore,
        normalizer: INormalizer,
        logger: ILogger,
        token: Optional[str],
        budget_bytes: int = 3544186,
        max_dimension: int = 1920,
        batch_size: int = 3,
    ):
        """
        Initialize use case.

        Args:
            asset_store: Validates and stores the encoded images
            normalizer: Shrinks each image below budget_bytes
            logger: Logger for audit trail
            token: Write credential
            budget_bytes: Byte budget per encoded image
            max_dimension: Longest side of an encoded image
            batch_size: Concurrent uploads per batch
        """
        self.asset_store = asset_store
        self.normalizer = normalizer
        self.logger = logger
        self.token = token
        self.budget_bytes = budget_bytes
        self.max_dimension = max_dimension
        self.batch_size = max(1, batch_size)

    async def execute(self, request: UploadImagesRequest) -> ActionResult:
        """
        Returns:
            ok({"paths": [...], "errors": [...]}) when at least one image was
            stored; paths keep input order. Fails when every image failed.
        """
        try:
            require_token(self.token)
            if not request.memo_id:
                raise ValidationError("Memo id is required")
            if not request.images:
                raise ValidationError("No images to upload")
        except Exception as e:
            return failure(self.logger, request.trace_id, "upload_images", e)

        paths: List[Optional[str]] = [None] * len(request.images)
        errors: List[Dict[str, Any]] = []
        first_error: Optional[Exception] = None

        for start in range(0, len(request.images), self.batch_size):
            batch = request.images[start:start + self.batch_size]
            outcomes = await asyncio.gather(
                *(self._upload_one(request, image) for image in batch),
                return_exceptions=True,
            )
            for offset, outcome in enumerate(outcomes):
                index = start + offset
                if isinstance(outcome, Exception):
                    first_error = first_error or outcome
                    errors.append({
                        "index": index,
                        "filename": batch[offset].filename,
                        "error": getattr(outcome, "message", str(outcome)),
                        "code": code_for(outcome).value,
                    })
                    self.logger.warning(f"Image {index} for {request.memo_id} failed: {outcome}")
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    paths[index] = outcome

        uploaded = [path for path in paths if path]
        if not uploaded:
            return failure(self.logger, request.trace_id, "upload_images", first_error)

        self.logger.log_event(
            trace_id=request.trace_id,
            event_type="ACTION_COMPLETED",
            data={"action": "upload_images", "memo_id": request.memo_id, "paths": uploaded},
            metrics={"uploaded": len(uploaded), "failed": len(errors)},
        )
        return ActionResult.ok({"paths": uploaded, "errors": errors})

    async def _upload_one(self, request: UploadImagesRequest, image: ImageUpload) -> str:
        self.asset_store.validate(image.data, image.mime_type)

        normalized = await asyncio.to_thread(
            self.normalizer.normalize,
            image.data,
            image.mime_type,
            self.budget_bytes,
            self.max_dimension,
        )
        self.logger.log_event(
            trace_id=request.trace_id,
            event_type="IMAGE_NORMALIZED",
            data={"memo_id": request.memo_id, "filename": image.filename},
            metrics={"source_bytes": len(image.data), **normalized.summary()},
        )

        path = self.asset_store.build_path(request.memo_id, normalized.extension)
        return await self.asset_store.upload(normalized.data, normalized.mime_type, path)
