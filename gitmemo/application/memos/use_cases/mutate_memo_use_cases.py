"""
Use Cases: Create, Update and Delete Memo

Application layer orchestrators for memo mutations. Each one validates the
action input, calls the document store, and turns every outcome into an
ActionResult; nothing raised below escapes as an exception.
"""

from typing import Optional

from ..dtos import ActionResult, CreateMemoRequest, DeleteMemoRequest, UpdateMemoRequest
from ..interfaces import ILogger, IMemoRepository
from .validation import (
    MAX_CONTENT_LENGTH,
    require_identity,
    require_token,
    validate_memo_input,
)


def failure(logger: ILogger, trace_id: str, action: str, error: Exception) -> ActionResult:
    result = ActionResult.from_exception(error)
    logger.warning(f"{action} failed: {error}")
    logger.log_event(
        trace_id=trace_id,
        event_type="ACTION_FAILED",
        data={"action": action, "error": result.error, "code": result.code.value},
        metrics={"retryable": result.retryable},
    )
    return result


class CreateMemoUseCase:
    """
    Use case for creating a memo.

    The memo id and createdTime are assigned by the store; only content
    and image paths come from the caller.
    """

    def __init__(
        self,
        repository: IMemoRepository,
        logger: ILogger,
        token: Optional[str],
        max_content_length: int = MAX_CONTENT_LENGTH,
    ):
        self.repository = repository
        self.logger = logger
        self.token = token
        self.max_content_length = max_content_length

    async def execute(self, request: CreateMemoRequest) -> ActionResult:
        self.logger.log_message(
            trace_id=request.trace_id,
            direction="request",
            message_type="create_memo",
            payload={"content_length": len(request.content or ""), "images": request.images},
        )

        try:
            require_token(self.token)
            content = validate_memo_input(request.content, request.images, self.max_content_length)
            memo = await self.repository.create(content, request.images)
        except Exception as e:
            return failure(self.logger, request.trace_id, "create_memo", e)

        self.logger.log_event(
            trace_id=request.trace_id,
            event_type="ACTION_COMPLETED",
            data={"action": "create_memo", "memo_id": memo.id},
        )
        return ActionResult.ok(memo.to_dict())


class UpdateMemoUseCase:
    """
    Use case for editing a memo.

    Images the edit drops are deleted after the shard write; a failed
    deletion shows up in the cleanup report, never as a failed update.
    """

    def __init__(
        self,
        repository: IMemoRepository,
        logger: ILogger,
        token: Optional[str],
        max_content_length: int = MAX_CONTENT_LENGTH,
    ):
        self.repository = repository
        self.logger = logger
        self.token = token
        self.max_content_length = max_content_length

    async def execute(self, request: UpdateMemoRequest) -> ActionResult:
        self.logger.log_message(
            trace_id=request.trace_id,
            direction="request",
            message_type="update_memo",
            payload={"memo_id": request.memo_id, "images": request.images},
            metadata={"created_time": request.created_time},
        )

        try:
            require_token(self.token)
            require_identity(request.memo_id, request.created_time)
            content = validate_memo_input(request.content, request.images, self.max_content_length)
            result = await self.repository.update_with_assets(
                request.memo_id, request.created_time, content, request.images
            )
        except Exception as e:
            return failure(self.logger, request.trace_id, "update_memo", e)

        if result.cleanup is not None and not result.cleanup.complete:
            self.logger.warning(
                f"Memo {request.memo_id} updated; {len(result.cleanup.failed)} image(s) not cleaned up"
            )
        self.logger.log_event(
            trace_id=request.trace_id,
            event_type="ACTION_COMPLETED",
            data={"action": "update_memo", "memo_id": request.memo_id},
            metrics={"removed_images": len(result.removed_images)},
        )
        return ActionResult.ok(result.to_dict())


class DeleteMemoUseCase:
    """Use case for deleting a memo together with its images."""

    def __init__(self, repository: IMemoRepository, logger: ILogger, token: Optional[str]):
        self.repository = repository
        self.logger = logger
        self.token = token

    async def execute(self, request: DeleteMemoRequest) -> ActionResult:
        self.logger.log_message(
            trace_id=request.trace_id,
            direction="request",
            message_type="delete_memo",
            payload={"memo_id": request.memo_id},
            metadata={"created_time": request.created_time},
        )

        try:
            require_token(self.token)
            require_identity(request.memo_id, request.created_time)
            result = await self.repository.delete_with_assets(request.memo_id, request.created_time)
        except Exception as e:
            return failure(self.logger, request.trace_id, "delete_memo", e)

        self.logger.log_event(
            trace_id=request.trace_id,
            event_type="ACTION_COMPLETED",
            data={"action": "delete_memo", "memo_id": request.memo_id},
            metrics={"images": len(result.memo.images)},
        )
        return ActionResult.ok(result.to_dict())
