"""
Infrastructure: GitHub Memo Repository

The document store. Each month of memos is one JSON document in the
repository; every mutation reads the whole shard, changes it in memory
and writes the whole shard back.

Write modes:
    last_write_wins  - overwrite whatever the shard is now (historical behaviour;
                       two writers to one shard can lose an update)
    version_checked  - write against the version the shard was read at and,
                       on conflict, re-read and re-apply the mutation
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from gitmemo.config import WRITE_MODES
from gitmemo.domain.errors import ConflictError, NotFoundError, StoreError, ValidationError
from gitmemo.domain.memos.entities import DeleteResult, Memo, Shard, UpdateResult, sort_records
from gitmemo.domain.memos.repositories import EXPECT_ABSENT, IAssetCleaner, IRemoteObjectClient
from gitmemo.domain.memos.services import ShardKeyResolver, ShardLayout, is_month_key
from gitmemo.domain.memos.services.identifiers import random_suffix
from gitmemo.logging_utils import StructuredLogger, ComponentType
from gitmemo.models import EventType, MemoPayload

_SHARD_ADAPTER = TypeAdapter(List[MemoPayload])

Mutation = Callable[[Shard], Tuple[Shard, Any]]
Landed = Callable[[Shard, Any], bool]


def _holds_memo(shard: Shard, memo: Memo) -> bool:
    return memo.id in shard and shard.get(memo.id) == memo


class GitHubMemoRepository:
    """
    CRUD over monthly memo shards.

    The shard for an existing memo is always resolved from its immutable
    createdTime; the shard for a new memo from server "now".
    """

    def __init__(
        self,
        client: IRemoteObjectClient,
        resolver: Optional[ShardKeyResolver] = None,
        layout: Optional[ShardLayout] = None,
        asset_cleaner: Optional[IAssetCleaner] = None,
        write_mode: str = "last_write_wins",
        conflict_retries: int = 2,
        commit_message: str = "docs: update {path}",
        trace_id: str = "-",
    ):
        """
        Initialize memo repository.

        Args:
            client: Remote object client (usually request-cached)
            resolver: Timezone-pinned clock and month key resolver
            layout: Shard file naming
            asset_cleaner: Receives orphaned image paths in *_with_assets
            write_mode: "last_write_wins" or "version_checked"
            conflict_retries: Re-read/re-apply rounds in version_checked mode
            commit_message: Audit message template, {path} is the shard path
            trace_id: Correlation ID for logs
        """
        if write_mode not in WRITE_MODES:
            raise ValueError(f"write_mode must be one of {WRITE_MODES}, got '{write_mode}'")

        self.client = client
        self.resolver = resolver or ShardKeyResolver()
        self.layout = layout or ShardLayout()
        self.asset_cleaner = asset_cleaner
        self.write_mode = write_mode
        self.conflict_retries = max(0, conflict_retries)
        self.commit_message = commit_message
        self.trace_id = trace_id

        self.logger = StructuredLogger(ComponentType.DOCUMENT_STORE)

    @classmethod
    def from_settings(
        cls,
        settings,
        client: IRemoteObjectClient,
        resolver: Optional[ShardKeyResolver] = None,
        asset_cleaner: Optional[IAssetCleaner] = None,
        trace_id: str = "-",
    ) -> "GitHubMemoRepository":
        memos = settings.memos
        return cls(
            client=client,
            resolver=resolver or ShardKeyResolver(memos.timezone),
            layout=ShardLayout(memos.directory, memos.file_prefix, memos.file_suffix),
            asset_cleaner=asset_cleaner,
            write_mode=memos.write_mode,
            conflict_retries=memos.conflict_retries,
            commit_message=memos.commit_message,
            trace_id=trace_id,
        )

    @property
    def version_checked(self) -> bool:
        return self.write_mode == "version_checked"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_shard(self, key: str) -> Shard:
        """
        Read one shard. An absent shard document reads as an empty shard
        with no version.

        Raises:
            ValidationError: invalid month key or malformed shard document
        """
        if not is_month_key(key):
            raise ValidationError("Invalid shard key", context={"shard": key})

        path = self.layout.path_for(key)
        try:
            text, version = await self.client.get_text(path)
        except NotFoundError:
            return Shard(key=key)
        except StoreError as e:
            raise e.with_context(operation="read_shard", shard=key)

        return Shard(key=key, records=self._parse(key, path, text), version=version)

    async def list_month(self, key: str) -> List[Memo]:
        """Memos of one month, newest first. Invalid keys list as empty."""
        if not is_month_key(key):
            return []
        shard = await self.get_shard(key)
        return list(shard.records)

    async def list_months(self, keys: List[str]) -> Dict[str, List[Memo]]:
        """Read several shards concurrently; result keeps the order of keys."""
        results = await asyncio.gather(*(self.list_month(key) for key in keys))
        return dict(zip(keys, results))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(
        self,
        content: str,
        images: Optional[List[str]] = None,
        memo_id: Optional[str] = None,
    ) -> Memo:
        """
        Prepend a new memo to the shard of the current month.

        The creation time is always server-assigned. memo_id is generated
        as memo_{YYYYMMDDHHmmss}_{suffix} unless given.
        """
        now = self.resolver.now()
        memo = Memo(
            id=memo_id or f"memo_{self.resolver.format_time_for_id(now)}_{random_suffix()}",
            content=content,
            images=list(images or []),
            created_time=self.resolver.format_time(now),
        )
        key = self.resolver.month_key(now)

        def apply(shard: Shard) -> Tuple[Shard, Memo]:
            if memo.id in shard:
                raise ValidationError("Memo id already exists", context={"memo_id": memo.id})
            return shard.prepend(memo), memo

        created = await self._mutate(key, "create_memo", apply, _holds_memo, memo_id=memo.id)
        self.logger.log_event(
            trace_id=self.trace_id,
            event_type=EventType.MEMO_CREATED,
            payload={"memo_id": created.id, "shard": key},
            metrics={"images": len(created.images), "content_length": len(created.content)},
        )
        return created

    async def update(
        self,
        memo_id: str,
        created_time: str,
        content: Optional[str] = None,
        images: Optional[List[str]] = None,
    ) -> UpdateResult:
        """
        Replace a memo's content and images in place.

        None for content or images keeps the current value. The result
        lists the image paths the memo no longer references.

        Raises:
            NotFoundError: memo not in the shard for created_time
        """
        key = self._key_for(created_time, memo_id)
        updated_time = self.resolver.format_time()

        def apply(shard: Shard) -> Tuple[Shard, UpdateResult]:
            old = shard.get(memo_id)
            revised = old.revise(
                content=old.content if content is None else content,
                images=old.images if images is None else images,
                updated_time=updated_time,
            )
            new_shard, _ = shard.replace(revised)
            return new_shard, UpdateResult(
                memo=revised, removed_images=old.removed_images(revised.images)
            )

        result = await self._mutate(
            key, "update_memo", apply, lambda shard, r: _holds_memo(shard, r.memo), memo_id=memo_id
        )
        self.logger.log_event(
            trace_id=self.trace_id,
            event_type=EventType.MEMO_UPDATED,
            payload={"memo_id": memo_id, "shard": key, "removed_images": result.removed_images},
            metrics={"images": len(result.memo.images)},
        )
        return result

    async def delete(self, memo_id: str, created_time: str) -> Memo:
        """
        Remove a memo from its shard and return it.

        Raises:
            NotFoundError: memo not in the shard for created_time
        """
        key = self._key_for(created_time, memo_id)

        def apply(shard: Shard) -> Tuple[Shard, Memo]:
            return shard.remove(memo_id)

        removed = await self._mutate(
            key, "delete_memo", apply, lambda shard, memo: memo.id not in shard, memo_id=memo_id
        )
        self.logger.log_event(
            trace_id=self.trace_id,
            event_type=EventType.MEMO_DELETED,
            payload={"memo_id": memo_id, "shard": key},
            metrics={"images": len(removed.images)},
        )
        return removed

    async def update_with_assets(
        self,
        memo_id: str,
        created_time: str,
        content: Optional[str] = None,
        images: Optional[List[str]] = None,
    ) -> UpdateResult:
        """update() followed by best-effort deletion of the orphaned images."""
        result = await self.update(memo_id, created_time, content, images)
        result.cleanup = await self._cleanup(result.removed_images)
        return result

    async def delete_with_assets(self, memo_id: str, created_time: str) -> DeleteResult:
        """delete() followed by best-effort deletion of the memo's images."""
        removed = await self.delete(memo_id, created_time)
        return DeleteResult(memo=removed, cleanup=await self._cleanup(removed.images))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _key_for(self, created_time: str, memo_id: str) -> str:
        if not memo_id:
            raise ValidationError("Memo id is required")
        try:
            return self.resolver.month_key(created_time)
        except StoreError as e:
            raise e.with_context(memo_id=memo_id)

    async def _mutate(
        self,
        key: str,
        operation: str,
        mutate: Mutation,
        applied: Landed,
        **context: Any,
    ) -> Any:
        """
        Read the shard, apply mutate, write the shard back.

        In version_checked mode a ConflictError triggers a fresh read and
        a second application of mutate, up to conflict_retries times.

        A conflict can also mean our own write committed and only its
        response was lost (the transport retried the PUT with a stale
        sha). After every conflict the shard is re-read; when applied()
        finds the pending outcome already in it, that outcome is returned
        instead of writing again or failing.
        """
        attempts = self.conflict_retries + 1 if self.version_checked else 1
        outcome: Any = None
        conflict: Optional[ConflictError] = None

        for attempt in range(attempts):
            try:
                shard = await self._read_for_write(key)
                if conflict is not None and self._landed(shard, outcome, applied, operation):
                    return outcome
                new_shard, outcome = mutate(shard)
                await self._write(new_shard, expected_version=self._expected_version(shard))
                return outcome
            except ConflictError as e:
                conflict = e
                if attempt + 1 < attempts:
                    self.logger.logger.warning(
                        f"Shard {key} changed during {operation}, re-applying "
                        f"(attempt {attempt + 1}/{attempts})"
                    )
            except StoreError as e:
                raise e.with_context(operation=operation, shard=key, **context)

        try:
            shard = await self._read_for_write(key)
        except StoreError as e:
            raise e.with_context(operation=operation, shard=key, **context)
        if self._landed(shard, outcome, applied, operation):
            return outcome
        raise conflict.with_context(operation=operation, shard=key, attempts=attempts, **context)

    def _landed(self, shard: Shard, outcome: Any, applied: Landed, operation: str) -> bool:
        if outcome is None or not applied(shard, outcome):
            return False
        self.logger.logger.warning(
            f"Shard {shard.key} already holds the result of {operation}; "
            f"treating the conflicting write as committed"
        )
        return True

    async def _read_for_write(self, key: str) -> Shard:
        """
        get_shard() for a mutation. A record filed under the wrong month
        is only logged on reads; a mutation refuses the shard.
        """
        shard = await self.get_shard(key)
        for memo in shard.records:
            if self._month_of(memo) != key:
                raise ValidationError(
                    "Shard holds a memo from another month",
                    context={"shard": key, "memo_id": memo.id, "createdTime": memo.created_time},
                )
        return shard

    def _expected_version(self, shard: Shard) -> Optional[str]:
        if not self.version_checked:
            return None
        return shard.version if shard.exists else EXPECT_ABSENT

    async def _write(self, shard: Shard, expected_version: Optional[str]) -> str:
        path = self.layout.path_for(shard.key)
        body = json.dumps(shard.to_wire(), ensure_ascii=False, indent=2) + "\n"
        version = await self.client.put_text(
            path, body, self.commit_message.format(path=path), expected_version
        )
        self.logger.log_event(
            trace_id=self.trace_id,
            event_type=EventType.SHARD_WRITTEN,
            payload={"shard": shard.key, "path": path, "version": version},
            metrics={"records": len(shard), "bytes": len(body.encode("utf-8"))},
        )
        return version

    def _parse(self, key: str, path: str, text: str) -> List[Memo]:
        if not text.strip():
            return []
        try:
            payloads = _SHARD_ADAPTER.validate_json(text)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Malformed shard document: {e.error_count()} error(s)",
                context={"shard": key, "path": path},
            ) from e

        records = [Memo.from_payload(payload) for payload in payloads]
        for memo in records:
            if self._month_of(memo) != key:
                self.logger.logger.warning(
                    f"Memo {memo.id} in shard {key} has createdTime {memo.created_time}"
                )
        return sort_records(records)

    def _month_of(self, memo: Memo) -> Optional[str]:
        try:
            return self.resolver.month_key(memo.created_time)
        except ValidationError:
            return None

    async def _cleanup(self, paths: List[str]):
        if not paths or self.asset_cleaner is None:
            return None
        return await self.asset_cleaner.delete_many(paths, self.trace_id)
