"""
Use Case: Load Memos

Reads a window of monthly shards and flattens them into one newest-first
list. Shard windows can overlap across repeated "load more" calls, so
memos are de-duplicated by id.
"""

from typing import Iterable, List, Optional

from gitmemo.domain.errors import ValidationError
from gitmemo.domain.memos.entities import Memo
from gitmemo.domain.memos.services import is_month_key
from ..dtos import ActionResult, LoadMemosRequest
from ..interfaces import ILogger, IMemoRepository, IShardIndex
from .mutate_memo_use_cases import failure


def dedupe_memos(memos: Iterable[Memo], seen_ids: Optional[Iterable[str]] = None) -> List[Memo]:
    """First occurrence of each id wins; order is preserved."""
    seen = set(seen_ids or [])
    result = []
    for memo in memos:
        if memo.id in seen:
            continue
        seen.add(memo.id)
        result.append(memo)
    return result


class LoadMemosUseCase:
    """
    Use case for listing memos.

    Reads need no token; a public repository can be read anonymously.
    """

    def __init__(self, repository: IMemoRepository, index: IShardIndex, logger: ILogger):
        self.repository = repository
        self.index = index
        self.logger = logger

    async def execute(self, request: LoadMemosRequest) -> ActionResult:
        """Memos from the shard window (end, limit), plus the window itself."""
        try:
            page = await self.index.paginate(request.end, request.limit)
            by_month = await self.repository.list_months(page.keys)
        except Exception as e:
            return failure(self.logger, request.trace_id, "load_memos", e)

        memos = dedupe_memos(memo for key in page.keys for memo in by_month[key])
        self.logger.log_message(
            trace_id=request.trace_id,
            direction="response",
            message_type="load_memos",
            payload={"keys": page.keys, "memos": len(memos)},
            metadata={"end": page.end, "limit": page.limit, "has_more": page.has_more},
        )
        return ActionResult.ok({
            "memos": [memo.to_dict() for memo in memos],
            "page": page.to_dict(),
        })

    async def load_month(
        self,
        month: str,
        seen_ids: Optional[Iterable[str]] = None,
        trace_id: str = "-",
    ) -> ActionResult:
        """
        Memos of a single month ("load more"), minus ids the caller already has.
        """
        try:
            if not is_month_key(month):
                raise ValidationError("Invalid month format", context={"month": month})
            memos = await self.repository.list_month(month)
        except Exception as e:
            return failure(self.logger, trace_id, "load_month", e)

        return ActionResult.ok({
            "month": month,
            "memos": [memo.to_dict() for memo in dedupe_memos(memos, seen_ids)],
        })

    async def load_recent(self, trace_id: str = "-") -> ActionResult:
        """Memos from the newest shards, one default page."""
        return await self.execute(LoadMemosRequest(trace_id=trace_id))
