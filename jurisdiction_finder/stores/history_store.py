"""
History store for search results.

Records are keyed by id and writes are last-write-wins; there is no
application-level locking.
"""
import asyncio
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from loguru import logger

from jurisdiction_finder.clients import SupabaseClient
from jurisdiction_finder.config import HISTORY_TABLE, HISTORY_LIMIT, SUPABASE_URL, SUPABASE_ANON_KEY
from jurisdiction_finder.errors import HistoryStoreError, RecordNotFound
from jurisdiction_finder.models import HistoryRecord


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class HistoryStore:
    """Interface every history backend implements."""

    async def list_latest(self, limit: int = HISTORY_LIMIT) -> List[HistoryRecord]:
        raise NotImplementedError

    async def upsert(self, record: HistoryRecord) -> HistoryRecord:
        raise NotImplementedError

    async def update_checked_steps(self, record_id: str, checked_steps: List[int]) -> HistoryRecord:
        raise NotImplementedError

    async def delete(self, record_id: str) -> None:
        raise NotImplementedError

    async def delete_many(self, record_ids: Iterable[str]) -> None:
        """Bulk delete: one delete per id, issued concurrently."""
        await asyncio.gather(*[self.delete(record_id) for record_id in record_ids])


class InMemoryHistoryStore(HistoryStore):
    """Process-local store, used when Supabase is not configured."""

    def __init__(self):
        self._records: Dict[str, HistoryRecord] = {}

    async def list_latest(self, limit: int = HISTORY_LIMIT) -> List[HistoryRecord]:
        # Newest insertion first among equal timestamps
        newest_first = list(reversed(list(self._records.values())))
        records = sorted(newest_first, key=lambda r: r.timestamp or "", reverse=True)
        return records[:limit]

    async def upsert(self, record: HistoryRecord) -> HistoryRecord:
        record.timestamp = _now_iso()
        self._records.pop(record.id, None)
        self._records[record.id] = record
        return record

    async def update_checked_steps(self, record_id: str, checked_steps: List[int]) -> HistoryRecord:
        record = self._records.get(record_id)
        if record is None:
            raise RecordNotFound("指定された履歴が見つかりません")
        record.checked_steps = list(checked_steps)
        return record

    async def delete(self, record_id: str) -> None:
        self._records.pop(record_id, None)


class SupabaseHistoryStore(HistoryStore):
    """History kept in the Supabase `search_history` table."""

    def __init__(self, client: Optional[SupabaseClient] = None, table: str = HISTORY_TABLE):
        self.client = client or SupabaseClient()
        self.table = table

    async def list_latest(self, limit: int = HISTORY_LIMIT) -> List[HistoryRecord]:
        try:
            rows = await self.client.request(
                "GET",
                self.table,
                params={"select": "*", "order": "timestamp.desc", "limit": str(limit)},
            )
        except HistoryStoreError as e:
            logger.error(f"❌ Listing history failed: {e.message}")
            raise HistoryStoreError("履歴の取得に失敗しました") from e
        return [HistoryRecord.from_row(row) for row in rows]

    async def upsert(self, record: HistoryRecord) -> HistoryRecord:
        record.timestamp = _now_iso()
        try:
            rows = await self.client.request(
                "POST",
                self.table,
                params={"on_conflict": "id"},
                json_body=record.to_row(),
                prefer="resolution=merge-duplicates,return=representation",
            )
        except HistoryStoreError as e:
            logger.error(f"❌ Saving history {record.id} failed: {e.message}")
            raise HistoryStoreError("履歴の保存に失敗しました") from e
        return HistoryRecord.from_row(rows[0]) if rows else record

    async def update_checked_steps(self, record_id: str, checked_steps: List[int]) -> HistoryRecord:
        try:
            rows = await self.client.request(
                "PATCH",
                self.table,
                params={"id": f"eq.{record_id}"},
                json_body={"checked_steps": list(checked_steps)},
                prefer="return=representation",
            )
        except HistoryStoreError as e:
            logger.error(f"❌ Updating checked steps of {record_id} failed: {e.message}")
            raise HistoryStoreError("チェック状態の更新に失敗しました") from e
        if not rows:
            raise RecordNotFound("指定された履歴が見つかりません")
        return HistoryRecord.from_row(rows[0])

    async def delete(self, record_id: str) -> None:
        try:
            await self.client.request("DELETE", self.table, params={"id": f"eq.{record_id}"})
        except HistoryStoreError as e:
            logger.error(f"❌ Deleting history {record_id} failed: {e.message}")
            raise HistoryStoreError("履歴の削除に失敗しました") from e


_store: Optional[HistoryStore] = None


def get_history_store() -> HistoryStore:
    """Return the process-wide store, Supabase when configured."""
    global _store
    if _store is None:
        if SUPABASE_URL and SUPABASE_ANON_KEY:
            _store = SupabaseHistoryStore()
        else:
            logger.warning("Supabase is not configured; history is kept in memory only")
            _store = InMemoryHistoryStore()
    return _store
