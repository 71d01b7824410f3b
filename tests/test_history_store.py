import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from jurisdiction_finder.clients import supabase_client as supabase_client_module
from jurisdiction_finder.errors import HistoryStoreError, RecordNotFound
from jurisdiction_finder.models import HistoryRecord
from jurisdiction_finder.stores import InMemoryHistoryStore, SupabaseHistoryStore


def _record(record_id="rec-1", **overrides):
    fields = dict(
        id=record_id,
        business_type="residential_home",
        prefecture="埼玉県",
        city="川口市",
        jurisdiction="川口市",
        summary="概要",
        flow=[{"step": "事前協議", "documents": []}],
    )
    fields.update(overrides)
    return HistoryRecord(**fields)


def test_from_row_fills_defaults_for_old_rows():
    record = HistoryRecord.from_row({"id": "old", "city": "川口市", "checked_steps": None, "user_id": None})
    assert record.checked_steps == []
    assert record.user_id == "anonymous"
    assert record.flow == []


@pytest.mark.asyncio
async def test_in_memory_upsert_is_last_write_wins():
    store = InMemoryHistoryStore()
    await store.upsert(_record(summary="first"))
    await store.upsert(_record(summary="second"))

    records = await store.list_latest()
    assert len(records) == 1
    assert records[0].summary == "second"


@pytest.mark.asyncio
async def test_in_memory_list_latest_respects_limit():
    store = InMemoryHistoryStore()
    for i in range(5):
        await store.upsert(_record(f"rec-{i}"))

    records = await store.list_latest(limit=3)

    assert [r.id for r in records] == ["rec-4", "rec-3", "rec-2"]


@pytest.mark.asyncio
async def test_in_memory_update_unknown_record():
    with pytest.raises(RecordNotFound):
        await InMemoryHistoryStore().update_checked_steps("missing", [0])


@pytest.fixture
def supabase():
    client = MagicMock()
    client.request = AsyncMock()
    return client


@pytest.mark.asyncio
async def test_supabase_list_latest_orders_by_timestamp(supabase):
    supabase.request.return_value = [_record().to_row()]
    store = SupabaseHistoryStore(client=supabase)

    records = await store.list_latest(100)

    assert records[0].id == "rec-1"
    supabase.request.assert_awaited_once_with(
        "GET",
        "search_history",
        params={"select": "*", "order": "timestamp.desc", "limit": "100"},
    )


@pytest.mark.asyncio
async def test_supabase_upsert_merges_on_id(supabase):
    supabase.request.side_effect = lambda method, table, **kwargs: [kwargs["json_body"]]
    store = SupabaseHistoryStore(client=supabase)

    saved = await store.upsert(_record(checked_steps=[1]))

    assert saved.timestamp is not None
    assert saved.checked_steps == [1]
    kwargs = supabase.request.call_args.kwargs
    assert kwargs["params"] == {"on_conflict": "id"}
    assert "resolution=merge-duplicates" in kwargs["prefer"]


@pytest.mark.asyncio
async def test_supabase_update_checked_steps(supabase):
    supabase.request.return_value = [_record(checked_steps=[0, 2]).to_row()]
    store = SupabaseHistoryStore(client=supabase)

    record = await store.update_checked_steps("rec-1", [0, 2])

    assert record.checked_steps == [0, 2]
    kwargs = supabase.request.call_args.kwargs
    assert kwargs["params"] == {"id": "eq.rec-1"}
    assert kwargs["json_body"] == {"checked_steps": [0, 2]}


@pytest.mark.asyncio
async def test_supabase_update_missing_record(supabase):
    supabase.request.return_value = []
    with pytest.raises(RecordNotFound):
        await SupabaseHistoryStore(client=supabase).update_checked_steps("missing", [0])


@pytest.mark.asyncio
async def test_supabase_failures_get_user_facing_messages(supabase):
    supabase.request.side_effect = HistoryStoreError("Supabase DELETE search_history failed with 503")
    store = SupabaseHistoryStore(client=supabase)

    with pytest.raises(HistoryStoreError) as exc_info:
        await store.delete("rec-1")

    assert exc_info.value.message == "履歴の削除に失敗しました"


@pytest.mark.asyncio
async def test_delete_many_deletes_each_id(supabase):
    supabase.request.return_value = []
    store = SupabaseHistoryStore(client=supabase)

    await store.delete_many(["a", "b"])

    deleted = sorted(call.kwargs["params"]["id"] for call in supabase.request.call_args_list)
    assert deleted == ["eq.a", "eq.b"]


@pytest.fixture
def rest_client(monkeypatch):
    """A real SupabaseClient whose aiohttp session is a mock returning `response`."""
    monkeypatch.setattr(supabase_client_module, "SUPABASE_URL", "https://example.supabase.co/")
    monkeypatch.setattr(supabase_client_module, "SUPABASE_ANON_KEY", "anon-key")
    monkeypatch.setattr(supabase_client_module.SupabaseClient, "_instance", None)
    monkeypatch.setattr(supabase_client_module.SupabaseClient, "_initialized", False)

    client = supabase_client_module.SupabaseClient()
    response = MagicMock(status=200)
    session = MagicMock()
    session.request.return_value.__aenter__.return_value = response
    client._get_session = AsyncMock(return_value=session)
    client.response = response
    client.session = session
    return client


@pytest.mark.asyncio
async def test_rest_client_decodes_rows(rest_client):
    rest_client.response.json = AsyncMock(return_value={"id": "rec-1"})

    rows = await rest_client.request("GET", "search_history", params={"id": "eq.rec-1"})

    assert rows == [{"id": "rec-1"}]
    args, kwargs = rest_client.session.request.call_args
    assert args == ("GET", "https://example.supabase.co/rest/v1/search_history")
    assert kwargs["headers"]["apikey"] == "anon-key"


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [ValueError("Expecting value: line 1 column 1 (char 0)"), asyncio.TimeoutError()])
async def test_rest_client_wraps_undecodable_body_and_timeout(rest_client, error):
    rest_client.response.json = AsyncMock(side_effect=error)

    with pytest.raises(HistoryStoreError) as exc_info:
        await rest_client.request("GET", "search_history")

    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_undecodable_body_surfaces_as_history_failure(rest_client):
    rest_client.response.json = AsyncMock(side_effect=ValueError("Expecting value"))
    store = SupabaseHistoryStore(client=rest_client)

    with pytest.raises(HistoryStoreError) as exc_info:
        await store.list_latest()

    assert exc_info.value.message == "履歴の取得に失敗しました"
