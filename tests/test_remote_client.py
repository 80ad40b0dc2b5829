import json

import httpx
import pytest

from inventory_edge.core.errors import RemoteRejected, RemoteUnavailable
from inventory_edge.remote.client import RemoteStore


def _store(handler):
    return RemoteStore(
        base_url="http://remote.test",
        api_key="secret",
        timeout=1.0,
        transport=httpx.MockTransport(handler),
    )


async def test_select_one_filters_by_natural_key():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=[{"id": "abc", "updated_at": "2026-01-01T00:00:00Z"}])

    async with _store(handler) as store:
        row = await store.select_one("items", "code", "ITM-00001")

    assert row == {"id": "abc", "updated_at": "2026-01-01T00:00:00Z"}
    request = seen[0]
    assert request.url.path == "/rest/v1/items"
    assert request.url.params["code"] == "eq.ITM-00001"
    assert request.headers["apikey"] == "secret"


async def test_select_one_returns_none_when_missing():
    async with _store(lambda request: httpx.Response(200, json=[])) as store:
        assert await store.select_one("items", "code", "ITM-00009") is None


async def test_ambiguous_match_is_rejected():
    rows = [{"id": "a"}, {"id": "b"}]
    async with _store(lambda request: httpx.Response(200, json=rows)) as store:
        with pytest.raises(RemoteRejected) as exc_info:
            await store.select_one("categories", "name", "Tools")
    assert exc_info.value.status == 409


async def test_insert_and_update_requests():
    seen = []

    def handler(request):
        seen.append(request)
        if request.method == "POST":
            return httpx.Response(201, json=[{"id": "new", **json.loads(request.content)[0]}])
        return httpx.Response(204)

    async with _store(handler) as store:
        inserted = await store.insert("items", {"code": "ITM-00001"})
        await store.update("items", "new", {"current_stock": 4})

    assert inserted["id"] == "new"
    patch = seen[1]
    assert patch.method == "PATCH"
    assert patch.url.params["id"] == "eq.new"
    assert json.loads(patch.content) == {"current_stock": 4}


async def test_error_status_becomes_remote_rejected():
    async with _store(lambda request: httpx.Response(500, text="boom")) as store:
        with pytest.raises(RemoteRejected) as exc_info:
            await store.insert("items", {"code": "ITM-00001"})
    assert exc_info.value.status == 500
    assert exc_info.value.detail == "boom"


async def test_timeout_becomes_remote_unavailable():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    async with _store(handler) as store:
        with pytest.raises(RemoteUnavailable) as exc_info:
            await store.select_one("items", "code", "ITM-00001")
    assert exc_info.value.retryable


async def test_connection_failure_becomes_remote_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _store(handler) as store:
        with pytest.raises(RemoteUnavailable):
            await store.rpc("search_items", {"search_query": "x"})


@pytest.mark.parametrize("status_code", [200, 404])
async def test_ping_counts_any_answer_as_reachable(status_code):
    async with _store(lambda request: httpx.Response(status_code, json={})) as store:
        assert await store.ping() is True


async def test_ping_reports_unreachable_remote():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _store(handler) as store:
        assert await store.ping() is False


async def test_catalogue_rpcs_send_prefixed_params():
    seen = []

    def handler(request):
        seen.append((request.url.path, json.loads(request.content)))
        return httpx.Response(200, json=[{"code": "ITM-00001"}])

    async with _store(handler) as store:
        page = await store.get_items_paginated(cursor="ITM-00000", limit=10, category_id="c1")
        hits = await store.search_items("relay", limit=5, offset=5)

    assert page == hits == [{"code": "ITM-00001"}]
    assert seen[0] == (
        "/rest/v1/rpc/get_items_paginated",
        {
            "p_cursor": "ITM-00000",
            "p_limit": 10,
            "p_direction": "next",
            "p_category_id": "c1",
            "p_location_id": None,
        },
    )
    assert seen[1] == (
        "/rest/v1/rpc/search_items",
        {"search_query": "relay", "p_limit": 5, "p_offset": 5},
    )
