# inventory_edge/remote/client.py
"""HTTP client for the remote system of record.

The remote exposes a PostgREST-style surface: one resource per table,
filters as ``column=eq.value`` query parameters and stored procedures under
``/rpc/<name>``. Every call has an explicit timeout; a timeout or transport
failure becomes RemoteUnavailable (retryable) and an error status becomes
RemoteRejected.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from inventory_edge.core.config import settings
from inventory_edge.core.errors import RemoteRejected, RemoteUnavailable

logger = logging.getLogger(__name__)


class RemoteStore:
    def __init__(
        self,
        base_url: str = settings.REMOTE_URL,
        api_key: str = settings.REMOTE_API_KEY,
        timeout: float = settings.REMOTE_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/rest/v1",
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise RemoteUnavailable(f"{method} {path} timed out") from exc
        except httpx.TransportError as exc:
            raise RemoteUnavailable(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            detail = response.text[:500] if response.content else None
            raise RemoteRejected(response.status_code, detail)
        if not response.content:
            return None
        return response.json()

    async def select_one(
        self,
        table: str,
        column: str,
        value: Any,
        columns: str = "id,updated_at",
    ) -> Optional[Dict[str, Any]]:
        rows = await self._request(
            "GET",
            f"/{table}",
            params={column: f"eq.{value}", "select": columns, "limit": "2"},
        )
        rows = rows or []
        if len(rows) > 1:
            raise RemoteRejected(409, f"{table}.{column}={value!r} matches more than one row")
        return rows[0] if rows else None

    async def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        rows = await self._request(
            "POST",
            f"/{table}",
            json=[row],
            headers={"Prefer": "return=representation"},
        )
        return rows[0] if rows else {}

    async def update(self, table: str, row_id: Any, fields: Dict[str, Any]) -> None:
        await self._request(
            "PATCH",
            f"/{table}",
            params={"id": f"eq.{row_id}"},
            json=fields,
            headers={"Prefer": "return=minimal"},
        )

    async def ping(self) -> bool:
        """True when the remote answers at all, even with an error status."""
        try:
            await self._request("GET", "/")
        except RemoteUnavailable:
            return False
        except RemoteRejected as exc:
            logger.debug("Remote reachable but answered %s", exc.status)
        return True

    async def rpc(self, name: str, params: Dict[str, Any]) -> Any:
        return await self._request("POST", f"/rpc/{name}", json=params)

    async def get_items_paginated(
        self,
        cursor: Optional[str] = None,
        limit: int = 50,
        direction: str = "next",
        category_id: Optional[str] = None,
        location_id: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        return await self.rpc(
            "get_items_paginated",
            {
                "p_cursor": cursor,
                "p_limit": limit,
                "p_direction": direction,
                "p_category_id": category_id,
                "p_location_id": location_id,
            },
        ) or []

    async def search_items(self, query: str, limit: int = 50, offset: int = 0) -> List[Dict[str, Any]]:
        return await self.rpc(
            "search_items",
            {"search_query": query, "p_limit": limit, "p_offset": offset},
        ) or []
