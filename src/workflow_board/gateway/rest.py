"""Async HTTP gateway for a PostgREST-compatible store."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import httpx

from workflow_board.exceptions import RemoteError, RemoteRejected, RemoteUnavailable
from workflow_board.logging import get_logger

if TYPE_CHECKING:
    from workflow_board.gateway.base import OrderBy, Row

_AUTH_FAILURE_CODES = frozenset({401, 403})


def _eq(value: Any) -> str:
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class RestGateway:
    """
    Client for the store's REST endpoint.

    Reads are ``GET /{table}?col=eq.value&order=col.desc``. Writes ask for
    ``Prefer: return=representation`` so the store echoes the written rows,
    which is where ``id`` and ``created_at`` come from on insert and where the
    deleted-row count comes from on delete.

    Requests authenticate with the project ``api_key`` plus a bearer token:
    the signed-in user's access token when one is set, else the api key.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        rest_path: str = "/rest/v1",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._api_key = api_key
        self._rest_path = rest_path.rstrip("/")
        self._access_token: str | None = None
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )
        self._logger = get_logger(__name__)

    def set_access_token(self, token: str | None) -> None:
        """Use the session's token for subsequent requests (``None`` falls back to the api key)."""
        self._access_token = token

    def _headers(self, *, representation: bool = False) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
        }
        if representation:
            headers["Prefer"] = "return=representation"
        return headers

    def _url(self, table: str) -> str:
        return f"{self._rest_path}/{table}"

    async def list(
        self,
        table: str,
        filters: dict[str, Any],
        order_by: OrderBy | None = None,
    ) -> list[Row]:
        params = {column: _eq(value) for column, value in filters.items()}
        params["select"] = "*"
        if order_by is not None:
            params["order"] = f"{order_by.column}.{'desc' if order_by.descending else 'asc'}"
        body = await self._send("GET", table, params=params, headers=self._headers())
        return self._rows(body, table, "list")

    async def insert(self, table: str, row: Row) -> Row:
        body = await self._send(
            "POST",
            table,
            json=[row],
            headers=self._headers(representation=True),
        )
        rows = self._rows(body, table, "insert")
        if not rows:
            raise RemoteRejected(
                f"Insert into {table} returned no row",
                {"table": table, "operation": "insert"},
            )
        return rows[0]

    async def update(self, table: str, row_id: str, patch: Row) -> Row:
        body = await self._send(
            "PATCH",
            table,
            params={"id": _eq(row_id)},
            json=patch,
            headers=self._headers(representation=True),
        )
        rows = self._rows(body, table, "update")
        if not rows:
            raise RemoteRejected(
                f"No {table} row with id {row_id} to update",
                {"table": table, "operation": "update", "id": row_id},
            )
        return rows[0]

    async def delete(self, table: str, filters: dict[str, Any]) -> int:
        params = {column: _eq(value) for column, value in filters.items()}
        body = await self._send(
            "DELETE",
            table,
            params=params,
            headers=self._headers(representation=True),
        )
        return len(self._rows(body, table, "delete"))

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _send(self, method: str, table: str, **kwargs: Any) -> Any:
        details = {"table": table, "method": method, "base_url": self._base_url}
        try:
            response = await self._client.request(method, self._url(table), **kwargs)
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            self._logger.warning("Store connection failed", extra={**details, "error": str(exc)})
            raise RemoteUnavailable("Cannot connect to the store", details) from exc
        except httpx.HTTPError as exc:
            self._logger.warning("Store HTTP error", extra={**details, "error": str(exc)})
            raise RemoteUnavailable("Store request failed", details) from exc

        if response.is_success:
            if not response.content:
                return []
            try:
                return response.json()
            except (json.JSONDecodeError, ValueError) as exc:
                raise RemoteUnavailable(
                    f"Store returned an unreadable body (status {response.status_code})",
                    {**details, "status_code": response.status_code},
                ) from exc

        raise self._error_for(response, details)

    def _error_for(self, response: httpx.Response, details: dict[str, Any]) -> RemoteError:
        status = response.status_code
        message = response.reason_phrase or "Store request failed"
        try:
            body = response.json()
        except (json.JSONDecodeError, ValueError):
            body = None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            message = body["message"]

        error_details = {**details, "status_code": status}
        if isinstance(body, dict) and body.get("code") is not None:
            error_details["store_code"] = body["code"]

        self._logger.warning(
            "Store refused request",
            extra={**error_details, "store_message": message},
        )
        if status in _AUTH_FAILURE_CODES or status >= 500:
            return RemoteUnavailable(message, error_details)
        return RemoteRejected(message, error_details)

    @staticmethod
    def _rows(body: Any, table: str, operation: str) -> list[Row]:
        if not isinstance(body, list) or not all(isinstance(item, dict) for item in body):
            raise RemoteUnavailable(
                f"Store returned an unexpected {operation} payload for {table}",
                {"table": table, "operation": operation},
            )
        return body
