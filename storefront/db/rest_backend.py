# storefront/db/rest_backend.py
"""
HTTP client for the hosted database's PostgREST-style interface.

Every call carries the project's anon key; when a user is signed in the
session's access token is sent as the bearer so row-level policies apply.
"""
import logging
from typing import Any, Iterable, List, Optional, Tuple, Union

import httpx

from storefront.db.base import Backend, BackendError, Row
from storefront.db.query import IN, ILIKE, Filter, Query

logger = logging.getLogger(__name__)


def _encode_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _filter_params(filters: Iterable[Filter]) -> List[Tuple[str, str]]:
    params = []
    for f in filters:
        if f.op == IN:
            inner = ",".join(_encode_value(v) for v in f.value)
            params.append((f.column, f"in.({inner})"))
        elif f.op == ILIKE:
            # the REST dialect accepts '*' for '%' and keeps the URL readable
            params.append((f.column, "ilike." + str(f.value).replace("%", "*")))
        else:
            params.append((f.column, f"{f.op}.{_encode_value(f.value)}"))
    return params


def _json_safe(row: Row) -> Row:
    # Decimal and datetime values are not JSON serializable as-is
    return {k: (v if v is None or isinstance(v, (str, int, float, bool)) else str(v)) for k, v in row.items()}


class RestBackend(Backend):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self._http_client = client or httpx.AsyncClient(timeout=timeout)

    def for_session(self, access_token: Optional[str]) -> "RestBackend":
        """Return a view of this backend that authenticates as `access_token`."""
        return RestBackend(self.base_url, self.api_key, access_token=access_token, client=self._http_client)

    async def aclose(self) -> None:
        await self._http_client.aclose()

    def _headers(self, write: bool = False) -> dict:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Accept": "application/json",
        }
        if write:
            headers["Content-Type"] = "application/json"
            headers["Prefer"] = "return=representation"
        return headers

    async def _request(self, method: str, table: str, params=None, json=None) -> List[Row]:
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = await self._http_client.request(
                method, url, params=params, json=json, headers=self._headers(write=json is not None)
            )
        except httpx.HTTPError as e:
            logger.error("Request to %s failed: %s", url, e)
            raise BackendError(f"Database service unreachable: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = None
            message = (body.get("message") if isinstance(body, dict) else None) or response.text
            logger.error("Request failed: %s %s -> %s %s", method, table, response.status_code, message)
            raise BackendError(message, status_code=response.status_code)

        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]

    async def select(self, query: Query) -> List[Row]:
        params = [("select", "*")] + _filter_params(query.filters)
        if query.ordering:
            column, ascending = query.ordering
            params.append(("order", f"{column}.{'asc' if ascending else 'desc'}"))
        if query.max_rows is not None:
            params.append(("limit", str(query.max_rows)))
        return await self._request("GET", query.table, params=params)

    async def insert(self, table: str, rows: Union[Row, List[Row]]) -> List[Row]:
        payload = _json_safe(rows) if isinstance(rows, dict) else [_json_safe(r) for r in rows]
        return await self._request("POST", table, json=payload)

    async def update(self, table: str, values: Row, filters: Iterable[Filter]) -> List[Row]:
        params = _filter_params(filters)
        if not params:
            raise BackendError("UPDATE requires a filter", status_code=400)
        return await self._request("PATCH", table, params=params, json=_json_safe(values))
