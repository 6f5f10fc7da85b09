from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence
from urllib.parse import quote

import httpx

from app.services.http_client import BackendHttpClient, HttpResult


log = logging.getLogger(__name__)

# Filter values are either a plain value (equality) or an (operator, value) pair,
# e.g. {"tour_id": "...", "id": ("neq", "..."), "created_at": ("lt", "...")}
Filters = Mapping[str, Any]

_OPERATORS = {"eq", "neq", "lt", "lte", "gt", "gte", "like", "ilike", "in", "is"}


class BackendError(Exception):
    """A hosted backend call did not succeed."""

    def __init__(self, operation: str, target: str, result: HttpResult):
        self.operation = operation
        self.target = target
        self.result = result
        super().__init__(f"{operation} {target} failed: {result.error_code} {result.error_message}")


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _encode_filter(value: Any) -> str:
    if isinstance(value, tuple) and len(value) == 2 and value[0] in _OPERATORS:
        op, operand = value
        if op == "in":
            quoted = ",".join('"' + _literal(v).replace('"', '\\"') + '"' for v in operand)
            return f"in.({quoted})"
        return f"{op}.{_literal(operand)}"
    if value is None:
        return "is.null"
    return f"eq.{_literal(value)}"


def _filter_params(filters: Filters | None) -> dict[str, str]:
    return {col: _encode_filter(val) for col, val in (filters or {}).items()}


class BackendClient:
    """
    Remote data client for the hosted backend: PostgREST-style tables under
    /rest/v1 and object storage under /storage/v1.

    Every method is a single request. Nothing is retried and nothing is
    cached; a failed call raises BackendError.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        timeout_seconds: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not base_url or not api_key:
            raise ValueError("Backend URL and API key are required")
        self._base_url = base_url.rstrip("/")
        self._http = BackendHttpClient(
            base_url=self._base_url,
            timeout_seconds=timeout_seconds,
            default_headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            },
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    @staticmethod
    def _check(result: HttpResult, operation: str, target: str) -> HttpResult:
        if not result.ok:
            log.error(
                "backend %s %s failed: status=%s code=%s message=%s",
                operation, target, result.status_code, result.error_code, result.error_message,
            )
            raise BackendError(operation, target, result)
        return result

    # -- tables --------------------------------------------------------

    async def query(
        self,
        table: str,
        *,
        filters: Filters | None = None,
        order: str | Sequence[str] | None = None,
        select: str = "*",
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params = {"select": select, **_filter_params(filters)}
        if order:
            params["order"] = order if isinstance(order, str) else ",".join(order)
        if limit is not None:
            params["limit"] = str(limit)

        res = await self._http.request(method="GET", url=f"/rest/v1/{table}", params=params)
        return self._check(res, "query", table).rows

    async def insert(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]:
        rows = await self.insert_many(table, [record])
        if not rows:
            raise BackendError("insert", table, HttpResult(ok=False, status_code=None, detail={}, error_code="EMPTY", error_message="no row returned"))
        return rows[0]

    async def insert_many(self, table: str, rows: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
        if not rows:
            return []
        res = await self._http.request(
            method="POST",
            url=f"/rest/v1/{table}",
            headers={"Prefer": "return=representation"},
            json_body=[dict(r) for r in rows],
        )
        return self._check(res, "insert", table).rows

    async def update(self, table: str, id: str, partial: Mapping[str, Any]) -> None:
        await self.update_where(table, {"id": id}, partial)

    async def update_where(self, table: str, filters: Filters, partial: Mapping[str, Any]) -> None:
        if not filters:
            raise ValueError("update_where requires at least one filter")
        res = await self._http.request(
            method="PATCH",
            url=f"/rest/v1/{table}",
            headers={"Prefer": "return=minimal"},
            params=_filter_params(filters),
            json_body=dict(partial),
        )
        self._check(res, "update", table)

    async def upsert(self, table: str, record: Mapping[str, Any], conflict_key: str) -> None:
        res = await self._http.request(
            method="POST",
            url=f"/rest/v1/{table}",
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            params={"on_conflict": conflict_key},
            json_body=[dict(record)],
        )
        self._check(res, "upsert", table)

    async def delete(self, table: str, id: str) -> None:
        await self.delete_where(table, {"id": id})

    async def delete_where(self, table: str, filters: Filters) -> None:
        if not filters:
            raise ValueError("delete_where requires at least one filter")
        res = await self._http.request(
            method="DELETE",
            url=f"/rest/v1/{table}",
            params=_filter_params(filters),
        )
        self._check(res, "delete", table)

    # -- storage -------------------------------------------------------

    async def upload_file(
        self,
        bucket: str,
        path: str,
        data: bytes,
        *,
        content_type: str = "application/octet-stream",
        overwrite: bool = False,
    ) -> None:
        res = await self._http.request(
            method="POST",
            url=f"/storage/v1/object/{bucket}/{quote(path)}",
            headers={
                "Content-Type": content_type,
                "x-upsert": "true" if overwrite else "false",
                "Cache-Control": "max-age=3600",
            },
            content=data,
        )
        self._check(res, "upload", f"{bucket}/{path}")

    async def delete_file(self, bucket: str, path: str) -> None:
        res = await self._http.request(
            method="DELETE",
            url=f"/storage/v1/object/{bucket}",
            json_body={"prefixes": [path]},
        )
        self._check(res, "delete_file", f"{bucket}/{path}")

    async def list_files(self, bucket: str, prefix: str = "") -> list[dict[str, Any]]:
        res = await self._http.request(
            method="POST",
            url=f"/storage/v1/object/list/{bucket}",
            json_body={
                "prefix": prefix,
                "limit": 1000,
                "offset": 0,
                "sortBy": {"column": "name", "order": "asc"},
            },
        )
        return self._check(res, "list_files", f"{bucket}/{prefix}").rows

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/public/{bucket}/{quote(path)}"
