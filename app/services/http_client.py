from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Literal

import httpx


HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]


@dataclass(frozen=True)
class HttpResult:
    ok: bool
    status_code: int | None
    detail: dict[str, Any]

    error_code: str | None = None
    error_message: str | None = None

    elapsed_ms: int | None = None

    @property
    def rows(self) -> list[dict[str, Any]]:
        data = self.detail.get("data")
        return data if isinstance(data, list) else []


def _transport_failure(code: str, exc: Exception) -> HttpResult:
    return HttpResult(
        ok=False,
        status_code=None,
        detail={"error": code.lower()},
        error_code=code,
        error_message=str(exc),
    )


def _backend_message(detail: dict[str, Any]) -> str | None:
    # PostgREST uses "message", storage uses "error"/"message"
    for key in ("message", "error", "msg"):
        value = detail.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class BackendHttpClient:
    """
    One pooled AsyncClient bound to the backend's base URL.

    Nothing is retried. HTTP and transport errors come back as an HttpResult
    with ok=False; BackendClient turns those into BackendError.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 20.0,
        max_response_body_chars: int = 20_000,
        default_headers: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._max_body = max_response_body_chars
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout_seconds),
            headers=dict(default_headers or {}),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _body_text(self, resp: httpx.Response) -> str:
        text = resp.text
        if len(text) > self._max_body:
            return text[: self._max_body] + f"...(truncated, {len(text)} chars)"
        return text

    def _parse_detail(self, resp: httpx.Response) -> dict[str, Any]:
        """PostgREST row lists are wrapped as {"data": [...]} so detail is always a dict."""
        content_type = (resp.headers.get("content-type") or "").lower()
        if "json" not in content_type:
            return {"raw": self._body_text(resp), "content_type": content_type or None}
        try:
            parsed = resp.json()
        except ValueError:
            return {"raw": self._body_text(resp)}
        return parsed if isinstance(parsed, dict) else {"data": parsed}

    async def request(
        self,
        *,
        method: HttpMethod,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        content: bytes | None = None,
    ) -> HttpResult:
        try:
            resp = await self._client.request(
                method,
                url,
                headers=dict(headers or {}),
                params=dict(params or {}),
                json=json_body,
                content=content,
            )
        except httpx.TimeoutException as e:
            return _transport_failure("TIMEOUT", e)
        except httpx.RequestError as e:
            return _transport_failure("REQUEST_ERROR", e)

        detail = self._parse_detail(resp)
        try:
            elapsed_ms = int(resp.elapsed.total_seconds() * 1000)
        except RuntimeError:
            elapsed_ms = None

        if resp.is_success:
            return HttpResult(ok=True, status_code=resp.status_code, detail=detail, elapsed_ms=elapsed_ms)

        return HttpResult(
            ok=False,
            status_code=resp.status_code,
            detail=detail,
            error_code=f"HTTP_{resp.status_code}",
            error_message=_backend_message(detail) or f"HTTP {resp.status_code}",
            elapsed_ms=elapsed_ms,
        )
