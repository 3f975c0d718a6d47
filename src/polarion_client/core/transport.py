from __future__ import annotations

import json as _json
from typing import Any, Dict, Optional, get_origin

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import (
    ErrorEnvelope,
    PolarionClientError,
    PolarionDecodeError,
    PolarionHTTPError,
    PolarionTransportError,
)

MEDIA_TYPE = "application/json"

_ANY = TypeAdapter(Any)


def to_jsonable(body: Any) -> Any:
    """Serialize a request body that may contain pydantic models (by alias)."""
    return _ANY.dump_python(body, mode="json", by_alias=True)


class AuthenticatedTransport:
    """
    Executes requests against the Polarion REST API with bearer auth.
    - Never mutates the caller's request; a copy is sent
    - Raises PolarionHTTPError for status >= 400
    - Raises PolarionTransportError when no response was obtained
    - Does not retry; see Retrier
    Successful responses are returned unread (streamed); decode them with
    decode_envelope/decode_raw, which release the connection.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        bearer_token: str,
        *,
        media_type: str = MEDIA_TYPE,
    ):
        if not bearer_token:
            raise ValueError("bearer_token must be provided.")
        self.http = http
        self._token = bearer_token
        self.media_type = media_type

    async def execute(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        accept: Optional[str] = None,
    ) -> httpx.Response:
        request = self.http.build_request(
            method.upper(),
            url,
            params=params,
            json=to_jsonable(json) if json is not None else None,
            headers={"Accept": accept or self.media_type},
        )
        return await self._send(request, negotiate=False)

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send a prebuilt request; a missing or wildcard Accept becomes the media type."""
        return await self._send(request, negotiate=True)

    async def _send(self, request: httpx.Request, *, negotiate: bool) -> httpx.Response:
        outbound = await self._prepare(request, negotiate=negotiate)
        try:
            resp = await self.http.send(outbound, stream=True)
        except httpx.TransportError as exc:
            raise PolarionTransportError(
                f"http request failed: {outbound.method} {outbound.url}: {exc}"
            ) from exc
        except httpx.HTTPError as exc:
            raise PolarionClientError(
                f"HTTPX error calling {outbound.method} {outbound.url}: {exc}"
            ) from exc

        if resp.status_code >= 400:
            raise await self._to_http_error(resp)
        return resp

    async def _prepare(
        self, request: httpx.Request, *, negotiate: bool
    ) -> httpx.Request:
        headers = httpx.Headers(request.headers)
        headers["Authorization"] = f"Bearer {self._token}"
        if "Content-Type" not in headers:
            headers["Content-Type"] = self.media_type
        # httpx clients default to "Accept: */*"
        if negotiate and headers.get("Accept", "*/*") == "*/*":
            headers["Accept"] = self.media_type

        content = await request.aread()
        # httpx recomputes Content-Length from the copied body
        headers.pop("Content-Length", None)
        return httpx.Request(
            request.method,
            request.url,
            headers=headers,
            content=content or None,
            extensions=dict(request.extensions),
        )

    async def _to_http_error(self, resp: httpx.Response) -> PolarionHTTPError:
        method = resp.request.method
        url = str(resp.request.url)
        try:
            raw = await resp.aread()
        except httpx.HTTPError:
            return PolarionHTTPError(
                status_code=resp.status_code,
                message="failed to read error response",
                method=method,
                url=url,
            )
        finally:
            await resp.aclose()

        text = raw.decode(resp.encoding or "utf-8", errors="replace")
        try:
            envelope = ErrorEnvelope.model_validate_json(raw)
        except ValidationError:
            envelope = None

        if envelope is None or not envelope.errors:
            return PolarionHTTPError(
                status_code=resp.status_code,
                message=text,
                method=method,
                url=url,
                raw_body=text,
            )

        return PolarionHTTPError(
            status_code=resp.status_code,
            message=f"{resp.status_code} {resp.reason_phrase}".strip(),
            method=method,
            url=url,
            details=envelope.errors,
            raw_body=text,
        )


async def _read_json(resp: httpx.Response) -> Any:
    try:
        raw = await resp.aread()
    except httpx.HTTPError as exc:
        raise PolarionDecodeError(f"failed to read response: {exc}") from exc
    finally:
        await resp.aclose()

    if not raw.strip():
        return None
    try:
        return _json.loads(raw)
    except ValueError as exc:
        snippet = raw[:500].decode("utf-8", errors="replace")
        raise PolarionDecodeError(
            f"Expected JSON from {resp.request.method} {resp.request.url}, "
            f"got non-JSON body snippet: {snippet!r}"
        ) from exc


def _validate(payload: Any, target: Any) -> Any:
    if target is None:
        return payload
    try:
        if (
            get_origin(target) is None
            and isinstance(target, type)
            and issubclass(target, BaseModel)
        ):
            return target.model_validate(payload)
        return TypeAdapter(target).validate_python(payload)
    except ValidationError as exc:
        name = getattr(target, "__name__", repr(target))
        raise PolarionDecodeError(
            f"failed to decode response data as {name}: {exc}"
        ) from exc


async def decode_envelope(resp: httpx.Response, target: Any = None) -> Any:
    """Decode a ``{"data": ...}`` response into ``target``; None returns raw JSON."""
    payload = await _read_json(resp)
    if payload is None:
        return None
    if not isinstance(payload, dict) or "data" not in payload:
        raise PolarionDecodeError(
            f"failed to decode response wrapper: expected object with 'data', "
            f"got {type(payload).__name__}"
        )
    return _validate(payload["data"], target)


async def decode_raw(resp: httpx.Response, target: Any = None) -> Any:
    """Decode the whole response body into ``target``; None returns raw JSON."""
    payload = await _read_json(resp)
    if payload is None:
        return None
    return _validate(payload, target)


__all__ = [
    "AuthenticatedTransport",
    "MEDIA_TYPE",
    "decode_envelope",
    "decode_raw",
    "to_jsonable",
]
