import asyncio
import logging
import json as jsonlib
import time
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar, Union

import httpx
from pydantic import BaseModel

from .core.config import BASE_URL_ENV, TOKEN_ENV, ClientConfig, load_env_config
from .core.retry import NoRetrier, Retrier
from .core.transport import (
    AuthenticatedTransport,
    decode_envelope,
    decode_raw,
    to_jsonable,
)

T = TypeVar("T", bound=BaseModel)


# Size of '{"data":[]}', the envelope every batch is wrapped in.
_ENVELOPE_SIZE = len(jsonlib.dumps({"data": []}, separators=(",", ":")))


def split_into_batches(
    resources: Sequence[Any],
    *,
    batch_size: int,
    max_content_size: int,
    log: Optional[logging.Logger] = None,
) -> List[List[Any]]:
    """
    Group resources into request batches.
    - A batch holds at most ``batch_size`` resources
    - A new batch starts when the next resource would push the encoded body
      to ``max_content_size`` or beyond
    - A resource that does not fit in an empty envelope is dropped
    """
    batches: List[List[Any]] = []
    current: List[Any] = []
    current_size = _ENVELOPE_SIZE

    for resource in resources:
        item = to_jsonable(resource)
        item_size = len(jsonlib.dumps(item).encode("utf-8"))

        if item_size + _ENVELOPE_SIZE > max_content_size:
            if log is not None:
                log.warning(
                    "polarion.batch_item_skipped",
                    extra={"error": f"{item_size} bytes exceeds {max_content_size}"},
                )
            continue

        projected = current_size + item_size
        if current:
            projected += 2  # ", " separator

        if current and (projected >= max_content_size or len(current) >= batch_size):
            batches.append(current)
            current = [item]
            current_size = _ENVELOPE_SIZE + item_size
        else:
            current.append(item)
            current_size = projected

    if current:
        batches.append(current)
    return batches


class PolarionClient:
    """
    Shared async client for the Polarion REST (JSON:API) API.
    - Handles bearer auth, base URL, timeouts, retries
    - Returns decoded ``data`` payloads or pydantic-validated models
    - No business logic; services built on top own domain decisions
    """

    def __init__(
        self,
        *,
        base_url: str,
        bearer_token: str,
        config: Optional[ClientConfig] = None,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        base_url = (base_url or "").rstrip("/")
        bearer_token = bearer_token or ""

        if not base_url:
            raise ValueError("base_url must be provided.")
        if not bearer_token:
            raise ValueError("bearer_token must be provided.")

        self.base_url = base_url
        self.config = config if config is not None else ClientConfig()
        self.log = logger or logging.getLogger("polarion_client.client")

        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.config.timeout_seconds,
        )
        self.transport = AuthenticatedTransport(self.http, bearer_token)

        if self.config.retry.max_retries > 0:
            self.retrier: Union[Retrier, NoRetrier] = Retrier(self.config.retry)
        else:
            self.retrier = NoRetrier()
        self._no_retry = NoRetrier()

    @classmethod
    def from_env(cls, **kwargs) -> "PolarionClient":
        base_url, token = load_env_config()
        return cls(base_url=base_url, bearer_token=token, **kwargs)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "PolarionClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        target: Any = None,
        envelope: bool = True,
        accept: Optional[str] = None,
        retry: bool = True,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> Any:
        """
        Core request method.
        - Retries according to config.retry (pass retry=False for writes
          that must not be repeated)
        - Raises PolarionHTTPError on status >= 400 (when not retried away)
        - Raises PolarionDecodeError if the body doesn't match ``target``
        - Raises RetryExhaustedError once all attempts failed
        - Raises RetryCancelledError when ``cancel`` is set or ``deadline``
          (event loop time) passes before the next attempt
        - Returns the decoded ``data`` member (or the whole body when
          envelope=False); None for empty bodies
        """
        method = method.upper()
        decode = decode_envelope if envelope else decode_raw
        attempt = 0

        async def attempt_once() -> Any:
            nonlocal attempt
            attempt += 1
            start = time.perf_counter()
            status: Optional[int] = None
            try:
                resp = await self.transport.execute(
                    method, url, json=json, params=params, accept=accept
                )
                status = resp.status_code
                result = await decode(resp, target)
            except Exception as exc:
                status = getattr(exc, "status_code", status)
                self.log.debug(
                    "polarion.request_failed",
                    extra={
                        "method": method,
                        "url": url,
                        "status": status,
                        "duration_ms": int((time.perf_counter() - start) * 1000),
                        "attempt": attempt,
                        "error": type(exc).__name__,
                    },
                )
                raise

            # structured-ish log without secrets
            self.log.debug(
                "polarion.request",
                extra={
                    "method": method,
                    "url": url,
                    "status": status,
                    "duration_ms": int((time.perf_counter() - start) * 1000),
                    "attempt": attempt,
                },
            )
            return result

        retrier = self.retrier if retry else self._no_retry
        return await retrier.run(attempt_once, cancel=cancel, deadline=deadline)

    async def get(
        self,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        target: Any = None,
    ) -> Any:
        return await self.request("GET", url, params=params, target=target)

    async def post(
        self, url: str, *, json: Any, target: Any = None, retry: bool = False
    ) -> Any:
        return await self.request("POST", url, json=json, target=target, retry=retry)

    async def patch(
        self, url: str, *, json: Any, target: Any = None, retry: bool = True
    ) -> Any:
        return await self.request("PATCH", url, json=json, target=target, retry=retry)

    async def delete(
        self, url: str, *, json: Any = None, retry: bool = True
    ) -> Any:
        return await self.request("DELETE", url, json=json, retry=retry)

    async def post_batched(
        self,
        url: str,
        resources: Sequence[Any],
        *,
        target: Any = None,
    ) -> List[Any]:
        """
        Create resources with one POST per batch; see split_into_batches.
        Resources too large to send on their own are skipped with a warning.
        """
        created: List[Any] = []
        batch_target = List[target] if target is not None else None
        batches = split_into_batches(
            resources,
            batch_size=self.config.batch_size,
            max_content_size=self.config.max_content_size,
            log=self.log,
        )
        for batch in batches:
            result = await self.post(url, json={"data": batch}, target=batch_target)
            if isinstance(result, list):
                created.extend(result)
        return created

    async def request_model(
        self, model: Type[T], method: str, url: str, **kwargs: Any
    ) -> T:
        return await self.request(method, url, target=model, **kwargs)


def create_client_from_env(**kwargs: Any) -> PolarionClient:
    """Create a PolarionClient from environment variables."""
    base_url, token = load_env_config()
    if not base_url or not token:
        raise ValueError(f"Missing {BASE_URL_ENV} or {TOKEN_ENV} in environment.")
    return PolarionClient(base_url=base_url, bearer_token=token, **kwargs)
