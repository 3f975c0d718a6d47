from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AliasChoices, AliasPath, BaseModel, ConfigDict, Field, field_validator


class PolarionClientError(Exception):
    """Base error for client failures."""


class PolarionTransportError(PolarionClientError):
    """Network-level failure before any HTTP response was obtained."""


class PolarionDecodeError(PolarionClientError):
    """Response envelope or payload did not have the expected shape."""


class ErrorDetail(BaseModel):
    """One entry of a JSON:API ``errors`` array."""

    status: str = ""
    title: Optional[str] = None
    detail: str = ""
    # Polarion sends a flat "pointer"; plain JSON:API nests it under "source".
    pointer: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("pointer", AliasPath("source", "pointer")),
    )

    model_config = ConfigDict(extra="ignore")

    @field_validator("status", "detail", mode="before")
    @classmethod
    def _as_str(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    def __str__(self) -> str:
        if self.pointer:
            return f"[{self.status}] {self.detail} (at {self.pointer})"
        if self.title:
            return f"[{self.status}] {self.title}: {self.detail}"
        return f"[{self.status}] {self.detail}"


class ErrorEnvelope(BaseModel):
    errors: List[ErrorDetail] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class PolarionHTTPError(PolarionClientError):
    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        method: str = "",
        url: str = "",
        details: Optional[List[ErrorDetail]] = None,
        raw_body: str = "",
    ):
        self.status_code = status_code
        self.message = message
        self.method = method
        self.url = url
        self.details = list(details or [])
        self.raw_body = raw_body
        super().__init__(self._render())

    def _render(self) -> str:
        head = (
            f"polarion api error (status {self.status_code}) "
            f"for {self.method} {self.url}: {self.message}"
        )
        if not self.details:
            return head

        parts = []
        for d in self.details:
            if d.pointer:
                parts.append(f"field '{d.pointer}': {d.detail}")
            elif d.title:
                parts.append(f"{d.title}: {d.detail}")
            else:
                parts.append(d.detail)
        return f"{head} - {'; '.join(parts)}"

    def detailed(self) -> str:
        """Error message plus the raw response body when it is reasonably small."""
        base = str(self)
        if self.raw_body and len(self.raw_body) < 1000:
            return f"{base}\nRaw response: {self.raw_body}"
        return base


class RetryExhaustedError(PolarionClientError):
    def __init__(self, last_error: BaseException, attempts: int):
        super().__init__(f"max retries exceeded after {attempts} attempts: {last_error}")
        self.last_error = last_error
        self.attempts = attempts


class RetryCancelledError(PolarionClientError):
    """The cancel signal or deadline fired before or between attempts."""

    def __init__(self, message: str = "operation cancelled", *, last_error=None):
        super().__init__(message)
        self.last_error = last_error


def as_api_error(exc: Optional[BaseException]) -> Optional[PolarionHTTPError]:
    """
    Find a PolarionHTTPError in an exception, looking through retry wrappers
    and ``__cause__`` chains.
    """
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        if isinstance(exc, PolarionHTTPError):
            return exc
        if isinstance(exc, (RetryExhaustedError, RetryCancelledError)):
            if exc.last_error is not None:
                exc = exc.last_error
                continue
        exc = exc.__cause__
    return None


def is_not_found(exc: BaseException) -> bool:
    api_err = as_api_error(exc)
    return api_err is not None and api_err.status_code == 404


def is_retryable(exc: BaseException) -> bool:
    """
    Default retry predicate.
    - 429 and 5xx are retried, other 4xx are not
    - decode and cancellation errors are never retried
    - anything else (network failures) is retried
    """
    if isinstance(exc, PolarionHTTPError):
        if 400 <= exc.status_code < 500:
            return exc.status_code == 429
        return exc.status_code >= 500
    if isinstance(exc, (PolarionDecodeError, RetryCancelledError)):
        return False
    return True


__all__ = [
    "PolarionClientError",
    "PolarionTransportError",
    "PolarionDecodeError",
    "PolarionHTTPError",
    "RetryExhaustedError",
    "RetryCancelledError",
    "ErrorDetail",
    "ErrorEnvelope",
    "as_api_error",
    "is_not_found",
    "is_retryable",
]
