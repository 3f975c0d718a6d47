"""Core request layer for polarion-client: transport, retries, errors."""

from .config import ClientConfig, load_env_config
from .errors import (
    ErrorDetail,
    PolarionClientError,
    PolarionDecodeError,
    PolarionHTTPError,
    PolarionTransportError,
    RetryCancelledError,
    RetryExhaustedError,
    as_api_error,
    is_not_found,
    is_retryable,
)
from .jsonapi import (
    get_attributes,
    get_data,
    get_relationship,
    get_self_link,
    join_project_id,
    split_project_id,
)
from .logging import LogfmtFormatter, setup_logging
from .retry import NoRetrier, Retrier, RetryConfig, backoff_wait
from .transport import AuthenticatedTransport, decode_envelope, decode_raw

__all__ = [
    # Transport
    "AuthenticatedTransport",
    "decode_envelope",
    "decode_raw",
    # Retry
    "Retrier",
    "NoRetrier",
    "RetryConfig",
    "backoff_wait",
    # Exceptions
    "PolarionClientError",
    "PolarionTransportError",
    "PolarionHTTPError",
    "PolarionDecodeError",
    "RetryExhaustedError",
    "RetryCancelledError",
    "ErrorDetail",
    "as_api_error",
    "is_not_found",
    "is_retryable",
    # JSON:API utilities
    "get_data",
    "get_attributes",
    "get_relationship",
    "get_self_link",
    "split_project_id",
    "join_project_id",
    # Config helpers
    "ClientConfig",
    "load_env_config",
    # Logging
    "LogfmtFormatter",
    "setup_logging",
]
