"""polarion_client package exports."""

from .client import PolarionClient, create_client_from_env
from .core.config import ClientConfig, load_env_config
from .core.errors import (
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
from .core.logging import setup_logging
from .core.retry import NoRetrier, Retrier, RetryConfig, backoff_wait
from .core.transport import AuthenticatedTransport, decode_envelope, decode_raw
from .fields import CustomFields
from .field_types import FieldKind, TableField, TableRow, TextContent
from .mapper import load_custom_fields, save_custom_fields
from .models import Resource, User, WorkItem, WorkItemAttributes
from .relationships import (
    RelationshipRef,
    ResourceKind,
    encode_ref,
    encode_refs,
    extract_ref,
    extract_refs,
)

__all__ = [
    # Client
    "PolarionClient",
    "ClientConfig",
    "create_client_from_env",
    "load_env_config",
    "setup_logging",
    # Request core
    "AuthenticatedTransport",
    "decode_envelope",
    "decode_raw",
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
    # Custom fields
    "CustomFields",
    "FieldKind",
    "TextContent",
    "TableField",
    "TableRow",
    "load_custom_fields",
    "save_custom_fields",
    # Relationships
    "RelationshipRef",
    "ResourceKind",
    "extract_ref",
    "extract_refs",
    "encode_ref",
    "encode_refs",
    # Models
    "Resource",
    "WorkItem",
    "WorkItemAttributes",
    "User",
]
