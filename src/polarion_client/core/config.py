from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Tuple

from dotenv import load_dotenv

from .retry import RetryConfig

BASE_URL_ENV = "POLARION_BASE_URL"
TOKEN_ENV = "POLARION_TOKEN"


@dataclass(frozen=True)
class ClientConfig:
    batch_size: int = 100
    max_content_size: int = 2 * 1024 * 1024  # 2MB request bodies
    timeout_seconds: float = 30.0
    retry: RetryConfig = field(default_factory=RetryConfig)

    def __post_init__(self) -> None:
        for name in ("batch_size", "max_content_size"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name.replace('_', ' ')} must be positive, got {value}")
        if self.timeout_seconds < 0:
            raise ValueError(
                f"timeout must be non-negative, got {self.timeout_seconds}"
            )


def load_env_config(*, use_dotenv: bool = True) -> Tuple[str, str]:
    """Load Polarion REST base URL and bearer token from environment (optional .env)."""
    if use_dotenv:
        load_dotenv()
    base_url = os.getenv(BASE_URL_ENV, "").strip()
    token = os.getenv(TOKEN_ENV, "").strip()
    return base_url, token


__all__ = [
    "ClientConfig",
    "load_env_config",
    "BASE_URL_ENV",
    "TOKEN_ENV",
]
