"""weedfs client configuration.

Environment Variables:
    WEEDFS_MASTER_URL: Master (directory) server base URL (required)
    WEEDFS_CONNECT_TIMEOUT: Connect timeout in seconds (default: 5)
    WEEDFS_REQUEST_TIMEOUT: Read/write/pool timeout in seconds (default: 60)
    WEEDFS_CHUNK_SIZE: Streaming chunk size in bytes (default: 65536)
    WEEDFS_OTEL_ENABLED: Set to "1" to emit OpenTelemetry spans (default: disabled)

Transport settings beyond timeouts (TLS, proxies, limits) are not interpreted
here; build an ``httpx.AsyncClient`` with them and inject it into the client.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final

import httpx

from weedfs.errors import ClientConfigError, InvalidUrlError
from weedfs.transfer import DEFAULT_CHUNK_SIZE
from weedfs.urls import parse_server_url

logger = logging.getLogger(__name__)

ENV_MASTER_URL: Final[str] = "WEEDFS_MASTER_URL"
ENV_CONNECT_TIMEOUT: Final[str] = "WEEDFS_CONNECT_TIMEOUT"
ENV_REQUEST_TIMEOUT: Final[str] = "WEEDFS_REQUEST_TIMEOUT"
ENV_CHUNK_SIZE: Final[str] = "WEEDFS_CHUNK_SIZE"
ENV_OTEL_ENABLED: Final[str] = "WEEDFS_OTEL_ENABLED"

DEFAULT_CONNECT_TIMEOUT_SECONDS: Final[float] = 5.0
DEFAULT_REQUEST_TIMEOUT_SECONDS: Final[float] = 60.0

USER_AGENT: Final[str] = "weedfs-client/1"


@dataclass(frozen=True)
class ClientConfig:
    """Client configuration (immutable).

    Attributes:
        master_url: Master server base URL; ``http://`` is assumed when no
            scheme is given.
        connect_timeout_seconds: Timeout for establishing connections.
        request_timeout_seconds: Timeout for reads, writes and pool waits.
        chunk_size: Chunk size used when streaming bodies.
        tracing_enabled: Whether client operations emit OpenTelemetry spans.
    """

    master_url: str
    connect_timeout_seconds: float = DEFAULT_CONNECT_TIMEOUT_SECONDS
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    tracing_enabled: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not self.master_url or not self.master_url.strip():
            raise ClientConfigError(
                f"Master url not configured. Set {ENV_MASTER_URL} environment variable."
            )
        try:
            parse_server_url(self.master_url)
        except InvalidUrlError as e:
            raise ClientConfigError(f"Unable to parse master url: {e}") from e
        if self.connect_timeout_seconds <= 0:
            raise ClientConfigError(
                f"connect_timeout_seconds must be positive, got {self.connect_timeout_seconds}"
            )
        if self.request_timeout_seconds <= 0:
            raise ClientConfigError(
                f"request_timeout_seconds must be positive, got {self.request_timeout_seconds}"
            )
        if self.chunk_size <= 0:
            raise ClientConfigError(f"chunk_size must be positive, got {self.chunk_size}")

    @property
    def master(self) -> httpx.URL:
        """Parsed master base URL."""
        return parse_server_url(self.master_url)

    def timeout(self) -> httpx.Timeout:
        """Build the transport timeout for clients created by weedfs."""
        return httpx.Timeout(self.request_timeout_seconds, connect=self.connect_timeout_seconds)


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no", ""):
        return default
    return default


def _parse_positive_number(env_var: str, default: float) -> float:
    raw = os.environ.get(env_var)
    if raw is None or not raw.strip():
        return default

    raw = raw.strip()
    try:
        value = float(raw)
    except ValueError as e:
        raise ClientConfigError(f"{env_var} must be a positive number, got '{raw}'") from e

    if value <= 0:
        raise ClientConfigError(f"{env_var} must be a positive number, got {raw}")
    return value


def _parse_positive_int(env_var: str, default: int) -> int:
    """Parse a positive integer from environment variable.

    Raises:
        ClientConfigError: If value is set but not a positive integer.
    """
    raw = os.environ.get(env_var)
    if raw is None or not raw.strip():
        return default

    raw = raw.strip()
    try:
        value = int(raw)
    except ValueError as e:
        raise ClientConfigError(f"{env_var} must be a positive integer, got '{raw}'") from e

    if value <= 0:
        raise ClientConfigError(f"{env_var} must be a positive integer, got {value}")
    return value


def load_client_config(master_url: str | None = None) -> ClientConfig:
    """Load client configuration from environment variables.

    Args:
        master_url: Overrides WEEDFS_MASTER_URL when given.

    Returns:
        ClientConfig with validated values.

    Raises:
        ClientConfigError: If the master url is missing or any value is invalid.
    """
    config = ClientConfig(
        master_url=master_url or os.environ.get(ENV_MASTER_URL, "").strip(),
        connect_timeout_seconds=_parse_positive_number(
            ENV_CONNECT_TIMEOUT, DEFAULT_CONNECT_TIMEOUT_SECONDS
        ),
        request_timeout_seconds=_parse_positive_number(
            ENV_REQUEST_TIMEOUT, DEFAULT_REQUEST_TIMEOUT_SECONDS
        ),
        chunk_size=_parse_positive_int(ENV_CHUNK_SIZE, DEFAULT_CHUNK_SIZE),
        tracing_enabled=_get_env_bool(ENV_OTEL_ENABLED, False),
    )
    logger.debug("Loaded weedfs client config: master=%s", config.master_url)
    return config
