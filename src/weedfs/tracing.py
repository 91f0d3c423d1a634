"""OpenTelemetry tracing for weedfs client operations.

Spans are emitted only when the client config has ``tracing_enabled``
(``WEEDFS_OTEL_ENABLED=1``). The tracer comes from the provider injected into
the client, or from the globally configured one. Configuring exporters is the
embedding application's concern.

Security:
    - URLs in span attributes carry no userinfo, query or fragment
    - Request and response bodies are never exported
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast
from urllib.parse import urlsplit, urlunsplit

from opentelemetry import trace

from weedfs.errors import WeedFSError
from weedfs.models import AssignTicket, Location
from weedfs.urls import ensure_scheme

logger = logging.getLogger(__name__)

TRACER_NAME = "weedfs.client"

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def sanitize_url(url: str) -> str:
    """Strip userinfo, query and fragment from a URL.

    Returns:
        ``scheme://host[:port]/path``, or "unknown" if malformed.
    """
    try:
        parts = urlsplit(url)
        host = parts.hostname or ""
        if not host:
            return "unknown"
        port = f":{parts.port}" if parts.port else ""
        return urlunsplit((parts.scheme, f"{host}{port}", parts.path, "", ""))
    except ValueError:
        return "unknown"


def traced_operation(operation: str) -> Callable[[F], F]:
    """Decorator tracing an async client method.

    Arguments are bound to the method's parameters by name. A ``fid``
    parameter (or a ``ticket``'s fid) becomes ``weedfs.fid``, ``volume_id``
    becomes ``weedfs.volume_id``, and a ``server`` or ``location`` becomes a
    sanitized ``weedfs.volume_server``. Other arguments are never recorded.

    Args:
        operation: Operation name (e.g., "assign", "lookup", "upload").
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            config = getattr(self, "config", None)
            if config is None or not config.tracing_enabled:
                return await func(self, *args, **kwargs)

            provider = getattr(self, "tracer_provider", None)
            tracer = trace.get_tracer(TRACER_NAME, tracer_provider=provider)

            with tracer.start_as_current_span(
                f"weedfs.{operation}", record_exception=False, set_status_on_exception=False
            ) as span:
                span.set_attribute("weedfs.operation", operation)
                master_url = sanitize_url(ensure_scheme(config.master_url.strip()))
                span.set_attribute("weedfs.master_url", master_url)
                _set_argument_attributes(span, _bound_arguments(signature, self, args, kwargs))
                try:
                    result = await func(self, *args, **kwargs)
                except WeedFSError as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    span.set_attribute("weedfs.error_kind", e.kind.value)
                    span.set_status(trace.StatusCode.ERROR, e.kind.value)
                    raise
                except Exception as e:
                    span.set_attribute("error", True)
                    span.set_attribute("error.type", type(e).__name__)
                    span.set_status(trace.StatusCode.ERROR, type(e).__name__)
                    raise
                _set_result_attributes(span, result, operation)
                return result

        return cast(F, wrapper)

    return decorator


def _set_argument_attributes(span: Any, arguments: dict[str, Any]) -> None:
    """Record identifying arguments, looked up by parameter name."""
    fid = arguments.get("fid")
    ticket = arguments.get("ticket")
    if fid is not None:
        span.set_attribute("weedfs.fid", str(fid))
    elif isinstance(ticket, AssignTicket):
        span.set_attribute("weedfs.fid", ticket.fid + (arguments.get("fid_suffix") or ""))

    volume_id = arguments.get("volume_id")
    if isinstance(volume_id, int) and not isinstance(volume_id, bool):
        span.set_attribute("weedfs.volume_id", volume_id)

    server = arguments.get("server", arguments.get("location"))
    if isinstance(server, Location):
        server = server.public_url
    if isinstance(server, str):
        span.set_attribute("weedfs.volume_server", sanitize_url(ensure_scheme(server.strip())))


def _bound_arguments(
    signature: inspect.Signature, self: Any, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    try:
        return dict(signature.bind(self, *args, **kwargs).arguments)
    except TypeError:
        # the call itself raises the same TypeError below
        return {}


def _set_result_attributes(span: Any, result: Any, operation: str) -> None:
    """Add safe result attributes to the span."""
    try:
        if isinstance(result, AssignTicket):
            span.set_attribute("weedfs.fid", result.fid)
            span.set_attribute(
                "weedfs.volume_server", sanitize_url(ensure_scheme(result.public_url))
            )
        elif operation == "lookup" and isinstance(result, list):
            span.set_attribute("weedfs.location_count", len(result))
        elif operation == "upload" and isinstance(result, int):
            span.set_attribute("weedfs.size_bytes", result)
    except Exception as e:
        logger.debug("Failed to add result attributes to span: %s", e)
