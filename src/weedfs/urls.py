"""URL assembly for volume server transfers.

Both the upload and the download URL are ``<publicUrl>/<fid>`` on a volume
server, with ``http://`` prepended when the advertised address has no scheme.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import httpx

from weedfs.errors import InvalidUrlError

if TYPE_CHECKING:
    from weedfs.fid import FileId
    from weedfs.models import AssignTicket, Location

DEFAULT_SCHEME = "http://"
DEFAULT_FILENAME = "file"
MAX_FILENAME_BYTES = 255

_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")


def ensure_scheme(server_url: str) -> str:
    """Prefix ``http://`` unless the address already carries a scheme."""
    if _SCHEME_PATTERN.match(server_url):
        return server_url
    return DEFAULT_SCHEME + server_url


def parse_server_url(server_url: str) -> httpx.URL:
    """Parse a server base address into a URL with a host.

    Raises:
        InvalidUrlError: If the address does not parse or has no host.
    """
    candidate = ensure_scheme(server_url.strip())
    try:
        url = httpx.URL(candidate)
    except httpx.InvalidURL as e:
        raise InvalidUrlError(f"Unable to parse server url: {e}", url=candidate) from e
    if not url.host:
        raise InvalidUrlError("Server url has no host", url=candidate)
    return url


def upload_url(ticket: AssignTicket, fid_suffix: str = "") -> httpx.URL:
    """Build the URL receiving the physical write for a ticket.

    Args:
        ticket: Ticket returned by ``assign``.
        fid_suffix: Text appended verbatim to the file id. The client never
            derives one itself, so multi-count tickets stay the caller's call.

    Raises:
        InvalidUrlError: If the assembled URL is invalid.
    """
    return _file_url(ticket.fid + fid_suffix, ticket.public_url)


def download_url(fid: str | FileId, location: Location) -> httpx.URL:
    """Build the URL serving ``fid`` from one replica location.

    The file id is treated as opaque and may carry trailing suffixes.

    Raises:
        InvalidUrlError: If the assembled URL is invalid.
    """
    return _file_url(str(fid), location.public_url)


def _file_url(fid: str, public_url: str) -> httpx.URL:
    base = ensure_scheme(public_url).rstrip("/")
    raw = f"{base}/{fid}"
    try:
        url = httpx.URL(raw)
    except httpx.InvalidURL as e:
        raise InvalidUrlError(f"Unable to build file url: {e}", url=raw) from e
    if not url.host:
        raise InvalidUrlError("Unable to build file url: missing host", url=raw)
    return url


def sanitize_filename(filename: str | None) -> str:
    """Bound a filename to what the multipart filename field can carry.

    Empty names become ``"file"``; names longer than 255 UTF-8 bytes are cut to
    their first 255 bytes, dropping a trailing partial character.
    """
    if not filename:
        return DEFAULT_FILENAME
    encoded = filename.encode("utf-8")
    if len(encoded) <= MAX_FILENAME_BYTES:
        return filename
    truncated = encoded[:MAX_FILENAME_BYTES].decode("utf-8", errors="ignore")
    return truncated or DEFAULT_FILENAME
