"""weedfs client error types.

Every failure surfaced by the client is a WeedFSError subclass carrying an
ErrorKind, so callers can branch on the kind of failure rather than on the
message text. Nothing is retried or swallowed inside the client.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Closed set of failure categories."""

    TRANSPORT = "TRANSPORT"
    NOT_FOUND = "NOT_FOUND"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    CLUSTER_REPORTED = "CLUSTER_REPORTED"
    MALFORMED_FILE_ID = "MALFORMED_FILE_ID"
    INVALID_INPUT = "INVALID_INPUT"


class WeedFSError(Exception):
    """Base exception for weedfs client operations.

    Attributes:
        message: Human-readable error message.
        fid: File id associated with the operation (if applicable).
        url: Target URL associated with the operation (if applicable).
    """

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(
        self,
        message: str,
        *,
        fid: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.fid = fid
        self.url = url

    def __str__(self) -> str:
        parts = [self.message]
        if self.fid:
            parts.append(f"fid={self.fid}")
        if self.url:
            parts.append(f"url={self.url}")
        return " ".join(parts)


class TransportError(WeedFSError):
    """Raised when the HTTP exchange itself failed.

    Covers DNS/connect/send/receive failures and non-2xx statuses that carry
    no decodable envelope (for downloads: any non-2xx status other than 404).
    """

    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str = "Transport error",
        *,
        fid: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, fid=fid, url=url)
        self.status_code = status_code
        self.cause = cause


class NotFoundError(WeedFSError):
    """Raised when a volume server answers a download with HTTP 404.

    The master may still list the location while the bytes are gone.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str = "File not found on volume server",
        *,
        fid: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, fid=fid, url=url)


class MalformedResponseError(WeedFSError):
    """Raised when a body is not JSON or matches neither envelope shape."""

    kind = ErrorKind.MALFORMED_RESPONSE

    def __init__(
        self,
        message: str = "Unexpected response",
        *,
        fid: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, fid=fid, url=url)


class ClusterReportedError(WeedFSError):
    """Raised when the cluster reports a failure through the `error` field.

    The HTTP transaction may well have succeeded (status 200); the failure is
    a business-level one such as "no free volumes".
    """

    kind = ErrorKind.CLUSTER_REPORTED

    def __init__(
        self,
        message: str,
        *,
        fid: str | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, fid=fid, url=url)


class MalformedFileIdError(WeedFSError):
    """Raised when a file id lacks the separator or has a non-numeric volume id."""

    kind = ErrorKind.MALFORMED_FILE_ID

    def __init__(self, message: str = "Malformed file id", *, fid: str | None = None) -> None:
        super().__init__(message, fid=fid)


class InvalidInputError(WeedFSError):
    """Raised when arguments are rejected before any network call is made."""

    kind = ErrorKind.INVALID_INPUT


class EmptyFileError(InvalidInputError):
    """Raised when an upload source is known to be zero-length."""

    def __init__(self, message: str = "Upload source is empty", **kwargs: str | None) -> None:
        super().__init__(message, **kwargs)


class NotAFileError(InvalidInputError):
    """Raised when a filesystem upload source is not a regular file."""

    def __init__(
        self,
        message: str = "Upload source is not a regular file",
        *,
        path: str | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} path={self.path}"
        return self.message


class InvalidUrlError(InvalidInputError):
    """Raised when a server URL cannot be assembled into a valid URL."""

    def __init__(self, message: str = "Invalid URL", *, url: str | None = None) -> None:
        super().__init__(message, url=url)


class ClientConfigError(InvalidInputError):
    """Raised when client configuration is missing or invalid."""
