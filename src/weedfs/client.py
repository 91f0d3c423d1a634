"""weedfs protocol client.

Async client for a SeaweedFS-style cluster: a master ("directory") server
hands out placement tickets and resolves volume ids to replica locations;
volume servers store and serve the bytes.

Write path:
    ticket = await client.assign(ReplicationPolicy.ONCE_ON_DIFFERENT_RACK)
    size = await client.upload(ticket, data, "report.pdf")

Read path:
    locations = await client.locate(ticket.fid)
    async with await client.download(ticket.fid, locations[0]) as stream:
        async for chunk in stream:
            ...

Every call is a single independent request: no caching, no retries, no
failover across replicas. The client keeps no per-file state, so calls may
run concurrently on one instance.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import BaseModel

from weedfs.config import USER_AGENT, ClientConfig, load_client_config
from weedfs.envelope import decode_envelope
from weedfs.errors import (
    ClusterReportedError,
    InvalidInputError,
    MalformedResponseError,
    NotFoundError,
    TransportError,
)
from weedfs.fid import MAX_VOLUME_ID, FileId, volume_id_of
from weedfs.models import AssignTicket, Location, LookupResult, ReplicationPolicy, WriteResult
from weedfs.status import DirStatus, VolumeStatus
from weedfs.tracing import traced_operation
from weedfs.transfer import DownloadStream, MultipartBody, as_byte_source
from weedfs.urls import download_url, parse_server_url, sanitize_filename, upload_url

if TYPE_CHECKING:
    from types import TracebackType

    from opentelemetry.trace import TracerProvider

logger = logging.getLogger(__name__)

ASSIGN_PATH = "/dir/assign"
LOOKUP_PATH = "/dir/lookup"
DIR_STATUS_PATH = "/dir/status"
VOLUME_STATUS_PATH = "/status"

ModelT = TypeVar("ModelT", bound=BaseModel)


class WeedFSClient:
    """Client for the assign / upload / lookup / download workflow.

    The client owns the ``httpx.AsyncClient`` it creates and closes it in
    ``aclose()``. An injected ``http_client`` (for TLS, proxies, pooling or
    tests) stays owned by the caller.
    """

    def __init__(
        self,
        master_url: str | None = None,
        *,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        tracer_provider: TracerProvider | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            master_url: Master server base URL. Overrides ``config.master_url``.
            config: Client configuration (built from ``master_url`` if None).
            http_client: Optional httpx.AsyncClient for dependency injection.
            tracer_provider: Optional OpenTelemetry provider for spans.

        Raises:
            ClientConfigError: If no valid master url is available.
        """
        if config is None:
            config = ClientConfig(master_url=master_url or "")
        elif master_url:
            config = dataclasses.replace(config, master_url=master_url)

        self.config = config
        self.tracer_provider = tracer_provider
        self._master = config.master
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=config.timeout(),
            headers={"User-Agent": USER_AGENT},
        )

    @classmethod
    def from_env(
        cls,
        *,
        http_client: httpx.AsyncClient | None = None,
        tracer_provider: TracerProvider | None = None,
    ) -> WeedFSClient:
        """Build a client from WEEDFS_* environment variables."""
        return cls(
            config=load_client_config(),
            http_client=http_client,
            tracer_provider=tracer_provider,
        )

    @property
    def master_url(self) -> httpx.URL:
        return self._master

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> WeedFSClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @traced_operation("assign")
    async def assign(
        self,
        replication: ReplicationPolicy | str | None = None,
        collection: str | None = None,
        count: int = 1,
    ) -> AssignTicket:
        """Request a placement ticket from the master.

        Every call mints a fresh ticket; tickets are single-use.

        Args:
            replication: Replication policy (or its 3-digit code). The master
                default applies when None.
            collection: Optional collection name.
            count: Number of file ids to reserve.

        Returns:
            AssignTicket naming the file id and the volume server to write to.

        Raises:
            InvalidInputError: If count < 1 or the replication code is unknown.
            ClusterReportedError: If the master refuses (e.g. no free volumes).
            MalformedResponseError: If the response matches neither shape.
            TransportError: On network failure.
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidInputError(f"count must be a positive integer, got {count!r}")

        params: dict[str, str] = {"count": str(count)}
        if replication is not None:
            policy = (
                replication
                if isinstance(replication, ReplicationPolicy)
                else ReplicationPolicy.from_code(replication)
            )
            params["replication"] = policy.code
        if collection:
            params["collection"] = collection

        response = await self._send("GET", self._master.join(ASSIGN_PATH), params=params)
        ticket = self._decode(response, AssignTicket)
        logger.debug(
            "Assigned fid=%s on %s (count=%d)", ticket.fid, ticket.public_url, ticket.count
        )
        return ticket

    @traced_operation("lookup")
    async def lookup(self, volume_id: int) -> list[Location]:
        """Resolve a volume id to the servers holding its replicas.

        Lookups have no side effects; locations are resolved fresh each call.

        Returns:
            Replica locations, empty only if the cluster reports none.

        Raises:
            InvalidInputError: If volume_id is not an unsigned 64-bit integer.
            ClusterReportedError: If the master reports an error (e.g. unknown
                volume id).
            MalformedResponseError: If the response matches neither shape.
            TransportError: On network failure.
        """
        if (
            isinstance(volume_id, bool)
            or not isinstance(volume_id, int)
            or not 0 <= volume_id <= MAX_VOLUME_ID
        ):
            raise InvalidInputError(f"volume_id must be an unsigned integer, got {volume_id!r}")

        response = await self._send(
            "GET", self._master.join(LOOKUP_PATH), params={"volumeId": str(volume_id)}
        )
        result = self._decode(response, LookupResult)
        logger.debug("Volume %d has %d location(s)", volume_id, len(result.locations))
        return list(result.locations)

    async def locate(self, fid: str | FileId) -> list[Location]:
        """Look up the replica locations of the volume holding ``fid``.

        Raises:
            MalformedFileIdError: If the file id cannot be parsed.
        """
        volume_id = fid.volume_id if isinstance(fid, FileId) else volume_id_of(fid)
        return await self.lookup(volume_id)

    @traced_operation("upload")
    async def upload(
        self,
        ticket: AssignTicket,
        source: Any,
        filename: str | None = None,
        *,
        fid_suffix: str = "",
    ) -> int:
        """Write bytes to the volume server named by a ticket.

        The body is sent as a single multipart part named ``file``. Files and
        streams are read incrementally, never buffered whole.

        Args:
            ticket: Ticket returned by ``assign``.
            source: Bytes, a path, a binary file object, an (async) iterable of
                bytes, or a ByteSource.
            filename: Multipart filename; defaults to the path's basename when
                ``source`` is a path, otherwise "file". Sanitized to 1..255 bytes.
            fid_suffix: Appended verbatim to the ticket's fid. Tickets with
                count > 1 get no suffix unless the caller supplies one.

        Returns:
            Number of bytes the volume server reports as stored.

        Raises:
            EmptyFileError: If the source is known to be empty (no request sent).
            NotAFileError: If a path or file handle is not a regular file.
            InvalidUrlError: If the ticket's server address is unusable.
            ClusterReportedError: If the volume server reports an error.
            MalformedResponseError: If the response matches neither shape.
            TransportError: On network failure.
        """
        body_source = as_byte_source(source)
        name = sanitize_filename(filename if filename is not None else body_source.name_hint)
        url = upload_url(ticket, fid_suffix)
        fid = ticket.fid + fid_suffix

        if ticket.count > 1 and not fid_suffix:
            logger.debug("Ticket reserves %d ids; writing base fid %s", ticket.count, fid)

        body = MultipartBody(body_source, name, chunk_size=self.config.chunk_size)
        response = await self._send("POST", url, fid=fid, content=body, headers=body.headers)
        result = self._decode(response, WriteResult, fid=fid)
        logger.info("Stored fid=%s size=%d on %s", fid, result.size, url.host)
        return result.size

    @traced_operation("download")
    async def download(self, fid: str | FileId, location: Location) -> DownloadStream:
        """Open a streamed read of ``fid`` from one replica location.

        Only the response headers are awaited; the body is yielded lazily by
        the returned stream, which must be drained or closed.

        Raises:
            NotFoundError: If the volume server answers 404.
            TransportError: On network failure or any other non-2xx status.
            InvalidInputError: If fid is empty or the location is unusable.
        """
        fid_text = str(fid)
        if not fid_text:
            raise InvalidInputError("fid must not be empty")

        url = download_url(fid_text, location)
        response = await self._send("GET", url, fid=fid_text, stream=True)

        if response.status_code == httpx.codes.NOT_FOUND:
            await response.aclose()
            raise NotFoundError(fid=fid_text, url=str(url))
        if not response.is_success:
            await response.aclose()
            raise TransportError(
                f"Volume server returned HTTP {response.status_code}",
                fid=fid_text,
                url=str(url),
                status_code=response.status_code,
            )

        return DownloadStream(response, fid=fid_text, chunk_size=self.config.chunk_size)

    async def download_bytes(self, fid: str | FileId, location: Location) -> bytes:
        """Download ``fid`` into memory.

        Raises:
            NotFoundError: If the volume server answers 404.
            TransportError: On any failure, including mid-stream; partial data
                is discarded.
        """
        stream = await self.download(fid, location)
        return await stream.read_all()

    @traced_operation("dir_status")
    async def dir_status(self) -> DirStatus:
        """Fetch the master's topology report."""
        response = await self._send("GET", self._master.join(DIR_STATUS_PATH))
        return self._decode(response, DirStatus)

    @traced_operation("volume_status")
    async def volume_status(self, server: str | Location) -> VolumeStatus:
        """Fetch per-volume statistics from one volume server."""
        server_url = server.public_url if isinstance(server, Location) else server
        url = parse_server_url(server_url).join(VOLUME_STATUS_PATH)
        response = await self._send("GET", url)
        return self._decode(response, VolumeStatus)

    async def _send(
        self,
        method: str,
        url: httpx.URL,
        *,
        fid: str | None = None,
        params: dict[str, str] | None = None,
        content: Any = None,
        headers: dict[str, str] | None = None,
        stream: bool = False,
    ) -> httpx.Response:
        """Send one request, mapping httpx failures to TransportError."""
        request_headers = {"User-Agent": USER_AGENT}
        if headers:
            request_headers.update(headers)

        request = self._http.build_request(
            method, url, params=params, content=content, headers=request_headers
        )
        logger.debug("%s %s", method, request.url)
        try:
            return await self._http.send(request, stream=stream)
        except httpx.RequestError as e:
            raise TransportError(
                f"{method} request failed: {e}",
                fid=fid,
                url=str(request.url),
                cause=e,
            ) from e

    def _decode(
        self,
        response: httpx.Response,
        model: type[ModelT],
        *,
        fid: str | None = None,
    ) -> ModelT:
        """Decode an envelope response, attaching request context to errors.

        A body that is no envelope at all is a transport failure when the
        status is non-2xx, and a malformed response otherwise.
        """
        url = str(response.request.url)
        try:
            return decode_envelope(response.content, model)
        except ClusterReportedError as e:
            e.fid = fid
            e.url = url
            logger.warning("Cluster reported error for %s: %s", url, e.message)
            raise
        except MalformedResponseError as e:
            if response.is_success:
                e.fid = fid
                e.url = url
                raise
            raise TransportError(
                f"HTTP {response.status_code} without a usable response body",
                fid=fid,
                url=url,
                status_code=response.status_code,
                cause=e,
            ) from e
