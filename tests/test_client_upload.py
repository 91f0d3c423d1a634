"""Tests for WeedFSClient.upload against volume servers."""

from __future__ import annotations

import asyncio
import io
from collections.abc import AsyncIterator
from pathlib import Path

import httpx
import pytest

from weedfs.client import WeedFSClient
from weedfs.errors import (
    ClusterReportedError,
    EmptyFileError,
    InvalidInputError,
    InvalidUrlError,
    MalformedResponseError,
    NotAFileError,
    TransportError,
)
from weedfs.models import AssignTicket
from weedfs.testing import FakeCluster


def _ticket(public_url: str, fid: str = "3,01637037d6", count: int = 1) -> AssignTicket:
    return AssignTicket(count=count, fid=fid, public_url=public_url, url=public_url)


def _upload_requests(cluster: FakeCluster) -> list[httpx.Request]:
    return [request for request in cluster.requests if request.method == "POST"]


class TestUpload:
    def test_bytes(self, client: WeedFSClient, cluster: FakeCluster) -> None:
        ticket = asyncio.run(client.assign())
        size = asyncio.run(client.upload(ticket, b"hello weedfs", "hello.txt"))
        assert size == 12
        assert cluster.stored(ticket.fid) == b"hello weedfs"

    def test_request_shape(self, client: WeedFSClient, cluster: FakeCluster) -> None:
        ticket = asyncio.run(client.assign())
        asyncio.run(client.upload(ticket, b"abc", "notes.txt"))
        request = _upload_requests(cluster)[-1]
        assert request.url == httpx.URL(f"http://{ticket.public_url}/{ticket.fid}")
        assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        assert int(request.headers["Content-Length"]) == len(request.content)
        assert b'name="file"; filename="notes.txt"' in request.content

    def test_default_filename(self, client: WeedFSClient, cluster: FakeCluster) -> None:
        ticket = asyncio.run(client.assign())
        asyncio.run(client.upload(ticket, b"abc"))
        assert b'filename="file"' in _upload_requests(cluster)[-1].content

    def test_long_filename_truncated(self, client: WeedFSClient, cluster: FakeCluster) -> None:
        ticket = asyncio.run(client.assign())
        asyncio.run(client.upload(ticket, b"abc", "n" * 300))
        content = _upload_requests(cluster)[-1].content
        assert b'filename="' + b"n" * 255 + b'"' in content

    def test_path_source_uses_basename(
        self, client: WeedFSClient, cluster: FakeCluster, tmp_path: Path
    ) -> None:
        path = tmp_path / "photo.jpg"
        path.write_bytes(b"\xff\xd8" + b"\x00" * 2000)
        ticket = asyncio.run(client.assign())
        size = asyncio.run(client.upload(ticket, path))
        assert size == 2002
        content = _upload_requests(cluster)[-1].content
        assert b'filename="photo.jpg"' in content
        assert b"Content-Type: image/jpeg" in content
        assert cluster.stored(ticket.fid) == path.read_bytes()

    def test_file_object_source(self, client: WeedFSClient, cluster: FakeCluster) -> None:
        ticket = asyncio.run(client.assign())
        size = asyncio.run(client.upload(ticket, io.BytesIO(b"x" * 1000), "x.bin"))
        assert size == 1000
        assert cluster.stored(ticket.fid) == b"x" * 1000

    def test_async_stream_source(self, client: WeedFSClient, cluster: FakeCluster) -> None:
        async def produce() -> AsyncIterator[bytes]:
            for _ in range(4):
                yield b"chunk"

        ticket = asyncio.run(client.assign())
        size = asyncio.run(client.upload(ticket, produce(), "stream.bin"))
        assert size == 20
        assert cluster.stored(ticket.fid) == b"chunk" * 4
        assert "Content-Length" not in _upload_requests(cluster)[-1].headers

    def test_fid_suffix(self, client: WeedFSClient, cluster: FakeCluster) -> None:
        ticket = asyncio.run(client.assign(count=2))
        asyncio.run(client.upload(ticket, b"second", "b.txt", fid_suffix="_1"))
        assert _upload_requests(cluster)[-1].url.path == f"/{ticket.fid}_1"
        assert cluster.stored(f"{ticket.fid}_1") == b"second"

    def test_multi_count_ticket_without_suffix(
        self, client: WeedFSClient, cluster: FakeCluster
    ) -> None:
        ticket = asyncio.run(client.assign(count=2))
        asyncio.run(client.upload(ticket, b"first"))
        assert _upload_requests(cluster)[-1].url.path == f"/{ticket.fid}"

    def test_zero_bytes_sends_nothing(self, client: WeedFSClient, cluster: FakeCluster) -> None:
        ticket = asyncio.run(client.assign())
        sent = len(cluster.requests)
        with pytest.raises(EmptyFileError):
            asyncio.run(client.upload(ticket, b""))
        assert len(cluster.requests) == sent

    def test_empty_file_sends_nothing(
        self, client: WeedFSClient, cluster: FakeCluster, tmp_path: Path
    ) -> None:
        path = tmp_path / "empty.txt"
        path.touch()
        with pytest.raises(EmptyFileError):
            asyncio.run(client.upload(_ticket("volume-1:8080"), path))
        assert cluster.requests == []

    def test_directory_rejected(
        self, client: WeedFSClient, cluster: FakeCluster, tmp_path: Path
    ) -> None:
        with pytest.raises(NotAFileError):
            asyncio.run(client.upload(_ticket("volume-1:8080"), tmp_path))
        assert cluster.requests == []

    def test_invalid_public_url(self, client: WeedFSClient, cluster: FakeCluster) -> None:
        with pytest.raises(InvalidUrlError):
            asyncio.run(client.upload(_ticket(""), b"abc"))
        assert cluster.requests == []

    def test_text_mode_file_sends_nothing(
        self, client: WeedFSClient, cluster: FakeCluster, tmp_path: Path
    ) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with path.open("r") as fh:
            with pytest.raises(InvalidInputError):
                asyncio.run(client.upload(_ticket("volume-1:8080"), fh))
        assert cluster.requests == []

    def test_unreachable_volume_server(self, client: WeedFSClient) -> None:
        with pytest.raises(TransportError) as exc_info:
            asyncio.run(client.upload(_ticket("gone:8080"), b"abc"))
        assert exc_info.value.fid == "3,01637037d6"
        assert isinstance(exc_info.value.cause, httpx.ConnectError)


class TestUploadResponses:
    def _client(self, response: httpx.Response) -> WeedFSClient:
        def handler(request: httpx.Request) -> httpx.Response:
            return response

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return WeedFSClient("master:9333", http_client=http_client)

    def test_volume_error_envelope(self) -> None:
        client = self._client(httpx.Response(500, json={"error": "volume 3 is read only"}))
        with pytest.raises(ClusterReportedError) as exc_info:
            asyncio.run(client.upload(_ticket("volume:8080"), b"abc"))
        assert exc_info.value.message == "volume 3 is read only"
        assert exc_info.value.fid == "3,01637037d6"

    def test_missing_size(self) -> None:
        client = self._client(httpx.Response(201, json={"name": "a.txt"}))
        with pytest.raises(MalformedResponseError):
            asyncio.run(client.upload(_ticket("volume:8080"), b"abc"))

    def test_reported_size_returned(self) -> None:
        client = self._client(httpx.Response(201, json={"name": "a.txt", "size": 7}))
        assert asyncio.run(client.upload(_ticket("volume:8080"), b"abc")) == 7

    def test_gateway_error_page(self) -> None:
        client = self._client(httpx.Response(503, text="Service Unavailable"))
        with pytest.raises(TransportError) as exc_info:
            asyncio.run(client.upload(_ticket("volume:8080"), b"abc"))
        assert exc_info.value.status_code == 503
