"""Transfer bodies for uploads and downloads.

Upload bodies are modelled as byte sources that are consumed incrementally;
in-memory buffers are just the simplest source. The multipart encoder streams
any source, so file and stream uploads are never buffered whole. Downloads are
exposed as a lazy chunk stream, with ``read_all`` as the buffering convenience
layered on top.
"""

from __future__ import annotations

import asyncio
import io
import logging
import mimetypes
import os
import stat
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

import httpx

from weedfs.errors import EmptyFileError, InvalidInputError, NotAFileError, TransportError

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
MULTIPART_FIELD_NAME = "file"
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_CRLF = b"\r\n"


class ByteSource(ABC):
    """A body that can be read incrementally, once."""

    @property
    @abstractmethod
    def size(self) -> int | None:
        """Number of bytes the source will yield, or None when unknown."""
        ...

    @property
    def name_hint(self) -> str | None:
        """Filename suggested by the source itself (e.g. a path basename)."""
        return None

    @abstractmethod
    def chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        """Yield the content as successive non-empty chunks."""
        ...


class BufferSource(ByteSource):
    """An in-memory buffer."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)

    @property
    def size(self) -> int:
        return len(self._data)

    async def chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        for offset in range(0, len(self._data), chunk_size):
            yield self._data[offset : offset + chunk_size]


class FileSource(ByteSource):
    """A regular file on the local filesystem, read lazily in chunks."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        try:
            st = self._path.stat()
        except OSError as e:
            raise NotAFileError(f"Cannot stat upload source: {e}", path=str(path)) from e
        if not stat.S_ISREG(st.st_mode):
            raise NotAFileError(path=str(path))
        self._size = st.st_size

    @property
    def size(self) -> int:
        return self._size

    @property
    def name_hint(self) -> str:
        return self._path.name

    async def chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        fh = await asyncio.to_thread(self._path.open, "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(fh.read, chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await asyncio.to_thread(fh.close)


class ReaderSource(ByteSource):
    """A binary file object, read from its current position.

    A file object backed by a descriptor must denote a regular file. The size
    is known when the object is seekable.
    """

    def __init__(self, reader: IO[bytes]) -> None:
        if isinstance(reader, io.TextIOBase):
            raise InvalidInputError("Upload file object must be opened in binary mode")
        self._reader = reader
        self._size = _remaining_size(reader)

    @property
    def size(self) -> int | None:
        return self._size

    @property
    def name_hint(self) -> str | None:
        name = getattr(self._reader, "name", None)
        if isinstance(name, str):
            return os.path.basename(name)
        return None

    async def chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        while True:
            chunk = await asyncio.to_thread(self._reader.read, chunk_size)
            if not chunk:
                break
            if not isinstance(chunk, bytes | bytearray | memoryview):
                raise InvalidInputError(
                    f"Upload file object returned {type(chunk).__name__}, expected bytes"
                )
            yield bytes(chunk)


class StreamSource(ByteSource):
    """An iterable (sync or async) of byte chunks of unknown total length."""

    def __init__(self, stream: AsyncIterable[bytes] | Iterable[bytes]) -> None:
        self._stream = stream

    @property
    def size(self) -> None:
        return None

    async def chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        if isinstance(self._stream, AsyncIterable):
            async for chunk in self._stream:
                if chunk:
                    yield bytes(chunk)
        else:
            for chunk in self._stream:
                if chunk:
                    yield bytes(chunk)


def _remaining_size(reader: IO[bytes]) -> int | None:
    fileno = _fileno(reader)
    if fileno is not None:
        st = os.fstat(fileno)
        if not stat.S_ISREG(st.st_mode):
            name = getattr(reader, "name", None)
            raise NotAFileError(
                "Upload file handle does not denote a regular file",
                path=name if isinstance(name, str) else None,
            )
        return max(st.st_size - reader.tell(), 0)
    if reader.seekable():
        position = reader.tell()
        end = reader.seek(0, os.SEEK_END)
        reader.seek(position)
        return max(end - position, 0)
    return None


def _fileno(reader: IO[bytes]) -> int | None:
    try:
        return reader.fileno()
    except (AttributeError, OSError, ValueError):
        # io.BytesIO and friends raise io.UnsupportedOperation (an OSError)
        return None


def as_byte_source(data: Any) -> ByteSource:
    """Wrap an upload payload in the matching byte source.

    Accepts a ByteSource, bytes-like objects, filesystem paths, binary file
    objects, and iterables or async iterables of bytes.

    Raises:
        EmptyFileError: If the payload is known to be zero-length.
        NotAFileError: If a path or file handle does not denote a regular file.
        InvalidInputError: If the payload type is not supported.
    """
    source: ByteSource
    if isinstance(data, ByteSource):
        source = data
    elif isinstance(data, bytes | bytearray | memoryview):
        source = BufferSource(data)
    elif isinstance(data, str | os.PathLike):
        source = FileSource(data)
    elif hasattr(data, "read"):
        source = ReaderSource(data)
    elif isinstance(data, AsyncIterable | Iterable):
        source = StreamSource(data)
    else:
        raise InvalidInputError(f"Unsupported upload source type: {type(data).__name__}")

    if source.size == 0:
        raise EmptyFileError()
    return source


def guess_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_CONTENT_TYPE


def _quote_param(value: str) -> str:
    # same escaping as browsers use for multipart/form-data parameters
    return value.replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")


class MultipartBody:
    """Single-part ``multipart/form-data`` body streamed from a byte source.

    Attributes:
        boundary: Multipart boundary string.
        content_type: Value for the request Content-Type header.
        content_length: Total body length, or None when the source size is
            unknown (the request then uses chunked transfer encoding).
    """

    def __init__(
        self,
        source: ByteSource,
        filename: str,
        *,
        boundary: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._source = source
        self._chunk_size = chunk_size
        self.boundary = boundary or uuid.uuid4().hex
        self.content_type = f"multipart/form-data; boundary={self.boundary}"

        disposition = (
            f'Content-Disposition: form-data; name="{MULTIPART_FIELD_NAME}"; '
            f'filename="{_quote_param(filename)}"'
        )
        self._head = b"".join(
            [
                b"--" + self.boundary.encode("ascii") + _CRLF,
                disposition.encode("utf-8") + _CRLF,
                f"Content-Type: {guess_content_type(filename)}".encode("ascii") + _CRLF,
                _CRLF,
            ]
        )
        self._tail = _CRLF + b"--" + self.boundary.encode("ascii") + b"--" + _CRLF

        size = source.size
        self.content_length = (
            None if size is None else len(self._head) + size + len(self._tail)
        )

    @property
    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": self.content_type}
        if self.content_length is not None:
            headers["Content-Length"] = str(self.content_length)
        return headers

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield self._head
        async for chunk in self._source.chunks(self._chunk_size):
            yield chunk
        yield self._tail


class DownloadStream:
    """Lazy byte stream over a volume server response.

    Iterate with ``async for`` to receive chunks as they arrive. The
    underlying response is closed once the stream is drained, on ``aclose()``,
    or when leaving an ``async with`` block. A stream can be consumed once;
    reissue the download to read it again.
    """

    def __init__(
        self,
        response: httpx.Response,
        *,
        fid: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._response = response
        self._chunk_size = chunk_size
        self.fid = fid

    @property
    def content_length(self) -> int | None:
        raw = self._response.headers.get("Content-Length")
        return int(raw) if raw and raw.isdigit() else None

    @property
    def content_type(self) -> str | None:
        return self._response.headers.get("Content-Type")

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes(self._chunk_size):
                yield chunk
        except httpx.StreamError as e:
            raise TransportError(
                f"Download stream unusable: {e}",
                fid=self.fid,
                url=str(self._response.request.url),
                cause=e,
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"Download interrupted: {e}",
                fid=self.fid,
                url=str(self._response.request.url),
                cause=e,
            ) from e
        finally:
            await self._response.aclose()

    async def read_all(self) -> bytes:
        """Drain the stream into a single buffer.

        Raises:
            TransportError: If the stream fails at any point; data read so far
                is discarded.
        """
        buffer = bytearray()
        async for chunk in self:
            buffer.extend(chunk)
        return bytes(buffer)

    async def aclose(self) -> None:
        await self._response.aclose()

    async def __aenter__(self) -> DownloadStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
