"""weedfs: async client for SeaweedFS-style blob clusters.

Workflow:
    assign (master) -> upload (volume server) -> lookup (master) -> download
    (volume server)

Environment Variables:
    WEEDFS_MASTER_URL: Master server base URL used by WeedFSClient.from_env()
"""

from weedfs.client import WeedFSClient
from weedfs.config import ClientConfig, load_client_config
from weedfs.envelope import decode_envelope
from weedfs.errors import (
    ClientConfigError,
    ClusterReportedError,
    EmptyFileError,
    ErrorKind,
    InvalidInputError,
    InvalidUrlError,
    MalformedFileIdError,
    MalformedResponseError,
    NotAFileError,
    NotFoundError,
    TransportError,
    WeedFSError,
)
from weedfs.fid import FileId, volume_id_of
from weedfs.models import (
    AssignTicket,
    Location,
    LookupResult,
    ReplicaLocation,
    ReplicationPolicy,
    WriteResult,
)
from weedfs.status import DirStatus, VolumeStatus
from weedfs.transfer import (
    BufferSource,
    ByteSource,
    DownloadStream,
    FileSource,
    ReaderSource,
    StreamSource,
)
from weedfs.urls import download_url, sanitize_filename, upload_url

__all__ = [
    "WeedFSClient",
    "ClientConfig",
    "load_client_config",
    "decode_envelope",
    "AssignTicket",
    "Location",
    "LookupResult",
    "ReplicaLocation",
    "ReplicationPolicy",
    "WriteResult",
    "DirStatus",
    "VolumeStatus",
    "FileId",
    "volume_id_of",
    "upload_url",
    "download_url",
    "sanitize_filename",
    "ByteSource",
    "BufferSource",
    "FileSource",
    "ReaderSource",
    "StreamSource",
    "DownloadStream",
    "ErrorKind",
    "WeedFSError",
    "TransportError",
    "NotFoundError",
    "MalformedResponseError",
    "ClusterReportedError",
    "MalformedFileIdError",
    "InvalidInputError",
    "EmptyFileError",
    "NotAFileError",
    "InvalidUrlError",
    "ClientConfigError",
]
