"""File id parsing.

A file id is an opaque token minted by the master, shaped like
``<volumeId>,<fileKey>[,<cookie>]``. Only the volume id prefix carries meaning
for the client: it routes a later lookup. File ids are never built from parts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from weedfs.errors import MalformedFileIdError

FID_SEPARATOR = ","
MAX_VOLUME_ID = 2**64 - 1

_DIGITS_PATTERN = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class FileId:
    """Parsed view of a file id.

    Attributes:
        raw: The file id exactly as received from the cluster.
        volume_id: Volume holding the file.
        key: Text between the first separator and the optional cookie.
        cookie: Trailing part after a second separator, if any.
    """

    raw: str
    volume_id: int
    key: str
    cookie: str | None = None

    @classmethod
    def parse(cls, fid: str) -> FileId:
        """Parse a file id.

        Raises:
            MalformedFileIdError: If the separator is missing or the volume id
                prefix is not an unsigned 64-bit integer.
        """
        volume_id = volume_id_of(fid)
        rest = fid.split(FID_SEPARATOR, 1)[1]
        key, sep, cookie = rest.partition(FID_SEPARATOR)
        return cls(raw=fid, volume_id=volume_id, key=key, cookie=cookie if sep else None)

    def __str__(self) -> str:
        return self.raw


def volume_id_of(fid: str) -> int:
    """Extract the volume id from a file id.

    Args:
        fid: File id such as ``"3,01637037d6"``.

    Returns:
        The volume id as an integer.

    Raises:
        MalformedFileIdError: If ``fid`` has no separator, or its prefix is not
            made of ASCII digits, or it does not fit in 64 bits.
    """
    prefix, sep, _ = fid.partition(FID_SEPARATOR)
    if not sep:
        raise MalformedFileIdError(
            f"{fid!r} does not seem to be a valid file id (missing separator)", fid=fid
        )
    if not _DIGITS_PATTERN.fullmatch(prefix):
        raise MalformedFileIdError(
            f"Unable to parse volume id from file id {fid!r}", fid=fid
        )
    volume_id = int(prefix)
    if volume_id > MAX_VOLUME_ID:
        raise MalformedFileIdError(f"Volume id out of range in file id {fid!r}", fid=fid)
    return volume_id
