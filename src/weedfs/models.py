"""weedfs wire models.

Pydantic models for the master and volume server JSON payloads. Field names
follow Python conventions; aliases match the camelCase keys on the wire.
Unknown extra keys are ignored.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from weedfs.errors import InvalidInputError


class ReplicationPolicy(StrEnum):
    """Replica placement strategy requested at assign time.

    The value is the 3-digit code understood by the master:
    data centers, racks, same-rack servers.
    """

    NONE = "000"
    """No replication."""
    ONCE_ON_SAME_RACK = "001"
    """Replicate once on the same rack."""
    ONCE_ON_DIFFERENT_RACK = "010"
    """Replicate once on a different rack, but same data center."""
    ONCE_ON_DIFFERENT_DC = "100"
    """Replicate once on a different data center."""
    TWICE_ON_DIFFERENT_DC = "200"
    """Replicate twice on two different data centers."""
    ONCE_ON_DIFFERENT_RACK_AND_ONCE_ON_DIFFERENT_DC = "110"
    """Replicate once on a different rack, and once on a different data center."""

    @property
    def code(self) -> str:
        return self.value

    @classmethod
    def from_code(cls, code: str) -> ReplicationPolicy:
        """Parse a 3-digit replication code.

        Raises:
            InvalidInputError: If the code is not one of the six known policies.
        """
        try:
            return cls(code)
        except ValueError as e:
            valid = ", ".join(p.value for p in cls)
            raise InvalidInputError(
                f"Unknown replication code {code!r}. Valid codes: {valid}"
            ) from e


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class AssignTicket(_WireModel):
    """Placement ticket returned by ``/dir/assign``.

    A ticket authorizes exactly one physical write of ``fid`` on the volume
    server at ``public_url``. Request a new ticket for every write.

    Attributes:
        count: Number of file ids reserved by the master.
        fid: File id to write.
        public_url: Public address of the volume server receiving the write.
        url: Internal address of the same volume server.
    """

    count: int = Field(ge=0)
    fid: str
    public_url: str
    url: str


class Location(_WireModel):
    """One volume server holding a replica.

    Attributes:
        public_url: Public address of the volume server.
        url: Internal address of the volume server.
    """

    public_url: str
    url: str


ReplicaLocation = Location


class LookupResult(_WireModel):
    """Payload of ``/dir/lookup``."""

    locations: list[Location]


class WriteResult(_WireModel):
    """Payload returned by a volume server after an upload.

    Attributes:
        size: Number of bytes stored.
        name: File name recorded by the volume server, if reported.
        e_tag: Content ETag, if reported.
    """

    size: int = Field(ge=0)
    name: str | None = None
    e_tag: str | None = Field(default=None, alias="eTag")
