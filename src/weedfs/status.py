"""Cluster and volume status documents.

These are deserialize-only views of ``/dir/status`` (master) and ``/status``
(volume server). The client never uses them for decisions; they are handed to
callers such as reporting tools. Keys on the wire are PascalCase, except for
the layout entries which are lowercase.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

from weedfs.models import ReplicationPolicy


class _StatusModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        frozen=True,
    )


class DataNode(_StatusModel):
    free: int
    max: int
    public_url: str
    volumes: int


class Rack(_StatusModel):
    id: str | None = None
    data_nodes: list[DataNode] | None = None
    free: int
    max: int


class DataCenter(_StatusModel):
    id: str | None = None
    free: int
    max: int
    racks: list[Rack]


class Layout(BaseModel):
    """Writable volumes of one collection/replication pair."""

    model_config = ConfigDict(frozen=True)

    collection: str
    replication: ReplicationPolicy
    writables: list[int]


class Topology(_StatusModel):
    data_centers: list[DataCenter]
    free: int
    max: int
    layouts: list[Layout] = Field(alias="layouts")


class DirStatus(_StatusModel):
    """Payload of the master's ``/dir/status`` endpoint."""

    topology: Topology
    version: str


class Volume(_StatusModel):
    """Statistics of one volume on a volume server."""

    id: int
    size: int
    rep_type: str
    collection: str
    version: int | str
    file_count: int
    delete_count: int
    deleted_byte_count: int
    read_only: bool


class VolumeStatus(_StatusModel):
    """Payload of a volume server's ``/status`` endpoint."""

    version: str
    volumes: list[Volume]
