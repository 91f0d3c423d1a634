"""Pytest configuration and fixtures for weedfs tests.

All cluster traffic goes through FakeCluster's httpx.MockTransport; no test
touches the network.
"""

from __future__ import annotations

import pytest

from weedfs.client import WeedFSClient
from weedfs.config import ENV_CHUNK_SIZE, ENV_MASTER_URL, ENV_OTEL_ENABLED, ClientConfig
from weedfs.testing import FakeCluster
from weedfs.testing.fake_cluster import DEFAULT_MASTER_URL


@pytest.fixture(autouse=True)
def clear_weedfs_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's WEEDFS_* settings out of the tests."""
    for var in (ENV_MASTER_URL, ENV_CHUNK_SIZE, ENV_OTEL_ENABLED):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def client(cluster: FakeCluster) -> WeedFSClient:
    """Client wired to the fake cluster, with a small chunk size."""
    return WeedFSClient(
        config=ClientConfig(master_url=DEFAULT_MASTER_URL, chunk_size=256),
        http_client=cluster.http_client(),
    )
