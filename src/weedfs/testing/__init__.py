"""weedfs testing utilities."""

from weedfs.testing.fake_cluster import FakeCluster, FakeVolume

__all__ = ["FakeCluster", "FakeVolume"]
