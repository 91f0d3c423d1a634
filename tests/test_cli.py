"""Tests for the weedfs command-line interface."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import pytest

from weedfs import cli
from weedfs.client import WeedFSClient
from weedfs.config import ENV_MASTER_URL
from weedfs.testing import FakeCluster


@pytest.fixture
def fake_cluster(monkeypatch: pytest.MonkeyPatch) -> FakeCluster:
    """Route every CLI client to an in-memory cluster."""
    cluster = FakeCluster()

    def build(args: argparse.Namespace) -> WeedFSClient:
        return WeedFSClient(args.master or cluster.master_url, http_client=cluster.http_client())

    monkeypatch.setattr(cli, "_build_client", build)
    return cluster


def _json_out(capsys: pytest.CaptureFixture[str]) -> Any:
    return json.loads(capsys.readouterr().out)


class TestAssignCommand:
    def test_assign(self, fake_cluster: FakeCluster, capsys: pytest.CaptureFixture[str]) -> None:
        assert cli.main(["assign", "--replication", "010", "--collection", "docs"]) == 0
        result = _json_out(capsys)
        assert set(result) == {"count", "fid", "publicUrl", "url"}
        assert fake_cluster.requests[-1].url.params["replication"] == "010"

    def test_unknown_replication(
        self, fake_cluster: FakeCluster, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert cli.main(["assign", "--replication", "999"]) == 2
        assert _json_out(capsys)["error"]["kind"] == "INVALID_INPUT"
        assert fake_cluster.requests == []

    def test_cluster_error(
        self, fake_cluster: FakeCluster, capsys: pytest.CaptureFixture[str]
    ) -> None:
        fake_cluster.no_free_volumes = True
        assert cli.main(["assign"]) == 2
        error = _json_out(capsys)["error"]
        assert error["kind"] == "CLUSTER_REPORTED"
        assert "No free volumes left!" in error["message"]


class TestUploadCommand:
    def test_upload(
        self,
        fake_cluster: FakeCluster,
        capsys: pytest.CaptureFixture[str],
        tmp_path: Path,
    ) -> None:
        path = tmp_path / "notes.txt"
        path.write_bytes(b"some notes")
        assert cli.main(["upload", str(path)]) == 0
        result = _json_out(capsys)
        assert result["size"] == 10
        assert fake_cluster.stored(result["fid"]) == b"some notes"

    def test_empty_file(
        self,
        fake_cluster: FakeCluster,
        capsys: pytest.CaptureFixture[str],
        tmp_path: Path,
    ) -> None:
        path = tmp_path / "empty.txt"
        path.touch()
        assert cli.main(["upload", str(path)]) == 2
        assert _json_out(capsys)["error"]["kind"] == "INVALID_INPUT"


class TestLookupCommand:
    def test_lookup_by_fid_and_volume(
        self, fake_cluster: FakeCluster, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert cli.main(["assign", "--replication", "010"]) == 0
        fid = _json_out(capsys)["fid"]

        assert cli.main(["lookup", fid]) == 0
        by_fid = _json_out(capsys)
        assert len(by_fid["locations"]) == 2

        assert cli.main(["lookup", str(by_fid["volumeId"])]) == 0
        assert _json_out(capsys) == by_fid

    def test_bad_target(
        self, fake_cluster: FakeCluster, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert cli.main(["lookup", "abc"]) == 2
        assert _json_out(capsys)["error"]["kind"] == "INVALID_INPUT"

    def test_non_ascii_digits_target(
        self, fake_cluster: FakeCluster, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert cli.main(["lookup", "²"]) == 2
        assert _json_out(capsys)["error"]["kind"] == "INVALID_INPUT"
        assert fake_cluster.requests == []

    def test_malformed_fid(
        self, fake_cluster: FakeCluster, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert cli.main(["lookup", "x,abc"]) == 2
        assert _json_out(capsys)["error"]["kind"] == "MALFORMED_FILE_ID"


class TestDownloadCommand:
    def _upload(self, capsys: pytest.CaptureFixture[str], tmp_path: Path, data: bytes) -> str:
        path = tmp_path / "source.bin"
        path.write_bytes(data)
        assert cli.main(["upload", str(path)]) == 0
        fid: str = _json_out(capsys)["fid"]
        return fid

    def test_download_to_file(
        self,
        fake_cluster: FakeCluster,
        capsys: pytest.CaptureFixture[str],
        tmp_path: Path,
    ) -> None:
        fid = self._upload(capsys, tmp_path, b"payload" * 100)
        out = tmp_path / "out.bin"
        assert cli.main(["download", fid, "--out", str(out)]) == 0
        assert out.read_bytes() == b"payload" * 100
        assert "Wrote 700 bytes" in capsys.readouterr().err

    def test_not_found(
        self,
        fake_cluster: FakeCluster,
        capsys: pytest.CaptureFixture[str],
        tmp_path: Path,
    ) -> None:
        fid = self._upload(capsys, tmp_path, b"abc")
        fake_cluster.drop(fid)
        assert cli.main(["download", fid, "--out", str(tmp_path / "out.bin")]) == 2
        assert _json_out(capsys)["error"]["kind"] == "NOT_FOUND"


class TestStatusCommands:
    def test_status(self, fake_cluster: FakeCluster, capsys: pytest.CaptureFixture[str]) -> None:
        assert cli.main(["status"]) == 0
        result = _json_out(capsys)
        assert "Topology" in result
        assert result["Version"]

    def test_volume_status(
        self, fake_cluster: FakeCluster, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert cli.main(["volume-status", "volume-1:8080"]) == 0
        assert _json_out(capsys)["Volumes"] == []


class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert cli.main([]) == 0
        assert "usage: weedfs" in capsys.readouterr().out

    def test_missing_master_url(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert cli.main(["assign"]) == 2
        error = _json_out(capsys)["error"]
        assert error["kind"] == "INVALID_INPUT"
        assert ENV_MASTER_URL in error["message"]

    def test_unexpected_error(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        def explode(args: argparse.Namespace) -> WeedFSClient:
            raise RuntimeError("boom")

        monkeypatch.setattr(cli, "_build_client", explode)
        assert cli.main(["--master", "master:9333", "status"]) == 1
        assert _json_out(capsys)["error"] == {"kind": "INTERNAL_ERROR", "message": "boom"}
