"""weedfs CLI - command-line access to the cluster workflow.

Usage:
    weedfs [--master URL] assign [--replication CODE] [--collection NAME] [--count N]
    weedfs [--master URL] upload PATH [--replication CODE] [--collection NAME] [--filename NAME]
    weedfs [--master URL] lookup VOLUME_ID_OR_FID
    weedfs [--master URL] download FID [--out PATH]
    weedfs [--master URL] status
    weedfs [--master URL] volume-status SERVER_URL

The master URL defaults to WEEDFS_MASTER_URL. Results are printed as JSON with
sorted keys. ``download`` reads from the first location the master reports.

Exit codes:
    0: Success
    1: Internal error (unexpected)
    2: Cluster, transport or input error
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from weedfs.client import WeedFSClient
from weedfs.config import load_client_config
from weedfs.errors import ClusterReportedError, WeedFSError
from weedfs.fid import FID_SEPARATOR, volume_id_of
from weedfs.models import ReplicationPolicy

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _output_json(data: Any) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2))


def _error_result(kind: str, message: str) -> dict[str, Any]:
    return {"error": {"kind": kind, "message": message}}


def _build_client(args: argparse.Namespace) -> WeedFSClient:
    """Create the client for a command; tests replace this hook."""
    return WeedFSClient(config=load_client_config(args.master))


async def cmd_assign(client: WeedFSClient, args: argparse.Namespace) -> int:
    ticket = await client.assign(
        replication=args.replication, collection=args.collection, count=args.count
    )
    _output_json(ticket.model_dump(by_alias=True))
    return 0


async def cmd_upload(client: WeedFSClient, args: argparse.Namespace) -> int:
    """Assign a ticket, then write PATH to the assigned volume server."""
    ticket = await client.assign(replication=args.replication, collection=args.collection)
    size = await client.upload(ticket, Path(args.path), args.filename)
    _output_json({"fid": ticket.fid, "publicUrl": ticket.public_url, "size": size})
    return 0


async def cmd_lookup(client: WeedFSClient, args: argparse.Namespace) -> int:
    target: str = args.target
    volume_id = volume_id_of(target) if FID_SEPARATOR in target else _parse_volume_id(target)
    locations = await client.lookup(volume_id)
    _output_json(
        {
            "locations": [location.model_dump(by_alias=True) for location in locations],
            "volumeId": volume_id,
        }
    )
    return 0


async def cmd_download(client: WeedFSClient, args: argparse.Namespace) -> int:
    locations = await client.locate(args.fid)
    if not locations:
        raise ClusterReportedError(f"No locations reported for {args.fid}", fid=args.fid)

    stream = await client.download(args.fid, locations[0])
    async with stream:
        if args.out in (None, "-"):
            sys.stdout.buffer.write(await stream.read_all())
            sys.stdout.buffer.flush()
            return 0

        out_path = Path(args.out)
        written = 0
        with out_path.open("wb") as fh:
            async for chunk in stream:
                fh.write(chunk)
                written += len(chunk)

    print(f"Wrote {written} bytes to {out_path}", file=sys.stderr)
    return 0


async def cmd_status(client: WeedFSClient, args: argparse.Namespace) -> int:
    status = await client.dir_status()
    _output_json(status.model_dump(by_alias=True, mode="json"))
    return 0


async def cmd_volume_status(client: WeedFSClient, args: argparse.Namespace) -> int:
    status = await client.volume_status(args.server)
    _output_json(status.model_dump(by_alias=True, mode="json"))
    return 0


COMMAND_DISPATCH: dict[str, Any] = {
    "assign": cmd_assign,
    "upload": cmd_upload,
    "lookup": cmd_lookup,
    "download": cmd_download,
    "status": cmd_status,
    "volume-status": cmd_volume_status,
}


def _parse_volume_id(raw: str) -> int:
    if not (raw.isascii() and raw.isdigit()):
        raise argparse.ArgumentTypeError(f"not a volume id or file id: {raw!r}")
    return int(raw)


def _replication_code(raw: str) -> ReplicationPolicy:
    return ReplicationPolicy.from_code(raw)


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="weedfs",
        description="weedfs - blob cluster client",
    )
    parser.add_argument(
        "--master",
        metavar="URL",
        default=None,
        help="Master server URL (default: $WEEDFS_MASTER_URL)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging level for diagnostics on stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    replication_codes = ", ".join(p.value for p in ReplicationPolicy)

    assign_parser = subparsers.add_parser("assign", help="Request a placement ticket")
    assign_parser.add_argument(
        "--replication", type=_replication_code, help=f"Replication code ({replication_codes})"
    )
    assign_parser.add_argument("--collection", help="Collection name")
    assign_parser.add_argument(
        "--count", type=_positive_int, default=1, help="Number of file ids to reserve"
    )

    upload_parser = subparsers.add_parser("upload", help="Assign a ticket and upload a file")
    upload_parser.add_argument("path", metavar="PATH", help="File to upload")
    upload_parser.add_argument(
        "--replication", type=_replication_code, help=f"Replication code ({replication_codes})"
    )
    upload_parser.add_argument("--collection", help="Collection name")
    upload_parser.add_argument(
        "--filename", default=None, help="Filename to record (default: basename of PATH)"
    )

    lookup_parser = subparsers.add_parser("lookup", help="List replica locations")
    lookup_parser.add_argument("target", metavar="VOLUME_ID_OR_FID")

    download_parser = subparsers.add_parser("download", help="Download a file by file id")
    download_parser.add_argument("fid", metavar="FID")
    download_parser.add_argument(
        "--out", metavar="PATH", default=None, help="Output file (default: stdout)"
    )

    subparsers.add_parser("status", help="Show the master's topology report")

    volume_status_parser = subparsers.add_parser(
        "volume-status", help="Show per-volume statistics of a volume server"
    )
    volume_status_parser.add_argument("server", metavar="SERVER_URL")

    return parser


async def _run(args: argparse.Namespace) -> int:
    handler = COMMAND_DISPATCH[args.command]
    async with _build_client(args) as client:
        result: int = await handler(client, args)
        return result


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Internal error (unexpected)
        2: Cluster, transport or input error
    """
    parser = create_parser()
    try:
        args = parser.parse_args(argv)
    except WeedFSError as e:
        # raised by argument type converters, e.g. an unknown replication code
        _output_json(_error_result(e.kind.value, str(e)))
        return 2

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return asyncio.run(_run(args))
    except WeedFSError as e:
        _output_json(_error_result(e.kind.value, str(e)))
        return 2
    except argparse.ArgumentTypeError as e:
        _output_json(_error_result("INVALID_INPUT", str(e)))
        return 2
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        _output_json(_error_result("INTERNAL_ERROR", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
