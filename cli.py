"""Command line entry point: export, sync and seed the product catalog."""

import argparse
import logging
import sys
from pathlib import Path

from errors import FormatError, StoreUnavailable
from schemas import SyncMode
from services import configure_logging, create_store_client, fetch_snapshot
from snapshot import dump_snapshot, export_snapshot
from store import SupabaseCatalogStore
from sync import reconcile_images, run_sync, seed_catalog

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_FAILED = 2


def _print_report(report) -> int:
    print(report.model_dump_json(by_alias=True, indent=2))
    return EXIT_PARTIAL if report.status == "partial" else EXIT_OK


def _cmd_export(args, store) -> int:
    data = dump_snapshot(export_snapshot(store))
    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(data)
        logger.info("snapshot written to %s", out)
    else:
        sys.stdout.write(data.decode("utf-8") + "\n")
    return EXIT_OK


def _cmd_sync(args, store) -> int:
    data = Path(args.snapshot).read_bytes()
    return _print_report(run_sync(SyncMode(args.mode), data, store))


def _cmd_fetch(args, store) -> int:
    data = fetch_snapshot(args.url, args.token)
    return _print_report(run_sync(SyncMode(args.mode), data, store))


def _cmd_seed(args, store) -> int:
    return _print_report(seed_catalog(store))


def _cmd_sync_images(args, store) -> int:
    return _print_report(reconcile_images(store))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalog-sync", description=__doc__)
    parser.add_argument("--log-level", default=None, help="Logging level (default: $LOG_LEVEL or INFO).")
    sub = parser.add_subparsers(dest="command", required=True)

    modes = [m.value for m in SyncMode]

    export = sub.add_parser("export", help="Write the catalog snapshot.")
    export.add_argument("--out", help="File to write (default: stdout).")
    export.set_defaults(handler=_cmd_export)

    sync = sub.add_parser("sync", help="Reconcile the catalog with a snapshot file.")
    sync.add_argument("snapshot", help="Path to a snapshot JSON file.")
    sync.add_argument("--mode", choices=modes, default=SyncMode.MERGE.value)
    sync.set_defaults(handler=_cmd_sync)

    fetch = sub.add_parser("fetch", help="Reconcile the catalog with a snapshot downloaded from a URL.")
    fetch.add_argument("url", help="Export URL of another deployment.")
    fetch.add_argument("--token", help="Bearer token for the export URL.")
    fetch.add_argument("--mode", choices=modes, default=SyncMode.MERGE.value)
    fetch.set_defaults(handler=_cmd_fetch)

    seed = sub.add_parser("seed", help="Replace the catalog with the default products.")
    seed.set_defaults(handler=_cmd_seed)

    images = sub.add_parser("sync-images", help="Bring imagePath and images back in step.")
    images.set_defaults(handler=_cmd_sync_images)

    return parser


def main(argv=None, store=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        if store is None:
            store = SupabaseCatalogStore(create_store_client())
        return args.handler(args, store)
    except FormatError as e:
        logger.error("invalid snapshot: %s", e)
    except StoreUnavailable as e:
        logger.error("store unavailable: %s", e)
    except OSError as e:
        logger.error("%s", e)
    return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
