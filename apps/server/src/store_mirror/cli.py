from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .audit import AUDIT_LOG_NAME, log_event
from .paths import ensure_dirs
from .serving.server import run_server
from .settings import load_settings
from .stores.base import StoreError
from .stores.registry import build_store
from .sync.runner import plan_sync, synchronize

logger = logging.getLogger("store_mirror")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="store-mirror",
        description="Mirror a directory into an object store and serve it over HTTP.",
    )
    p.add_argument("--log-level", default="INFO", help="Root log level (default: INFO)")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("sync", help="Publish a local directory to the store")
    sp.add_argument("directory", type=Path)
    sp.add_argument("--dry-run", action="store_true", help="Compute the plan, publish nothing")

    pp = sub.add_parser("plan", help="Print what a sync would write and delete")
    pp.add_argument("directory", type=Path)

    sub.add_parser("serve", help="Serve the store over HTTP until SIGINT/SIGTERM")
    return p


def _cmd_sync(args: argparse.Namespace) -> int:
    settings = load_settings()
    ensure_dirs(settings.paths)
    store = build_store(settings)
    report = asyncio.run(
        synchronize(args.directory, store, concurrency=settings.concurrency, dry_run=args.dry_run)
    )
    if not report.dry_run:
        log_event(
            settings.paths.data_dir / AUDIT_LOG_NAME,
            event_type="sync_completed",
            details=report.as_dict(),
        )
    print(json.dumps(report.as_dict(), ensure_ascii=False, indent=2))
    return 0


def _cmd_plan(args: argparse.Namespace) -> int:
    settings = load_settings()
    store = build_store(settings)
    plan, skipped = asyncio.run(plan_sync(args.directory, store, concurrency=settings.concurrency))
    out = {
        "to_write": [e.path for e in plan.to_write],
        "to_delete": plan.to_delete,
        "unchanged": len(plan.unchanged),
        "skipped": skipped,
    }
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


def _cmd_serve(_args: argparse.Namespace) -> int:
    settings = load_settings()
    asyncio.run(run_server(settings))
    return 0


COMMANDS = {
    "sync": _cmd_sync,
    "plan": _cmd_plan,
    "serve": _cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return COMMANDS[args.cmd](args)
    except (OSError, StoreError, ValueError) as e:
        logger.error("%s failed: %s", args.cmd, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
