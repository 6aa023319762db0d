#!/usr/bin/env python3
"""One-shot ISG scrape for pyisgweb.

Runs a single pass over the configured status, value and command pages
into an in-memory state store and prints every resulting entity as JSON.
Useful for checking page paths and for capturing fixtures when the ISG
firmware changes its markup.

Settings are read from ``ISG_*`` environment variables (a ``.env`` file
in the working directory is loaded first) and can be overridden on the
command line.

Usage:
    pyisgweb-dump --host 192.168.1.50 --values "1,0;1,1" --commands "0;4,0,0"
    pyisgweb-dump --help
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from pyisgweb import __version__
from pyisgweb.adapter import IsgAdapter
from pyisgweb.config import IsgConfig
from pyisgweb.exceptions import IsgConfigError
from pyisgweb.sanitize import split_paths
from pyisgweb.store import MemoryStateStore


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="pyisgweb-dump",
        description="Scrape an ISG once and print the resulting states as JSON.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pyisgweb-dump --host 192.168.1.50 --values "1,0"
      Dump the readings of the system info page

  pyisgweb-dump --host servicewelt --commands "0;4,0,0" --language de
      Dump start page and heating settings with German group names

  ISG_HOST=192.168.1.50 ISG_VALUE_PATHS="1,0;1,1" pyisgweb-dump -o isg.json
      Take settings from the environment, write to a file
""",
    )

    conn_group = parser.add_argument_group("Connection Options")
    conn_group.add_argument("--host", "-H", help="ISG address (env: ISG_HOST)")
    conn_group.add_argument("--username", "-u", help="ISG web user (env: ISG_USERNAME)")
    conn_group.add_argument("--password", "-p", help="ISG web password (env: ISG_PASSWORD)")
    conn_group.add_argument(
        "--timeout",
        type=float,
        help="Request timeout in seconds, 0 disables (default: 60)",
    )

    page_group = parser.add_argument_group("Page Options")
    page_group.add_argument("--status", help="Semicolon-delimited status page paths")
    page_group.add_argument("--values", help="Semicolon-delimited value page paths")
    page_group.add_argument("--commands", help="Semicolon-delimited command page paths")
    page_group.add_argument("--language", help="Group name language (en, de)")
    page_group.add_argument(
        "--no-umlauts",
        action="store_true",
        help="Transliterate umlauts in state paths",
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Write JSON to this file instead of stdout",
    )
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log lifecycle events",
    )
    output_group.add_argument(
        "--debug",
        action="store_true",
        help="Log skipped rows, bounds and requests",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def build_config(args: argparse.Namespace) -> IsgConfig:
    """Merge environment settings with command-line overrides."""
    config = IsgConfig.from_env()
    if args.host:
        config.host = args.host
    if args.username is not None:
        config.username = args.username
    if args.password is not None:
        config.password = args.password
    if args.timeout is not None:
        config.request_timeout = args.timeout
    if args.status is not None:
        config.status_paths = split_paths(args.status)
    if args.values is not None:
        config.value_paths = split_paths(args.values)
    if args.commands is not None:
        config.command_paths = split_paths(args.commands)
    if args.language:
        config.language = args.language
    if args.no_umlauts:
        config.avoid_umlauts = True
    return config


async def run_dump(config: IsgConfig) -> dict[str, dict]:
    """Run one pass and return the store contents."""
    store = MemoryStateStore()
    adapter = IsgAdapter(config, store)
    await adapter.setup()
    try:
        await adapter.run_once()
    finally:
        await adapter.stop()
    return store.dump()


def main() -> int:
    """Main entry point."""
    load_dotenv(Path.cwd() / ".env")
    parser = create_parser()
    args = parser.parse_args()

    if args.debug or args.verbose:
        logging.basicConfig(
            level=logging.DEBUG if args.debug else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    config = build_config(args)
    if not config.host:
        parser.error("--host is required (or set ISG_HOST)")

    try:
        result = asyncio.run(run_dump(config))
    except IsgConfigError as err:
        print(f"Error: {err}", file=sys.stderr)
        return 2

    text = json.dumps(result, indent=2, ensure_ascii=False, default=str)
    if args.output:
        args.output.write_text(text + "\n", encoding="utf-8")
        print(f"Saved {len(result)} states to {args.output}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
