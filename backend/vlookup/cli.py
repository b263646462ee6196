"""
Command line interface.

    vlookup lookup   scan the network and print devices with their vendor
    vlookup crawl    download the IEEE registries
    vlookup serve    run the HTTP API
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .core.config import settings
from .report import render_table
from .scanner.network_scanner import NetworkScanner, InsufficientPrivilegeError
from .scanner.transport import TransportError
from .vendors.cache import VendorCache
from .vendors.oui_lookup import VendorTableError
from .vendors.remote import IEEE_MA_L, IEEE_MA_M, IEEE_MA_S, SOURCE_URLS, crawl, load_vendor_table

logger = logging.getLogger(__name__)


def _sources(src: str) -> list[str]:
    if src == "all":
        return list(SOURCE_URLS)
    return [src]


async def run_lookup(args: argparse.Namespace) -> str:
    scanner = NetworkScanner(
        timeout=args.timeout,
        interface=args.interface,
        write_timeout=settings.ARP_WRITE_TIMEOUT,
        send_interval=settings.ARP_SEND_INTERVAL,
    )
    cache = None
    if settings.VENDOR_CACHE_ENABLED and not args.no_cache:
        cache = VendorCache(settings.VENDOR_CACHE_DIR).load()

    # vendor data is loaded while the scan is waiting for replies
    entries, vendors = await asyncio.gather(
        scanner.perform_scan(active=args.scan, cache_path=settings.ARP_CACHE_PATH),
        load_vendor_table(
            _sources(args.src),
            local_file=args.local_file,
            cache=cache,
            timeout=settings.VENDOR_FETCH_TIMEOUT,
        ),
    )
    logger.info(f"check {len(vendors)} vendor entries")
    return render_table(entries, vendors, interface=args.interface, trim_address=args.trim_address)


def cmd_lookup(args: argparse.Namespace) -> int:
    try:
        table = asyncio.run(run_lookup(args))
    except (InsufficientPrivilegeError, TransportError, VendorTableError, OSError) as e:
        logger.error(str(e))
        return 1
    sys.stdout.write(table)
    if args.output:
        try:
            Path(args.output).write_text(table)
        except OSError as e:
            logger.error(f"unable to write {args.output}: {e}")
            return 1
    return 0


def cmd_crawl(args: argparse.Namespace) -> int:
    urls = []
    if args.large or args.all:
        urls.append(IEEE_MA_L)
    if args.medium or args.all:
        urls.append(IEEE_MA_M)
    if args.small or args.all:
        urls.append(IEEE_MA_S)
    if args.custom:
        urls.append(args.custom)
    if not urls:
        args.parser.print_help()
        return 0
    try:
        written = asyncio.run(crawl(urls, name=args.output or "unknown", timeout=args.timeout))
    except (VendorTableError, OSError) as e:
        logger.error(str(e))
        return 1
    for path in written:
        logger.info(f"stored {path}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("vlookup.main:app", host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vlookup", description="Find devices on the local network and their vendors")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    lookup = subparsers.add_parser("lookup", help="scan the network and look up vendors")
    lookup.add_argument("--src", default="ieee-l", choices=[*SOURCE_URLS, "all"], help="vendor registry to use")
    lookup.add_argument("--local-file", default=settings.VENDOR_LOCAL_FILE, help="use a local registry CSV")
    lookup.add_argument("--no-cache", action="store_true", help="always download the registries")
    lookup.add_argument("--no-scan", dest="scan", action="store_false",
                        help="only read the ARP cache, the active scan requires root privileges")
    lookup.add_argument("--timeout", type=float, default=settings.SCAN_TIMEOUT, help="seconds to wait for responses")
    lookup.add_argument("-i", "--interface", default=settings.SCAN_INTERFACE, help="filter interface")
    lookup.add_argument("-o", "--output", help="also write the table to this file")
    lookup.add_argument("--trim-address", type=int, default=settings.TRIM_ADDRESS,
                        help="limits the length of the address field")
    lookup.set_defaults(func=cmd_lookup)

    fetch = subparsers.add_parser("crawl", help="download IEEE registries")
    fetch.add_argument("--large", action="store_true", help="get MA-L from ieee.org")
    fetch.add_argument("--medium", action="store_true", help="get MA-M from ieee.org")
    fetch.add_argument("--small", action="store_true", help="get MA-S from ieee.org")
    fetch.add_argument("--all", action="store_true", help="get all registries from ieee.org")
    fetch.add_argument("--custom", help="get a registry from a custom URL")
    fetch.add_argument("--timeout", type=float, default=settings.VENDOR_FETCH_TIMEOUT)
    fetch.add_argument("-o", "--output", help="name part of the stored files")
    fetch.set_defaults(func=cmd_crawl, parser=fetch)

    serve = subparsers.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default=settings.HOST)
    serve.add_argument("--port", type=int, default=settings.PORT)
    serve.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose or settings.DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
