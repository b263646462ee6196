"""
Vendor registry sources.

Registries are fetched from the IEEE over HTTP with aiohttp, read from a local
file, or taken from the on-disk VendorCache.
"""

import asyncio
import hashlib
import logging
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

import aiohttp

from .cache import VendorCache
from .oui_lookup import VendorSourceError, VendorTable

logger = logging.getLogger(__name__)

# https://regauth.standards.ieee.org/standards-ra-web/pub/view.html#registries
IEEE_MA_L = "https://standards-oui.ieee.org/oui/oui.csv"
IEEE_MA_M = "https://standards-oui.ieee.org/oui28/mam.csv"
IEEE_MA_S = "https://standards-oui.ieee.org/oui36/oui36.csv"

SOURCE_URLS = {
    "ieee-l": IEEE_MA_L,
    "ieee-m": IEEE_MA_M,
    "ieee-s": IEEE_MA_S,
}

DEFAULT_TIMEOUT = 30.0


def resolve_source(source: str) -> tuple[str, str]:
    """
    Map a source name or URL to a (cache tag, url) pair.

    Raises:
        VendorSourceError: If source is neither a known name nor an http(s) URL
    """
    if source in SOURCE_URLS:
        return source, SOURCE_URLS[source]
    if source.startswith(("http://", "https://")):
        return "url-" + hashlib.sha256(source.encode()).hexdigest()[:16], source
    raise VendorSourceError(f"unknown vendor source: {source}")


async def fetch_source(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    session: Optional[aiohttp.ClientSession] = None,
) -> bytes:
    """Download a registry CSV."""
    if session is None:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            return await fetch_source(url, timeout, session)

    logger.info(f"Fetching vendor data from {url}")
    try:
        async with session.get(url) as response:
            if response.status != 200:
                raise VendorSourceError(f"fetching {url} failed with HTTP {response.status}")
            return await response.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise VendorSourceError(f"fetching {url} failed: {e}") from e


def read_local_source(path: str) -> bytes:
    """Read a registry CSV from a local file."""
    try:
        return Path(path).expanduser().read_bytes()
    except OSError as e:
        raise VendorSourceError(f"reading {path} failed: {e}") from e


async def load_vendor_table(
    sources: Sequence[str],
    local_file: Optional[str] = None,
    cache: Optional[VendorCache] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> VendorTable:
    """
    Load the vendor table from a local file or from the given sources.

    A local file takes precedence over the sources. Sources found in the cache
    are not downloaded again, downloaded sources are written back to it.
    """
    if local_file:
        return VendorTable.from_sources(read_local_source(local_file))

    if not sources:
        raise VendorSourceError("missing vendor data source")

    resolved = [resolve_source(source) for source in sources]
    payloads: dict[str, bytes] = {}
    missing = []
    for tag, url in resolved:
        cached = cache.get(tag) if cache is not None else None
        if cached is not None:
            logger.debug(f"Using cached vendor data for {tag}")
            payloads[tag] = cached
        else:
            missing.append((tag, url))

    if missing:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            fetched = await asyncio.gather(*(fetch_source(url, timeout, session) for _, url in missing))
        for (tag, _), payload in zip(missing, fetched):
            payloads[tag] = payload

    table = VendorTable.from_sources(*(payloads[tag] for tag, _ in resolved))

    if cache is not None and missing:
        for tag, _ in missing:
            cache.set(tag, payloads[tag])
        cache.flush()

    logger.info(f"Loaded {len(table)} vendor entries")
    return table


async def crawl(
    urls: Sequence[str],
    name: str = "unknown",
    directory: str = ".",
    timeout: float = DEFAULT_TIMEOUT,
) -> list[Path]:
    """Download registries to "<date>_<index>_<name>.csv" files."""
    today = date.today().isoformat()
    written = []
    async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
        for index, url in enumerate(urls):
            logger.info(f"{index}) get: {url}")
            payload = await fetch_source(url, timeout, session)
            target = Path(directory) / f"{today}_{index}_{name}.csv"
            target.write_bytes(payload)
            written.append(target)
    return written
