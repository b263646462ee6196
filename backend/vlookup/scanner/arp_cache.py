"""
Parser for the kernel ARP cache (/proc/net/arp).

The table looks like this:

    IP address       HW type     Flags       HW address            Mask     Device
    192.168.1.1      0x1         0x2         aa:bb:cc:dd:ee:ff     *        eth0

The cache is an opportunistic source: every field is parsed on its own and
a field that fails to parse is left empty without dropping the row.
"""

import ipaddress
import logging
import re
from typing import Callable, IO, Optional, Union

from .entry import Entry
from .interfaces import NetworkInterface, interface_by_name

logger = logging.getLogger(__name__)

ARP_CACHE_PATH = "/proc/net/arp"

COLUMN_IP_ADDRESS = 0
COLUMN_HW_TYPE = 1
COLUMN_FLAGS = 2
COLUMN_HW_ADDRESS = 3
COLUMN_MASK = 4
COLUMN_DEVICE = 5
COLUMN_COUNT = 6

_MAC_SEPARATED = re.compile(r"^[0-9a-fA-F]{2}([:-])(?:[0-9a-fA-F]{2}\1){4}[0-9a-fA-F]{2}$")
_MAC_DOTTED = re.compile(r"^[0-9a-fA-F]{4}\.[0-9a-fA-F]{4}\.[0-9a-fA-F]{4}$")

CacheSource = Union[bytes, str, IO[bytes], IO[str], None]
InterfaceResolver = Callable[[str], Optional[NetworkInterface]]


def parse_mac(value: str) -> Optional[str]:
    """
    Parse a 48-bit hardware address.

    Accepts "aa:bb:cc:dd:ee:ff", "aa-bb-cc-dd-ee-ff" and "aabb.ccdd.eeff",
    returns the lowercase colon separated form or None.
    """
    if _MAC_SEPARATED.match(value):
        digits = value.replace(":", "").replace("-", "")
    elif _MAC_DOTTED.match(value):
        digits = value.replace(".", "")
    else:
        return None
    digits = digits.lower()
    return ":".join(digits[i:i + 2] for i in range(0, 12, 2))


def _parse_byte(value: str) -> int:
    """Parse a hex encoded byte like "0x2", 0 if unparsable."""
    try:
        return int(value, 16) & 0xFF
    except ValueError:
        return 0


def _parse_address(value: str) -> Optional[ipaddress.IPv4Address]:
    try:
        return ipaddress.IPv4Address(value)
    except ValueError:
        return None


def _read_text(source: CacheSource) -> str:
    if source is None:
        return ""
    if hasattr(source, "read"):
        source = source.read()
    if isinstance(source, bytes):
        return source.decode("utf-8", errors="replace")
    return source


def parse_entries(
    source: CacheSource,
    resolve_interface: InterfaceResolver = interface_by_name,
) -> list[Entry]:
    """
    Parse an ARP cache table into entries.

    The first line is a header and always skipped. Rows with fewer than six
    columns are dropped. An empty input, or one without rows, yields an empty list.

    Args:
        source: Table content as bytes, text or a readable file object. None is
            treated like an empty table.
        resolve_interface: Maps a device name to a local interface.

    Returns:
        Parsed entries in table order
    """
    lines = _read_text(source).splitlines()
    entries: list[Entry] = []

    for line in lines[1:]:
        fields = line.split()
        if len(fields) < COLUMN_COUNT:
            continue

        entries.append(Entry(
            address=_parse_address(fields[COLUMN_IP_ADDRESS]),
            hw_type=_parse_byte(fields[COLUMN_HW_TYPE]),
            flags=_parse_byte(fields[COLUMN_FLAGS]),
            mac=parse_mac(fields[COLUMN_HW_ADDRESS]),
            mask=fields[COLUMN_MASK],
            device=resolve_interface(fields[COLUMN_DEVICE]),
        ))

    return entries


def read_cache(path: str = ARP_CACHE_PATH) -> Optional[bytes]:
    """Read the ARP cache table, None if it is not available."""
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        logger.debug(f"ARP cache not readable at {path}: {e}")
        return None
