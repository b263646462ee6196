"""
OUI (Organizationally Unique Identifier) lookup for MAC address vendor identification.

The table is built from IEEE registry CSV files:

    Registry,Assignment,Organization Name,Organization Address
    MA-S,70B3D5F2F,TELEPLATFORMS,"Polbina st., 3/1 Moscow  RU 109388"

Assignments are 6, 7 or 9 hex digits long (MA-L, MA-M and MA-S blocks), a
lookup returns the organization of the longest assignment matching the address.
"""

import csv
import io
from dataclasses import dataclass
from typing import IO, Optional, Union

COLUMN_REGISTRY = 0
COLUMN_ASSIGNMENT = 1
COLUMN_NAME = 2
COLUMN_ADDRESS = 3
COLUMN_COUNT = 4

VendorSource = Union[bytes, str, IO[bytes], IO[str]]


class VendorTableError(ValueError):
    """Raised when vendor data is malformed."""


class VendorSourceError(VendorTableError):
    """Raised when a vendor source can't be fetched or read."""


@dataclass(frozen=True)
class Organization:
    """Organization behind an assignment block."""
    name: str
    address: str


def _normalize_mac(mac: str) -> str:
    """Remove separators and convert to lowercase."""
    return mac.lower().replace(':', '').replace('-', '').replace('.', '')


def _read_text(source: VendorSource) -> str:
    if hasattr(source, "read"):
        try:
            source = source.read()
        except OSError as e:
            raise VendorSourceError(f"unable to read vendor source: {e}") from e
    if isinstance(source, bytes):
        return source.decode("utf-8", errors="replace")
    return source


def parse_vendor_csv(source: VendorSource, index: int = 0) -> dict[str, Organization]:
    """
    Parse one registry CSV into a mapping of lowercase assignment to organization.

    Args:
        source: CSV content as bytes, text or a readable file object
        index: Position of the source, used in error messages

    Raises:
        VendorTableError: If the header is missing or a row has fewer than 4 columns
    """
    reader = csv.reader(io.StringIO(_read_text(source)))
    entries: dict[str, Organization] = {}

    try:
        if next(reader, None) is None:
            raise VendorTableError(f"source {index}: missing header")

        for row in reader:
            if not row:
                continue
            if len(row) < COLUMN_COUNT:
                raise VendorTableError(
                    f"source {index}, line {reader.line_num}: expected {COLUMN_COUNT} columns, got {len(row)}"
                )
            assignment = row[COLUMN_ASSIGNMENT].strip().lower()
            entries[assignment] = Organization(
                name=row[COLUMN_NAME],
                address=row[COLUMN_ADDRESS],
            )
    except csv.Error as e:
        raise VendorTableError(f"source {index}, line {reader.line_num}: {e}") from e

    return entries


class VendorTable:
    """Maps assignment prefixes to organizations. Read only once built."""

    def __init__(self, entries: Optional[dict[str, Organization]] = None):
        self._entries: dict[str, Organization] = dict(entries or {})

    @classmethod
    def from_sources(cls, *sources: VendorSource) -> "VendorTable":
        """
        Build a table from registry CSV sources.

        Sources are merged in order, a later source overwrites assignments of an
        earlier one. Any malformed source fails the whole build.
        """
        entries: dict[str, Organization] = {}
        for index, source in enumerate(sources):
            entries.update(parse_vendor_csv(source, index))
        return cls(entries)

    def get(self, mac: str) -> Optional[Organization]:
        """
        Look up the organization for a MAC address.

        Args:
            mac: MAC address or prefix in any case, e.g. "AA:BB:CC:DD:EE:FF" or "aabbcc"

        Returns:
            Organization of the longest matching assignment, None if not found
        """
        if not mac:
            return None
        prefix = _normalize_mac(mac)
        while prefix:
            org = self._entries.get(prefix)
            if org is not None:
                return org
            prefix = prefix[:-1]
        return None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, assignment: str) -> bool:
        return assignment.lower() in self._entries


def build_vendor_table(*sources: VendorSource) -> VendorTable:
    """Build a vendor table from one or more registry CSV sources."""
    return VendorTable.from_sources(*sources)
