from typing import Iterable, Optional

from .scanner.entry import Entry
from .vendors.oui_lookup import VendorTable

ROW_FORMAT = "{:<5} {:<10} {:<20} {:<20} {:<20} {:<15}"
NOT_FOUND = "not found"


def render_table(
    entries: Iterable[Entry],
    vendors: VendorTable,
    interface: Optional[str] = None,
    trim_address: int = 40,
) -> str:
    """
    Render entries with their vendor as a text table.

    Entries seen on another interface than the given one are skipped, entries
    without a known interface are always shown.
    """
    lines = [
        ROW_FORMAT.format("idx", "interface", "IP", "MAC", "Name", "Address"),
        ROW_FORMAT.format("---", "---------", "--", "---", "----", "-------"),
    ]
    idx = 0
    for entry in entries:
        if interface and entry.device is not None and entry.device.name != interface:
            continue
        name, address = NOT_FOUND, ""
        org = vendors.get(entry.mac) if entry.mac else None
        if org is not None:
            name, address = org.name, org.address[:trim_address]
        lines.append(ROW_FORMAT.format(
            idx,
            entry.interface_name or "unknown",
            entry.key,
            entry.mac or "",
            name,
            address,
        ))
        idx += 1
    return "\n".join(lines) + "\n"
