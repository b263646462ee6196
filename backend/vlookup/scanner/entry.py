from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Optional

from .interfaces import NetworkInterface


@dataclass
class Entry:
    """A device observed in the ARP cache or by an active scan.

    Any field may be left at its zero value when it could not be parsed,
    the entry itself is still kept.
    """
    address: Optional[IPv4Address] = None
    hw_type: int = 0
    flags: int = 0
    mac: Optional[str] = None  # lowercase, colon separated
    mask: str = ""
    device: Optional[NetworkInterface] = None

    @property
    def key(self) -> str:
        """Deduplication key, the string form of the address."""
        return str(self.address) if self.address is not None else ""

    @property
    def interface_name(self) -> Optional[str]:
        return self.device.name if self.device is not None else None
