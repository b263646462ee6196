# Scanner module
from .entry import Entry
from .arp_cache import parse_entries, read_cache
from .discovery import ARPDiscovery
from .network_scanner import NetworkScanner, InsufficientPrivilegeError, merge_entries, sort_entries
from .transport import ARPTransport, ARPReply, ScapyTransport, TransportError

__all__ = [
    "Entry",
    "parse_entries",
    "read_cache",
    "ARPDiscovery",
    "NetworkScanner",
    "InsufficientPrivilegeError",
    "merge_entries",
    "sort_entries",
    "ARPTransport",
    "ARPReply",
    "ScapyTransport",
    "TransportError",
]
