import ipaddress
from typing import Iterable


def hosts(cidr: str) -> list[ipaddress.IPv4Address]:
    """
    Return the usable host addresses of an IPv4 assignment.

    The network and broadcast addresses are excluded. Host bits may be set,
    e.g. "192.168.1.17/24" enumerates 192.168.1.1 - 192.168.1.254.
    Non-IPv4 or malformed input yields an empty list.
    """
    try:
        network = ipaddress.ip_network(cidr, strict=False)
    except (ValueError, TypeError):
        return []
    if network.version != 4 or network.num_addresses < 3:
        return []
    first = int(network.network_address) + 1
    last = int(network.broadcast_address) - 1
    return [ipaddress.IPv4Address(ip) for ip in range(first, last + 1)]


def targets_for(cidrs: Iterable[str]) -> list[ipaddress.IPv4Address]:
    """Concatenate the host addresses of all given assignments, in order."""
    targets = []
    for cidr in cidrs:
        targets.extend(hosts(cidr))
    return targets
