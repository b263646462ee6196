"""
Local network interface enumeration.

Addresses come from netifaces, the up, loopback and point-to-point state
from psutil since netifaces does not expose interface flags.
"""

import ipaddress
import logging
from dataclasses import dataclass
from typing import Optional

import netifaces
import psutil

logger = logging.getLogger(__name__)

IFF_UP = 0x1
IFF_LOOPBACK = 0x8
IFF_POINTOPOINT = 0x10


@dataclass(frozen=True)
class NetworkInterface:
    """Represents a local network interface."""
    name: str
    flags: int = 0
    mac: Optional[str] = None
    addresses: tuple[str, ...] = ()  # CIDR form, e.g. "192.168.1.17/24"

    @property
    def is_up(self) -> bool:
        return bool(self.flags & IFF_UP)

    @property
    def is_loopback(self) -> bool:
        return bool(self.flags & IFF_LOOPBACK)

    @property
    def is_point_to_point(self) -> bool:
        return bool(self.flags & IFF_POINTOPOINT)

    @property
    def ipv4_addresses(self) -> list[ipaddress.IPv4Address]:
        """Own non-loopback IPv4 addresses of the interface."""
        result = []
        for cidr in self.addresses:
            try:
                iface = ipaddress.ip_interface(cidr)
            except ValueError:
                continue
            if iface.version == 4 and not iface.ip.is_loopback:
                result.append(iface.ip)
        return result


def is_eligible(interface: NetworkInterface) -> bool:
    """Whether an active ARP scan makes sense on this interface."""
    if interface.is_loopback or interface.is_point_to_point:
        return False
    return interface.is_up


_FLAG_NAMES = {
    "loopback": IFF_LOOPBACK,
    "pointopoint": IFF_POINTOPOINT,
}


def _interface_stats() -> dict:
    try:
        return psutil.net_if_stats()
    except OSError as e:
        logger.debug(f"Unable to read interface stats: {e}")
        return {}


def _read_flags(name: str, stats: dict) -> int:
    """Interface flags from psutil stats, 0 for an unknown interface."""
    stat = stats.get(name)
    if stat is None:
        return 0
    flags = IFF_UP if stat.isup else 0
    # psutil >= 5.9.3, e.g. "up,broadcast,running,multicast"
    for flag in getattr(stat, "flags", "").split(","):
        flags |= _FLAG_NAMES.get(flag.strip(), 0)
    return flags


def _collect_addresses(addrs: dict) -> tuple[str, ...]:
    cidrs = []
    for info in addrs.get(netifaces.AF_INET, []):
        addr, netmask = info.get("addr"), info.get("netmask")
        if not addr or not netmask:
            continue
        try:
            cidrs.append(str(ipaddress.IPv4Interface(f"{addr}/{netmask}")))
        except ValueError:
            logger.debug(f"Ignoring malformed IPv4 assignment {addr}/{netmask}")
    for info in addrs.get(netifaces.AF_INET6, []):
        addr, netmask = info.get("addr"), info.get("netmask", "")
        if not addr:
            continue
        # netifaces reports e.g. "fe80::1%eth0" and "ffff:ffff:ffff:ffff::/64"
        prefix = netmask.split("/")[-1] if "/" in netmask else "128"
        cidrs.append(f"{addr.split('%')[0]}/{prefix}")
    return tuple(cidrs)


def _load_interface(name: str, stats: dict) -> NetworkInterface:
    addrs = netifaces.ifaddresses(name)
    links = addrs.get(netifaces.AF_LINK, [])
    mac = links[0].get("addr", "").lower() if links else ""
    return NetworkInterface(
        name=name,
        flags=_read_flags(name, stats),
        mac=mac or None,
        addresses=_collect_addresses(addrs),
    )


def list_interfaces() -> list[NetworkInterface]:
    """Return all local network interfaces."""
    stats = _interface_stats()
    return [_load_interface(name, stats) for name in netifaces.interfaces()]


def interface_by_name(name: str) -> Optional[NetworkInterface]:
    """Look up a local interface by name, None if there is no such interface."""
    if name not in netifaces.interfaces():
        return None
    try:
        return _load_interface(name, _interface_stats())
    except ValueError:
        # the interface disappeared in between
        return None
