"""
ARP transport used by the active discovery.

ARPTransport is the contract the discovery depends on: send a request, read
the next ARP packet, set a write deadline and close. ScapyTransport implements
it on top of a scapy layer 2 socket bound to one interface.
"""

import asyncio
import ipaddress
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from scapy.all import ARP, Ether, conf
from scapy.data import ETH_P_ARP
from scapy.error import Scapy_Exception

from .interfaces import NetworkInterface

OPERATION_REQUEST = 1
OPERATION_REPLY = 2

BROADCAST_MAC = "ff:ff:ff:ff:ff:ff"


class TransportError(OSError):
    """Raised when the ARP transport can't be opened or read."""


@dataclass(frozen=True)
class ARPReply:
    """An ARP packet as read from the transport."""
    operation: int
    sender_ip: ipaddress.IPv4Address
    sender_mac: str
    target_ip: ipaddress.IPv4Address
    target_mac: str
    hardware_type: int = 1
    protocol_type: int = 0x0800


class ARPTransport(ABC):
    """
    Link layer send/receive primitive for ARP.

    A request and a read may run concurrently on the same transport, two
    concurrent requests may not.
    """

    @abstractmethod
    async def request(self, target: ipaddress.IPv4Address) -> None:
        """Broadcast an ARP request for target."""

    @abstractmethod
    async def read(self) -> tuple[ARPReply, bytes]:
        """Wait for the next ARP packet, return it with its raw frame."""

    @abstractmethod
    def set_write_deadline(self, deadline: float) -> None:
        """Set the time.monotonic() deadline for subsequent requests."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying socket."""


class ScapyTransport(ARPTransport):
    """ARP transport backed by a raw scapy L2 socket (needs CAP_NET_RAW)."""

    def __init__(self, interface: NetworkInterface):
        if not interface.mac:
            raise TransportError(f"interface {interface.name} has no hardware address")
        self.interface = interface
        self._deadline: Optional[float] = None
        self._closed = False
        conf.verb = 0  # Disable scapy verbose output
        try:
            self._socket = conf.L2socket(iface=interface.name, type=ETH_P_ARP)
        except (OSError, Scapy_Exception) as e:
            raise TransportError(f"unable to open ARP socket on {interface.name}: {e}") from e

    def set_write_deadline(self, deadline: float) -> None:
        self._deadline = deadline

    def _source_address(self, target: ipaddress.IPv4Address) -> str:
        own = [ipaddress.ip_interface(cidr) for cidr in self.interface.addresses]
        own = [iface for iface in own if iface.version == 4]
        for iface in own:
            if target in iface.network:
                return str(iface.ip)
        return str(own[0].ip) if own else "0.0.0.0"

    def _build_request(self, target: ipaddress.IPv4Address):
        return Ether(dst=BROADCAST_MAC, src=self.interface.mac) / ARP(
            op=OPERATION_REQUEST,
            hwsrc=self.interface.mac,
            psrc=self._source_address(target),
            pdst=str(target),
        )

    async def request(self, target: ipaddress.IPv4Address) -> None:
        if self._closed:
            raise TransportError("transport is closed")
        timeout = None
        if self._deadline is not None:
            timeout = self._deadline - time.monotonic()
            if timeout <= 0:
                raise TimeoutError(f"write deadline exceeded before request to {target}")
        packet = self._build_request(target)
        loop = asyncio.get_running_loop()
        await asyncio.wait_for(
            loop.run_in_executor(None, self._socket.send, packet),
            timeout=timeout,
        )

    async def _wait_readable(self) -> None:
        """Wait on the event loop until the socket has a frame."""
        loop = asyncio.get_running_loop()
        ready = loop.create_future()
        fd = self._socket.fileno()

        def on_readable():
            if not ready.done():
                ready.set_result(None)

        loop.add_reader(fd, on_readable)
        try:
            await ready
        finally:
            loop.remove_reader(fd)

    async def read(self) -> tuple[ARPReply, bytes]:
        while True:
            if self._closed:
                raise TransportError("transport is closed")
            try:
                await self._wait_readable()
                packet = self._socket.recv()
            except (OSError, ValueError, Scapy_Exception) as e:
                raise TransportError(f"read failed on {self.interface.name}: {e}") from e
            if packet is None or ARP not in packet:
                continue
            arp = packet[ARP]
            try:
                reply = ARPReply(
                    operation=int(arp.op),
                    sender_ip=ipaddress.IPv4Address(arp.psrc),
                    sender_mac=str(arp.hwsrc).lower(),
                    target_ip=ipaddress.IPv4Address(arp.pdst),
                    target_mac=str(arp.hwdst).lower(),
                    hardware_type=int(arp.hwtype),
                    protocol_type=int(arp.ptype),
                )
            except ValueError:
                # not an IPv4 over Ethernet packet
                continue
            return reply, bytes(packet)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._socket.close()
