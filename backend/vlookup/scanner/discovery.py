"""
Active ARP discovery on a single interface.

A request is broadcast for every host address of the interface's subnets
while replies are read concurrently from the same transport.
"""

import asyncio
import enum
import ipaddress
import logging
import time
from typing import Callable, Optional

from .entry import Entry
from .interfaces import NetworkInterface
from .targets import targets_for
from .transport import ARPTransport, OPERATION_REPLY, ScapyTransport, TransportError

logger = logging.getLogger(__name__)

TransportFactory = Callable[[NetworkInterface], ARPTransport]
SendErrorHandler = Callable[[ipaddress.IPv4Address, Exception], None]


class DiscoveryState(enum.Enum):
    CREATED = "created"
    SCANNING = "scanning"
    CLOSED = "closed"


class ARPDiscovery:
    """
    Locates devices in the subnets of one interface using ARP.

    Discovered devices are put on a result queue as soon as their reply
    arrives. A discovery runs once: created, scanning, then closed.
    """

    def __init__(
        self,
        interface: NetworkInterface,
        transport: ARPTransport,
        *,
        write_timeout: float = 2.0,
        send_interval: float = 0.01,
    ):
        self.interface = interface
        self.transport = transport
        self.write_timeout = write_timeout
        self.send_interval = send_interval
        self.targets = targets_for(interface.addresses)
        self.my_addresses = set(interface.ipv4_addresses)
        self.state = DiscoveryState.CREATED

    @classmethod
    def open(
        cls,
        interface: NetworkInterface,
        transport_factory: TransportFactory = ScapyTransport,
        **kwargs,
    ) -> "ARPDiscovery":
        """Open a transport bound to the interface and create the discovery."""
        return cls(interface, transport_factory(interface), **kwargs)

    async def __aenter__(self) -> "ARPDiscovery":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release the transport."""
        if self.state is DiscoveryState.CLOSED:
            return
        self.state = DiscoveryState.CLOSED
        self.transport.close()

    async def find(
        self,
        results: asyncio.Queue,
        on_send_error: Optional[SendErrorHandler] = None,
    ) -> None:
        """
        Scan the interface and put discovered entries on results.

        Blocks until the task is cancelled or reading from the transport
        fails, in which case the TransportError is raised. Failed requests
        are passed to on_send_error and do not stop the scan.
        """
        if self.state is not DiscoveryState.CREATED:
            raise RuntimeError(f"discovery on {self.interface.name} can't be restarted")
        self.state = DiscoveryState.SCANNING

        sender = asyncio.create_task(self._send_requests(on_send_error))
        try:
            await self._receive_replies(results)
        finally:
            sender.cancel()
            await asyncio.wait([sender])

    async def _send_requests(self, on_send_error: Optional[SendErrorHandler]) -> None:
        for target in self.targets:
            try:
                self.transport.set_write_deadline(time.monotonic() + self.write_timeout)
                await self.transport.request(target)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"ARP request to {target} on {self.interface.name} failed: {e}")
                if on_send_error is not None:
                    on_send_error(target, e)
            await asyncio.sleep(self.send_interval)

        logger.debug(f"Sent {len(self.targets)} ARP requests on {self.interface.name}")

    async def _receive_replies(self, results: asyncio.Queue) -> None:
        while True:
            try:
                reply, _frame = await self.transport.read()
            except TransportError:
                raise
            except OSError as e:
                raise TransportError(f"read failed on {self.interface.name}: {e}") from e

            if reply.operation != OPERATION_REPLY:
                logger.warning(f"Ignoring ARP packet with invalid operation {reply.operation} on {self.interface.name}")
                continue

            if reply.sender_ip in self.my_addresses:
                logger.debug(f"Ignoring own reply from {reply.sender_ip}")
                continue

            await results.put(Entry(
                address=reply.sender_ip,
                hw_type=reply.hardware_type & 0xFF,
                flags=reply.protocol_type & 0xFF,
                mac=reply.sender_mac.lower(),
                device=self.interface,
            ))
