import asyncio
import ipaddress
import logging
import os
from typing import Callable, Iterable, Optional

from .arp_cache import ARP_CACHE_PATH, parse_entries, read_cache
from .discovery import ARPDiscovery, TransportFactory
from .entry import Entry
from .interfaces import NetworkInterface, is_eligible, list_interfaces
from .transport import ScapyTransport

logger = logging.getLogger(__name__)


class InsufficientPrivilegeError(PermissionError):
    """Raised when the process may not open raw sockets."""


def has_scan_privilege() -> bool:
    """Raw ARP sockets need root (or CAP_NET_RAW)."""
    geteuid = getattr(os, "geteuid", None)
    return geteuid is not None and geteuid() == 0


class NetworkScanner:
    """
    Runs an ARP discovery on every eligible interface in parallel.

    All discoveries share one deadline. When it elapses the entries found so
    far are returned; the first discovery error aborts the whole scan.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        interface: Optional[str] = None,
        *,
        interface_provider: Callable[[], list[NetworkInterface]] = list_interfaces,
        transport_factory: TransportFactory = ScapyTransport,
        privilege_check: Callable[[], bool] = has_scan_privilege,
        write_timeout: float = 2.0,
        send_interval: float = 0.01,
    ):
        self.timeout = timeout
        self.interface = interface
        self.interface_provider = interface_provider
        self.transport_factory = transport_factory
        self.privilege_check = privilege_check
        self.write_timeout = write_timeout
        self.send_interval = send_interval
        self.send_failures = 0
        self._callbacks = []

    def register_callback(self, callback):
        """Register a callback for scan updates."""
        self._callbacks.append(callback)

    def unregister_callback(self, callback):
        """Unregister a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    async def _notify_callbacks(self, event_type: str, data: dict):
        """Notify all registered callbacks."""
        for callback in self._callbacks:
            try:
                await callback(event_type, data)
            except Exception as e:
                logger.error(f"Callback error: {e}")

    def _eligible_interfaces(self) -> list[NetworkInterface]:
        interfaces = []
        for iface in self.interface_provider():
            if self.interface and iface.name != self.interface:
                continue
            if not is_eligible(iface):
                logger.info(f"Skip interface: {iface.name}")
                continue
            interfaces.append(iface)
        return interfaces

    def _record_send_failure(self, target: ipaddress.IPv4Address, error: Exception) -> None:
        self.send_failures += 1

    async def _run_discovery(
        self,
        interface: NetworkInterface,
        results: asyncio.Queue,
        errors: asyncio.Queue,
    ) -> None:
        logger.info(f"Start scan on interface {interface.name}")
        try:
            discovery = ARPDiscovery.open(
                interface,
                self.transport_factory,
                write_timeout=self.write_timeout,
                send_interval=self.send_interval,
            )
        except Exception as e:
            await errors.put(e)
            return

        async with discovery:
            try:
                await discovery.find(results, self._record_send_failure)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                await errors.put(e)

    async def scan(self) -> list[Entry]:
        """
        Perform the ARP scan.

        Returns:
            Entries discovered before the deadline, in arrival order

        Raises:
            InsufficientPrivilegeError: before any interface is touched
            TransportError: the first error any discovery reported
        """
        if not self.privilege_check():
            raise InsufficientPrivilegeError("user has insufficient permissions for an ARP scan")

        interfaces = self._eligible_interfaces()
        self.send_failures = 0
        await self._notify_callbacks("scan_started", {
            "interfaces": [iface.name for iface in interfaces],
            "timeout": self.timeout,
        })
        if not interfaces:
            logger.warning("No eligible interface to scan")
            await self._notify_callbacks("scan_completed", {"devices_found": 0, "send_failures": 0})
            return []

        results: asyncio.Queue = asyncio.Queue()
        errors: asyncio.Queue = asyncio.Queue()
        tasks = [
            asyncio.create_task(self._run_discovery(iface, results, errors), name=f"arp-{iface.name}")
            for iface in interfaces
        ]

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout
        entries: list[Entry] = []
        next_result = asyncio.create_task(results.get())
        next_error = asyncio.create_task(errors.get())

        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                done, _ = await asyncio.wait(
                    {next_result, next_error},
                    timeout=remaining,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if next_error in done:
                    raise next_error.result()
                if next_result in done:
                    entry = next_result.result()
                    entries.append(entry)
                    await self._notify_callbacks("device_discovered", {
                        "ip_address": entry.key,
                        "mac_address": entry.mac,
                        "interface": entry.interface_name,
                    })
                    next_result = asyncio.create_task(results.get())
        except Exception as e:
            await self._notify_callbacks("scan_failed", {"error": str(e)})
            raise
        finally:
            next_result.cancel()
            next_error.cancel()
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        if next_result.done() and not next_result.cancelled():
            entries.append(next_result.result())
        while not results.empty():
            entries.append(results.get_nowait())

        logger.info(f"Finished scan: {len(entries)} replies, {self.send_failures} failed requests")
        await self._notify_callbacks("scan_completed", {
            "devices_found": len(entries),
            "send_failures": self.send_failures,
        })
        return entries

    async def perform_scan(self, active: bool = True, cache_path: str = ARP_CACHE_PATH) -> list[Entry]:
        """Merge the ARP cache with an active scan, ordered by IP address."""
        scanned = await self.scan() if active else []
        cached = parse_entries(read_cache(cache_path))
        return sort_entries(merge_entries(cached, scanned))


def merge_entries(cached: Iterable[Entry], scanned: Iterable[Entry]) -> list[Entry]:
    """
    Merge ARP cache entries with scan results, deduplicated by IP address.

    Scan results win over cache entries with the same address. Entries
    without an address share the empty key. The order is not defined.
    """
    merged: dict[str, Entry] = {}
    for entry in cached:
        merged[entry.key] = entry
    for entry in scanned:
        merged[entry.key] = entry
    return list(merged.values())


def sort_entries(entries: Iterable[Entry]) -> list[Entry]:
    """Order entries by numeric IP address, entries without address first."""
    return sorted(entries, key=lambda e: -1 if e.address is None else int(e.address))
