from fastapi import APIRouter, Depends, HTTPException, Query, Request
from typing import Optional

from ..core.config import settings
from ..scanner.entry import Entry
from ..scanner.network_scanner import NetworkScanner, InsufficientPrivilegeError
from ..scanner.transport import TransportError
from ..vendors.oui_lookup import VendorTable
from .schemas import (
    DeviceResponse,
    DeviceListResponse,
    OrganizationResponse,
    VendorStats,
)
from .websocket import scanner_callback

router = APIRouter()


def get_vendor_table(request: Request) -> VendorTable:
    """Vendor table loaded at startup."""
    vendors = getattr(request.app.state, "vendors", None)
    if vendors is None:
        raise HTTPException(status_code=503, detail="Vendor table not loaded")
    return vendors


def get_scanner() -> NetworkScanner:
    """Create a scanner from the settings."""
    scanner = NetworkScanner(
        timeout=settings.SCAN_TIMEOUT,
        interface=settings.SCAN_INTERFACE,
        write_timeout=settings.ARP_WRITE_TIMEOUT,
        send_interval=settings.ARP_SEND_INTERVAL,
    )
    scanner.register_callback(scanner_callback)
    return scanner


def _device_response(entry: Entry, vendors: VendorTable) -> DeviceResponse:
    org = vendors.get(entry.mac) if entry.mac else None
    return DeviceResponse(
        ip_address=entry.key or None,
        mac_address=entry.mac,
        hw_type=entry.hw_type,
        flags=entry.flags,
        mask=entry.mask,
        interface=entry.interface_name,
        vendor=OrganizationResponse(name=org.name, address=org.address) if org else None,
    )


@router.get("/devices", response_model=DeviceListResponse)
async def get_devices(
    scan: bool = Query(True),
    interface: Optional[str] = Query(None),
    scanner: NetworkScanner = Depends(get_scanner),
    vendors: VendorTable = Depends(get_vendor_table),
):
    """Get devices from the ARP cache, merged with an active scan."""
    active = scan and settings.SCAN_ENABLED
    if interface:
        scanner.interface = interface

    try:
        entries = await scanner.perform_scan(active=active, cache_path=settings.ARP_CACHE_PATH)
    except InsufficientPrivilegeError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except TransportError as e:
        raise HTTPException(status_code=502, detail=f"Scan failed: {e}")

    if interface:
        entries = [e for e in entries if e.device is None or e.device.name == interface]

    return DeviceListResponse(
        devices=[_device_response(e, vendors) for e in entries],
        total=len(entries),
        scanned=active,
    )


@router.get("/vendors", response_model=VendorStats)
async def get_vendor_stats(vendors: VendorTable = Depends(get_vendor_table)):
    """Get the number of loaded vendor assignments."""
    return VendorStats(entries=len(vendors))


@router.get("/vendors/{mac_address}", response_model=OrganizationResponse)
async def get_vendor(mac_address: str, vendors: VendorTable = Depends(get_vendor_table)):
    """Look up the organization behind a MAC address."""
    org = vendors.get(mac_address)
    if org is None:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return OrganizationResponse(name=org.name, address=org.address)
