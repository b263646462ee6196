from pydantic import BaseModel
from typing import Optional


class OrganizationResponse(BaseModel):
    """Vendor organization schema."""
    name: str
    address: str


class DeviceResponse(BaseModel):
    """Discovered device schema."""
    ip_address: Optional[str] = None
    mac_address: Optional[str] = None
    hw_type: int = 0
    flags: int = 0
    mask: str = ""
    interface: Optional[str] = None
    vendor: Optional[OrganizationResponse] = None


class DeviceListResponse(BaseModel):
    """Device list response."""
    devices: list[DeviceResponse]
    total: int
    scanned: bool


class VendorStats(BaseModel):
    """Vendor table statistics."""
    entries: int
