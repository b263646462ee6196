# Vendor lookup module
from .oui_lookup import (
    Organization,
    VendorTable,
    VendorTableError,
    VendorSourceError,
    build_vendor_table,
)
from .cache import VendorCache
from .remote import SOURCE_URLS, load_vendor_table

__all__ = [
    "Organization",
    "VendorTable",
    "VendorTableError",
    "VendorSourceError",
    "build_vendor_table",
    "VendorCache",
    "SOURCE_URLS",
    "load_vendor_table",
]
