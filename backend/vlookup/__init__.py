"""
vlookup

Finds devices on the local network from the ARP cache and an active ARP scan,
and resolves their hardware addresses to the registered vendor.
"""

__version__ = "1.0.0"
