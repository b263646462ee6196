import ipaddress

import pytest
from fastapi.testclient import TestClient

from vlookup.api.routes import get_scanner
from vlookup.main import app
from vlookup.scanner.entry import Entry
from vlookup.scanner.interfaces import NetworkInterface
from vlookup.scanner.network_scanner import InsufficientPrivilegeError
from vlookup.scanner.transport import TransportError
from vlookup.vendors.oui_lookup import VendorTable

from conftest import SAMPLE_CSV

ETH0 = NetworkInterface(name="eth0", flags=1)
WLAN0 = NetworkInterface(name="wlan0", flags=1)


class StubScanner:
    def __init__(self, entries=(), error=None):
        self.entries = list(entries)
        self.error = error
        self.interface = None
        self.calls = []

    async def perform_scan(self, active=True, cache_path=None):
        self.calls.append(active)
        if self.error:
            raise self.error
        return self.entries


@pytest.fixture
def scanner():
    return StubScanner([
        Entry(address=ipaddress.IPv4Address("192.168.1.1"), hw_type=1, flags=2,
              mac="aa:bb:cc:00:00:01", mask="*", device=ETH0),
        Entry(address=ipaddress.IPv4Address("10.0.0.1"), mac="00:11:22:33:44:55", device=WLAN0),
    ])


@pytest.fixture
def client(scanner):
    # no lifespan, the vendor table is set up directly
    app.state.vendors = VendorTable.from_sources(SAMPLE_CSV)
    app.dependency_overrides[get_scanner] = lambda: scanner
    yield TestClient(app)
    app.dependency_overrides.clear()
    del app.state.vendors


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["vendor_entries"] == 3


def test_get_devices(client, scanner):
    response = client.get("/api/devices")
    assert response.status_code == 200

    data = response.json()
    assert data["total"] == 2
    assert data["scanned"] is True
    first, second = data["devices"]
    assert first["ip_address"] == "192.168.1.1"
    assert first["interface"] == "eth0"
    assert first["vendor"] == {"name": "Example Corp", "address": "1 Example Street Springfield US 12345"}
    assert second["vendor"] is None
    assert scanner.calls == [True]


def test_get_devices_passive_only(client, scanner):
    response = client.get("/api/devices", params={"scan": "false"})
    assert response.json()["scanned"] is False
    assert scanner.calls == [False]


def test_get_devices_interface_filter(client, scanner):
    response = client.get("/api/devices", params={"interface": "wlan0"})
    assert [d["ip_address"] for d in response.json()["devices"]] == ["10.0.0.1"]
    assert scanner.interface == "wlan0"


@pytest.mark.parametrize("error, status", [
    (InsufficientPrivilegeError("user has insufficient permissions"), 403),
    (TransportError("read failed"), 502),
])
def test_get_devices_scan_errors(client, scanner, error, status):
    scanner.error = error
    response = client.get("/api/devices")
    assert response.status_code == status


def test_get_vendor(client):
    response = client.get("/api/vendors/AA:BB:CC:DD:EE:FF")
    assert response.status_code == 200
    assert response.json()["name"] == "Example Medium"


def test_get_vendor_not_found(client):
    response = client.get("/api/vendors/00:00:00:00:00:00")
    assert response.status_code == 404


def test_vendor_stats(client):
    assert client.get("/api/vendors").json() == {"entries": 3}


def test_vendor_table_not_loaded():
    response = TestClient(app).get("/api/vendors")
    assert response.status_code == 503
