import io
import ipaddress

from vlookup.scanner.arp_cache import parse_entries, parse_mac, read_cache
from vlookup.scanner.entry import Entry
from vlookup.scanner.interfaces import NetworkInterface

HEADER = "IP address       HW type     Flags       HW address            Mask     Device\n"


def no_interface(name):
    return None


def test_parse_entries():
    table = HEADER + (
        "192.168.1.1      0x1         0x2         aa:bb:cc:dd:ee:ff     *        unknown\n"
        "192.168.1.2      0x1         0x2         ff:ee:dd:cc:bb:aa     *        unknown\n"
    )
    entries = parse_entries(table.encode(), resolve_interface=no_interface)

    assert entries == [
        Entry(address=ipaddress.IPv4Address("192.168.1.1"), hw_type=1, flags=2,
              mac="aa:bb:cc:dd:ee:ff", mask="*"),
        Entry(address=ipaddress.IPv4Address("192.168.1.2"), hw_type=1, flags=2,
              mac="ff:ee:dd:cc:bb:aa", mask="*"),
    ]
    assert all(e.device is None for e in entries)


def test_parse_entries_header_only():
    assert parse_entries(HEADER.encode(), resolve_interface=no_interface) == []


def test_parse_entries_empty_stream():
    assert parse_entries(b"", resolve_interface=no_interface) == []
    assert parse_entries(None, resolve_interface=no_interface) == []


def test_invalid_fields_keep_the_row():
    table = HEADER + (
        "xxxxxxxxxxx      0x1         0x2         aa:bb:cc:dd:ee:ff     *        unknown\n"
        "192.168.1.2      zz          0x2         xxxxxxxxxxxxxxxxx     *        unknown\n"
    )
    first, second = parse_entries(table, resolve_interface=no_interface)

    assert first.address is None
    assert first.key == ""
    assert first.mac == "aa:bb:cc:dd:ee:ff"
    assert first.mask == "*"

    assert second.address == ipaddress.IPv4Address("192.168.1.2")
    assert second.mac is None
    assert second.hw_type == 0
    assert second.flags == 2


def test_short_rows_are_dropped():
    table = HEADER + (
        "192.168.1.1      0x1         0x2         aa:bb:cc:dd:ee:ff     *\n"
        "\n"
        "192.168.1.3      0x1         0x2         aa:bb:cc:dd:ee:01     *        eth0\n"
    )
    entries = parse_entries(table, resolve_interface=no_interface)
    assert [e.key for e in entries] == ["192.168.1.3"]


def test_header_is_skipped_unconditionally():
    table = "192.168.1.1  0x1  0x2  aa:bb:cc:dd:ee:ff  *  eth0\n"
    assert parse_entries(table, resolve_interface=no_interface) == []


def test_device_is_resolved_by_name():
    eth0 = NetworkInterface(name="eth0", flags=1)
    table = HEADER + "192.168.1.1  0x1  0x2  aa:bb:cc:dd:ee:ff  *  eth0\n"

    entries = parse_entries(table, resolve_interface=lambda name: eth0 if name == "eth0" else None)

    assert entries[0].device is eth0
    assert entries[0].interface_name == "eth0"


def test_parse_entries_from_file_object():
    table = HEADER + "10.0.0.1  0x1  0x0  00:00:00:00:00:00  *  eth0\n"
    entries = parse_entries(io.BytesIO(table.encode()), resolve_interface=no_interface)
    assert len(entries) == 1
    assert entries[0].flags == 0
    assert entries[0].mac == "00:00:00:00:00:00"


def test_parse_mac_formats():
    assert parse_mac("AA:BB:CC:DD:EE:FF") == "aa:bb:cc:dd:ee:ff"
    assert parse_mac("aa-bb-cc-dd-ee-ff") == "aa:bb:cc:dd:ee:ff"
    assert parse_mac("aabb.ccdd.eeff") == "aa:bb:cc:dd:ee:ff"
    assert parse_mac("aa:bb-cc:dd:ee:ff") is None
    assert parse_mac("aa:bb:cc:dd:ee") is None
    assert parse_mac("(incomplete)") is None


def test_read_cache(tmp_path):
    path = tmp_path / "arp"
    path.write_text(HEADER)
    assert read_cache(str(path)) == HEADER.encode()


def test_read_cache_missing_file(tmp_path):
    assert read_cache(str(tmp_path / "missing")) is None
