import pytest

from vlookup import cli
from vlookup.core.config import settings
from vlookup.scanner.network_scanner import InsufficientPrivilegeError

from conftest import SAMPLE_CSV


@pytest.fixture
def arp_cache(tmp_path, monkeypatch):
    path = tmp_path / "arp"
    path.write_text(
        "IP address  HW type  Flags  HW address  Mask  Device\n"
        "192.168.1.1  0x1  0x2  aa:bb:cc:00:00:01  *  no-such-interface\n"
    )
    monkeypatch.setattr(settings, "ARP_CACHE_PATH", str(path))
    return path


@pytest.fixture
def vendor_file(tmp_path):
    path = tmp_path / "oui.csv"
    path.write_text(SAMPLE_CSV)
    return path


def test_parser_defaults():
    args = cli.build_parser().parse_args(["lookup"])
    assert args.scan is True
    assert args.src == "ieee-l"
    assert args.timeout == settings.SCAN_TIMEOUT
    assert args.func is cli.cmd_lookup


def test_lookup_from_cache_only(arp_cache, vendor_file, tmp_path, capsys):
    output = tmp_path / "report.txt"

    code = cli.main([
        "lookup", "--no-scan", "--no-cache",
        "--local-file", str(vendor_file),
        "-o", str(output),
    ])

    assert code == 0
    out = capsys.readouterr().out
    assert "192.168.1.1" in out
    assert "Example Corp" in out
    assert output.read_text() == out


def test_lookup_reports_vendor_errors(arp_cache, tmp_path):
    broken = tmp_path / "broken.csv"
    broken.write_text("Registry,Assignment,Organization Name,Organization Address\nMA-L,AABBCC\n")

    code = cli.main(["lookup", "--no-scan", "--no-cache", "--local-file", str(broken)])
    assert code == 1


def test_lookup_without_privilege(arp_cache, vendor_file, monkeypatch):
    async def denied(self, active=True, cache_path=None):
        raise InsufficientPrivilegeError("user has insufficient permissions")

    monkeypatch.setattr(cli.NetworkScanner, "perform_scan", denied)
    code = cli.main(["lookup", "--no-cache", "--local-file", str(vendor_file)])
    assert code == 1


def test_crawl_without_source_prints_help(capsys):
    assert cli.main(["crawl"]) == 0
    assert "--large" in capsys.readouterr().out


def test_lookup_output_not_writable(arp_cache, vendor_file, tmp_path):
    code = cli.main([
        "lookup", "--no-scan", "--no-cache",
        "--local-file", str(vendor_file),
        "-o", str(tmp_path),
    ])
    assert code == 1


def test_lookup_vendor_cache_not_usable(arp_cache, vendor_file, tmp_path, monkeypatch):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")
    monkeypatch.setattr(settings, "VENDOR_CACHE_ENABLED", True)
    monkeypatch.setattr(settings, "VENDOR_CACHE_DIR", str(blocker / "cache"))

    code = cli.main(["lookup", "--no-scan", "--local-file", str(vendor_file)])
    assert code == 1
