import asyncio
import ipaddress

import pytest

from vlookup.scanner.interfaces import IFF_LOOPBACK, IFF_POINTOPOINT, IFF_UP, NetworkInterface
from vlookup.scanner.transport import ARPReply, ARPTransport, OPERATION_REPLY


SAMPLE_CSV = (
    "Registry,Assignment,Organization Name,Organization Address\n"
    "MA-L,AABBCC,Example Corp,1 Example Street Springfield US 12345\n"
    "MA-M,AABBCCD,Example Medium,2 Medium Road Berlin DE 10115\n"
    "MA-S,70B3D5F2F,TELEPLATFORMS,\"Polbina st., 3/1 Moscow  RU 109388\"\n"
)


class FakeTransport(ARPTransport):
    """In-memory ARP transport.

    Replies (or exceptions) passed in are returned by read() in order, after
    that read() blocks until more are pushed.
    """

    def __init__(self, interface, replies=(), fail_requests=()):
        self.interface = interface
        self.requests = []
        self.deadlines = []
        self.close_calls = 0
        self.fail_requests = {ipaddress.IPv4Address(ip) for ip in fail_requests}
        self._replies = asyncio.Queue()
        for reply in replies:
            self.push(reply)

    def push(self, reply):
        self._replies.put_nowait(reply)

    async def request(self, target):
        self.requests.append(target)
        if target in self.fail_requests:
            raise OSError(f"unable to send to {target}")

    async def read(self):
        item = await self._replies.get()
        if isinstance(item, BaseException):
            raise item
        return item, b"\x00" * 42

    def set_write_deadline(self, deadline):
        self.deadlines.append(deadline)

    def close(self):
        self.close_calls += 1


def make_reply(sender_ip, sender_mac, operation=OPERATION_REPLY, target_ip="192.168.1.10"):
    return ARPReply(
        operation=operation,
        sender_ip=ipaddress.IPv4Address(sender_ip),
        sender_mac=sender_mac,
        target_ip=ipaddress.IPv4Address(target_ip),
        target_mac="02:00:00:00:00:01",
    )


async def wait_until(predicate, timeout=2.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.005)
    await asyncio.wait_for(poll(), timeout)


@pytest.fixture
def eth0():
    return NetworkInterface(
        name="eth0",
        flags=IFF_UP,
        mac="02:00:00:00:00:01",
        addresses=("192.168.1.10/29", "fe80::1/64"),
    )


@pytest.fixture
def wlan0():
    return NetworkInterface(
        name="wlan0",
        flags=IFF_UP,
        mac="02:00:00:00:00:02",
        addresses=("10.0.0.2/30",),
    )


@pytest.fixture
def loopback():
    return NetworkInterface(name="lo", flags=IFF_UP | IFF_LOOPBACK, addresses=("127.0.0.1/8",))


@pytest.fixture
def tunnel():
    return NetworkInterface(name="tun0", flags=IFF_UP | IFF_POINTOPOINT, addresses=("10.8.0.2/24",))


@pytest.fixture
def down():
    return NetworkInterface(name="eth1", flags=0, mac="02:00:00:00:00:03", addresses=("172.16.0.1/24",))
