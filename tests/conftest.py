"""
Shared fixtures for the Raidar monitor tests
"""

import socket

import pytest

from raidar_monitor.discovery.network_discovery import RaidarClient

NAS_ADDRESS = "192.168.1.5"
LOCAL_ADDRESS = "192.168.1.2"
HEADER = b"\x00" * 28

SAMPLE_BODY = (
    "00:0d:a2:01:09:bd\tNASgul\t192.168.1.5\t"
    "model!!0!!mode=pro::descr=ReadyNAS NV::arch=nsp\n"
    "fan!!0!!status=ok::descr=2352RPM\n"
    "temp!!0!!status=ok::descr=34.0C/93.2F::expected=20-40C/68-104F\n"
    "ups!!1!!status=not_present::descr=\n"
    "volume!!1!!status=ok::descr= C: RAID Level X, ; 140 GB (15%)  921 GB\n"
    "disk!!1!!status=ok::descr=Channel 1: ST3320620AS 298 GB\n"
    "disk!!2!!status=ok::descr= 2: SAMSUNG HD103SJ 931 GB, 38C/100F;31 ATA Errors\n"
    "\tRAIDiator!!version=4.1.8,time=1314924646\n"
    "\t66\n"
)


def make_packet(body: str = SAMPLE_BODY) -> bytes:
    """Status packet as sent on the wire: 28 byte header followed by the body"""
    return HEADER + body.encode("ascii")


class FakeSocket:
    """
    Stand-in for the client's UDP socket.

    replies are returned by recvfrom in order; an exception instance in the
    list is raised instead. responses maps a destination address to a reply
    queued whenever a datagram is sent there. An empty queue times out.
    """

    def __init__(self, replies=None, responses=None):
        self.replies = list(replies or [])
        self.responses = dict(responses or {})
        self.sent = []
        self.timeouts = []
        self.closed = False
        self.shut_down = False

    def sendto(self, data, address):
        self.sent.append((data, address))
        reply = self.responses.get(address[0])
        if reply is not None:
            self.replies.append(reply)

    def settimeout(self, timeout):
        self.timeouts.append(timeout)

    def recvfrom(self, bufsize):
        if self.replies:
            item = self.replies.pop(0)
            if isinstance(item, BaseException):
                raise item
            return item
        raise socket.timeout("timed out")

    def shutdown(self, how):
        self.shut_down = True

    def close(self):
        self.closed = True


@pytest.fixture
def client_config():
    return {
        "local_address": LOCAL_ADDRESS,
        "discovery_window_seconds": 0.2,
        "response_timeout_seconds": 0.1,
    }


@pytest.fixture
def fake_socket():
    return FakeSocket()


@pytest.fixture
def client(client_config, fake_socket):
    client = RaidarClient(client_config, sock=fake_socket)
    yield client
    client.close()


@pytest.fixture
def events(client):
    """Events delivered to a listener registered on the client"""
    received = []
    client.add_listener(received.append)
    return received
