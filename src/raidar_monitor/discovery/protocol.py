"""
Raidar UDP protocol constants

The request payloads are the exact datagrams the vendor's Raidar tool sends,
one per known tool release. The same payload is used for the discovery
broadcast and for the unicast status request.
"""

from typing import Dict

from ..status.decoder import HEADER_BYTE_COUNT

REMOTE_PORT = 22081
LOCAL_PORT = 0
BROADCAST_ADDRESS = "255.255.255.255"

MIN_STATUS_LENGTH = 100
DISCOVERY_WINDOW_SECONDS = 120.0
RESPONSE_TIMEOUT_SECONDS = 30.0
RECEIVE_BUFFER_SIZE = 4096

PAYLOAD_432 = bytes([
    0x00, 0x00, 0x05, 0xd3,
    0x00, 0x00, 0x00, 0x01,
    0x00, 0x00, 0x00, 0x00,
    0x80, 0xc9, 0x6c, 0x05,
    0xff, 0xff, 0xff, 0xff,
    0x00, 0x00, 0x00, 0x1c,
    0x00, 0x00, 0x00, 0x00,
])

PAYLOAD_433 = bytes([
    0x00, 0x00, 0x05, 0xad,
    0x00, 0x00, 0x00, 0x01,
    0x00, 0x00, 0x00, 0x00,
    0xcb, 0x14, 0x60, 0x55,
    0xff, 0xff, 0xff, 0xff,
    0x00, 0x00, 0x00, 0x1c,
    0x00, 0x00, 0x00, 0x00,
])

PAYLOADS: Dict[str, bytes] = {
    "4.3.2": PAYLOAD_432,
    "4.3.3": PAYLOAD_433,
}

DEFAULT_PROTOCOL_VERSION = "4.3.3"


def get_payload(protocol_version: str = DEFAULT_PROTOCOL_VERSION) -> bytes:
    """Request payload for a Raidar tool release"""
    try:
        return PAYLOADS[protocol_version]
    except KeyError:
        raise ValueError(
            f"Unsupported protocol version: {protocol_version} "
            f"(supported: {', '.join(sorted(PAYLOADS))})"
        ) from None
