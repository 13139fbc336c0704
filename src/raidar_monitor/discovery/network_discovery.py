"""
Raidar UDP client: socket ownership, connection state and broadcast discovery
"""

import asyncio
import inspect
import logging
import socket
import threading
import time
from typing import Any, Callable, List, Optional, Tuple

from ..status.decoder import decode, StatusDecodeError
from .models import ConnectionState, DeviceDiscovered, DiscoveryResult
from .protocol import (
    REMOTE_PORT, LOCAL_PORT, BROADCAST_ADDRESS, HEADER_BYTE_COUNT, MIN_STATUS_LENGTH,
    DISCOVERY_WINDOW_SECONDS, RESPONSE_TIMEOUT_SECONDS, RECEIVE_BUFFER_SIZE,
    DEFAULT_PROTOCOL_VERSION, get_payload
)

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]


class ClientClosedError(Exception):
    """The client socket was closed while an operation was pending"""


def get_local_ipv4_address() -> Optional[str]:
    """Best effort lookup of the IPv4 address this machine uses on the LAN"""
    try:
        # No packet is sent, connect() only selects the outgoing interface
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as probe:
            probe.connect(("10.255.255.255", 1))
            return probe.getsockname()[0]
    except OSError:
        pass

    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        return None


class RaidarClient:
    """
    Owns the UDP socket, the connection state and the discovered device list.

    All receives go through receive_lock so discovery and status polling can
    never wait on the socket at the same time. State and device list are
    guarded by a thread lock and read as snapshots.
    """

    def __init__(self, config: dict, sock: Optional[socket.socket] = None):
        self.config = config
        self.protocol_version = config.get('protocol_version', DEFAULT_PROTOCOL_VERSION)
        self.payload = get_payload(self.protocol_version)
        self.broadcast_address = config.get('broadcast_address', BROADCAST_ADDRESS)
        self.remote_port = config.get('remote_port', REMOTE_PORT)
        self.local_port = config.get('local_port', LOCAL_PORT)
        self.discovery_window = config.get('discovery_window_seconds', DISCOVERY_WINDOW_SECONDS)
        self.response_timeout = config.get('response_timeout_seconds', RESPONSE_TIMEOUT_SECONDS)
        self.min_status_length = config.get('min_status_length', MIN_STATUS_LENGTH)
        self.buffer_size = config.get('receive_buffer_size', RECEIVE_BUFFER_SIZE)
        self.header_size = config.get('header_size', HEADER_BYTE_COUNT)

        self.local_address = config.get('local_address') or get_local_ipv4_address()

        self._sock = sock if sock is not None else self._create_socket()
        self._closed = False
        self._state = ConnectionState.UNINITIALIZED
        self._state_lock = threading.Lock()
        self._devices: List[str] = []
        self._listeners: List[Listener] = []
        self.receive_lock = asyncio.Lock()

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        sock.bind(('', self.local_port))
        return sock

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()

    # ================== STATE ==================

    @property
    def state(self) -> ConnectionState:
        with self._state_lock:
            return self._state

    @property
    def devices(self) -> List[str]:
        """Snapshot of discovered device addresses in discovery order"""
        with self._state_lock:
            return list(self._devices)

    @property
    def active_device(self) -> Optional[str]:
        """The first discovered device, the only one that is polled"""
        with self._state_lock:
            return self._devices[0] if self._devices else None

    @property
    def closed(self) -> bool:
        return self._closed

    def set_state(self, new_state: ConnectionState) -> ConnectionState:
        """Set the state and return the previous one"""
        with self._state_lock:
            previous = self._state
            self._state = new_state
        if previous != new_state:
            logger.debug(f"Connection state {previous.value} -> {new_state.value}")
        return previous

    def begin_request(self) -> Optional[ConnectionState]:
        """
        Atomically move READY -> AWAITING_RESPONSE or CONNECTION_LOST ->
        AWAITING_RECONNECT. Returns the new state, or None when no request
        may be started (another request pending, or nothing discovered).
        """
        with self._state_lock:
            if not self._devices:
                return None
            if self._state == ConnectionState.READY:
                self._state = ConnectionState.AWAITING_RESPONSE
            elif self._state == ConnectionState.CONNECTION_LOST:
                self._state = ConnectionState.AWAITING_RECONNECT
            else:
                return None
            return self._state

    def _record_device(self, address: str) -> bool:
        """Append address if absent; True when it was new"""
        with self._state_lock:
            if address in self._devices:
                return False
            self._devices.append(address)
            return True

    # ================== NOTIFICATIONS ==================

    def add_listener(self, callback: Listener) -> None:
        """Register a callback for DeviceDiscovered, StatusReceived and ConnectionLost events"""
        self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    async def notify(self, event: Any) -> None:
        for callback in list(self._listeners):
            try:
                result = callback(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Listener failed handling {type(event).__name__}: {e}")

    # ================== SOCKET ==================

    def send_request(self, address: str) -> None:
        if self._closed:
            raise ClientClosedError("Client is closed")
        self._sock.sendto(self.payload, (address, self.remote_port))

    async def receive(self, timeout: float) -> Tuple[bytes, Tuple[str, int]]:
        """
        Wait for one datagram in a worker thread.

        Raises socket.timeout when nothing arrives in time and
        ClientClosedError when the client was closed meanwhile. Callers must
        hold receive_lock.
        """
        if self._closed:
            raise ClientClosedError("Client is closed")
        try:
            data, addr = await asyncio.to_thread(self._receive_blocking, timeout)
        except OSError:
            if self._closed:
                raise ClientClosedError("Client closed while receiving") from None
            raise
        if self._closed:
            raise ClientClosedError("Client closed while receiving")
        return data, addr

    def _receive_blocking(self, timeout: float) -> Tuple[bytes, Tuple[str, int]]:
        self._sock.settimeout(timeout)
        return self._sock.recvfrom(self.buffer_size)

    def close(self) -> None:
        """Close the socket; a pending receive ends as a clean shutdown"""
        if self._closed:
            return
        self._closed = True
        try:
            # Wakes a recvfrom blocked in the worker thread; unconnected UDP
            # sockets raise ENOTCONN here after waking it
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"Socket shutdown: {e}")
        try:
            self._sock.close()
        except OSError as e:
            logger.debug(f"Error closing socket: {e}")
        logger.info("Raidar client closed")

    # ================== DISCOVERY ==================

    async def discover(self) -> DiscoveryResult:
        """
        Broadcast the discovery payload and collect responding devices.

        Listens until the discovery window elapses, or until a receive times
        out once at least one device has answered. The state becomes READY
        when any device is known, otherwise it stays DISCOVERING.
        """
        start_time = time.monotonic()
        replies = 0
        known_before = len(self.devices)

        async with self.receive_lock:
            self.set_state(ConnectionState.DISCOVERING)
            try:
                logger.info(f"Sending Raidar discovery broadcast to {self.broadcast_address}:{self.remote_port}")
                self.send_request(self.broadcast_address)

                while True:
                    remaining = self.discovery_window - (time.monotonic() - start_time)
                    if remaining <= 0:
                        break
                    try:
                        data, addr = await self.receive(min(remaining, self.response_timeout))
                    except socket.timeout:
                        if self.devices:
                            break
                        continue

                    replies += 1
                    await self._handle_discovery_reply(data, addr[0])

            except ClientClosedError:
                logger.info("Discovery stopped: client closed")
            except OSError as e:
                logger.error(f"Discovery failed: {e}")
            finally:
                if self.devices and not self._closed:
                    self.set_state(ConnectionState.READY)

        devices = self.devices
        duration = time.monotonic() - start_time
        logger.info(f"Discovery complete: {len(devices)} device(s) in {duration:.1f}s "
                    f"({replies} replies)")
        return DiscoveryResult(devices, duration, replies, len(devices) - known_before)

    async def _handle_discovery_reply(self, data: bytes, address: str) -> None:
        if address == self.local_address:
            logger.debug(f"Ignoring discovery reply from local address {address}")
            return
        if not self._record_device(address):
            return

        text = data.decode('ascii', errors='replace')
        logger.info(f"Discovered NAS at {address}")

        if len(text) <= self.min_status_length:
            await self.notify(DeviceDiscovered(address=address, payload=""))
            return

        report = None
        try:
            report = decode(text, self.header_size)
        except StatusDecodeError as e:
            logger.warning(f"Discovery reply from {address} could not be decoded: {e}")
        await self.notify(DeviceDiscovered(address=address, payload=text, report=report))
