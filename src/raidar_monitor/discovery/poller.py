"""
Status poller: unicast status requests against the first discovered NAS
"""

import logging
import socket
import time
from typing import Optional

from ..status.decoder import decode, StatusDecodeError
from .models import ConnectionState, PollOutcome, StatusReceived, ConnectionLost
from .network_discovery import RaidarClient, ClientClosedError

logger = logging.getLogger(__name__)


class StatusPoller:
    """
    Drives the connection state machine for status requests.

    READY              -> AWAITING_RESPONSE  -> READY | CONNECTION_LOST (notified)
    CONNECTION_LOST    -> AWAITING_RECONNECT -> READY | CONNECTION_LOST (silent)

    A ConnectionLost event fires once per transition into the lost state,
    never again for further timeouts while the device stays unreachable.
    """

    def __init__(self, client: RaidarClient, response_timeout: Optional[float] = None):
        self.client = client
        self.response_timeout = response_timeout if response_timeout is not None else client.response_timeout

    async def request_status(self) -> PollOutcome:
        """Send one status request and wait for the reply or the timeout"""
        waiting_state = self.client.begin_request()
        if waiting_state is None:
            return PollOutcome.SKIPPED

        target = self.client.active_device

        async with self.client.receive_lock:
            try:
                self.client.send_request(target)
                data = await self._receive_from(target)
            except socket.timeout:
                return await self._handle_timeout(target, waiting_state)
            except ClientClosedError:
                logger.info("Status request stopped: client closed")
                return PollOutcome.CLOSED
            except OSError as e:
                logger.error(f"Status request to {target} failed: {e}")
                self.client.set_state(ConnectionState.READY)
                return PollOutcome.TRANSIENT_ERROR

        return await self._handle_reply(target, data)

    async def _receive_from(self, target: str) -> bytes:
        """Receive until the target answers; replies from other hosts are dropped"""
        deadline = time.monotonic() + self.response_timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise socket.timeout("timed out")
            data, addr = await self.client.receive(remaining)
            if addr[0] == target:
                return data
            logger.debug(f"Ignoring reply from {addr[0]} while waiting for {target}")

    async def _handle_timeout(self, target: str, waiting_state: ConnectionState) -> PollOutcome:
        self.client.set_state(ConnectionState.CONNECTION_LOST)
        if waiting_state == ConnectionState.AWAITING_RECONNECT:
            logger.debug(f"NAS {target} still unreachable")
            return PollOutcome.CONNECTION_LOST

        logger.warning(f"Connection with NAS {target} lost: no reply within {self.response_timeout}s")
        await self.client.notify(ConnectionLost(address=target, reason="timed out"))
        return PollOutcome.CONNECTION_LOST

    async def _handle_reply(self, target: str, data: bytes) -> PollOutcome:
        text = data.decode('ascii', errors='replace')

        if len(text) <= self.client.min_status_length:
            logger.debug(f"Ignoring short reply ({len(text)} bytes) from {target}")
            self.client.set_state(ConnectionState.READY)
            return PollOutcome.IGNORED

        try:
            report = decode(text, self.client.header_size)
        except StatusDecodeError as e:
            logger.warning(f"Status reply from {target} could not be decoded: {e}")
            self.client.set_state(ConnectionState.READY)
            return PollOutcome.IGNORED

        previous = self.client.set_state(ConnectionState.READY)
        if previous == ConnectionState.AWAITING_RECONNECT:
            logger.info(f"Connection with NAS {target} restored")
        await self.client.notify(StatusReceived(address=target, report=report, payload=text))
        return PollOutcome.STATUS_RECEIVED
