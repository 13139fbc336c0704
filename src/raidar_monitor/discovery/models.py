"""
Discovery data structures and models
"""

from enum import Enum
from typing import List, Optional
from dataclasses import dataclass

from ..status.models import StatusReport


class ConnectionState(Enum):
    """Connection state of the Raidar client"""
    UNINITIALIZED = "uninitialized"
    DISCOVERING = "discovering"
    READY = "ready"
    AWAITING_RESPONSE = "awaiting_response"
    CONNECTION_LOST = "connection_lost"
    AWAITING_RECONNECT = "awaiting_reconnect"


class PollOutcome(Enum):
    """Result classification of a single status request"""
    SKIPPED = "skipped"                  # client not ready, nothing sent
    STATUS_RECEIVED = "status_received"
    IGNORED = "ignored"                  # reply too short or undecodable
    CONNECTION_LOST = "connection_lost"
    TRANSIENT_ERROR = "transient_error"
    CLOSED = "closed"


@dataclass
class DeviceDiscovered:
    """A NAS answered the discovery broadcast for the first time"""
    address: str
    payload: str  # empty when the reply was too short to be a status packet
    report: Optional[StatusReport] = None


@dataclass
class StatusReceived:
    """A valid status packet was received from the polled NAS"""
    address: str
    report: StatusReport
    payload: str


@dataclass
class ConnectionLost:
    """The polled NAS stopped answering"""
    address: str
    reason: str


@dataclass
class DiscoveryResult:
    """Results from a discovery broadcast"""
    devices: List[str]
    duration_seconds: float
    replies_received: int
    new_devices: int
