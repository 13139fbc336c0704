"""
Discovery module for Raidar NAS discovery and status polling
"""

from .models import (
    ConnectionState, PollOutcome, DeviceDiscovered, StatusReceived, ConnectionLost, DiscoveryResult
)
from .network_discovery import RaidarClient, ClientClosedError
from .poller import StatusPoller

__all__ = [
    'ConnectionState', 'PollOutcome', 'DeviceDiscovered', 'StatusReceived', 'ConnectionLost',
    'DiscoveryResult', 'RaidarClient', 'ClientClosedError', 'StatusPoller'
]
