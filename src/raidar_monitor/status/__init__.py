"""
Status module for decoding Raidar status packets
"""

from .models import (
    Status, Criticality, EntityKind, Temperature, Fan, Ups, Volume, Disk, StatusReport
)
from .decoder import decode, StatusDecodeError, PROPERTY_PARSERS
from .catalog import get_status_text, get_criticality, get_description

__all__ = [
    'Status', 'Criticality', 'EntityKind', 'Temperature', 'Fan', 'Ups', 'Volume', 'Disk',
    'StatusReport', 'decode', 'StatusDecodeError', 'PROPERTY_PARSERS',
    'get_status_text', 'get_criticality', 'get_description'
]
