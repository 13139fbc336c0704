"""
Status report data structures decoded from Raidar status packets
"""

from enum import Enum
from typing import List, Optional
from dataclasses import dataclass, field


class Status(Enum):
    """Status of a single NAS component as reported on the wire"""
    OK = "ok"
    NOT_OK = "not_ok"
    UNKNOWN = "unknown"
    RESYNC = "resync"
    WARN = "warn"
    LIFE_SUPPORT = "life_support"
    AWAITING_RECOVERY = "awaiting_recovery"
    SPARE_INACTIVE = "spare_inactive"
    NOT_PRESENT = "not_present"
    FAIL = "fail"
    DEAD = "dead"
    CONNECTION_LOST = "connection_lost"

    @classmethod
    def from_wire(cls, value: str) -> "Status":
        """Map a wire status token to a Status, unknown tokens become UNKNOWN"""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class Criticality(Enum):
    """Severity tier of a component status"""
    TEMPORARY = "temporary"
    VULNERABLE = "vulnerable"
    CRITICAL = "critical"
    FATAL = "fatal"
    NONE = "none"


class EntityKind(Enum):
    """Kind of component a status belongs to"""
    TEMPERATURE = "temperature"
    FAN = "fan"
    UPS = "ups"
    VOLUME = "volume"
    DISK = "disk"
    DEVICE = "device"


@dataclass
class Temperature:
    """Enclosure temperature sensor"""
    index: int = 0
    status: Status = Status.UNKNOWN
    temp_celsius: float = 0.0
    temp_fahrenheit: float = 0.0
    min_expected_celsius: int = 0
    max_expected_celsius: int = 0
    min_expected_fahrenheit: int = 0
    max_expected_fahrenheit: int = 0


@dataclass
class Fan:
    """Enclosure fan"""
    index: int = 0
    status: Status = Status.UNKNOWN
    fan_speed: str = ""
    fan_type: str = ""


@dataclass
class Ups:
    """Attached UPS, status NOT_PRESENT when nothing is connected"""
    status: Status = Status.UNKNOWN
    description: str = ""
    charge: str = ""
    time_left: str = ""


@dataclass
class Volume:
    """RAID volume"""
    index: int = 0
    status: Status = Status.UNKNOWN
    name: str = ""
    raid_level: str = ""
    raid_status: str = ""
    gb_used: int = 0
    gb_total: int = 0

    @property
    def percent_used(self) -> float:
        if self.gb_total <= 0:
            return 0.0
        return (self.gb_used / self.gb_total) * 100.0


@dataclass
class Disk:
    """Physical disk in a drive bay"""
    index: int = 0
    status: Status = Status.UNKNOWN
    channel: str = ""
    model: str = ""
    temp_celsius: int = 0
    temp_fahrenheit: int = 0
    state: str = ""


@dataclass
class StatusReport:
    """Fully decoded status packet of one NAS"""
    mac: str
    name: str
    ip: str
    model: str = "Unknown model"
    software_name: str = "Unknown firmware"
    software_version: str = "Unknown version"
    version_raw: str = ""
    device_time: Optional[int] = None
    boot_flag: str = ""
    temperatures: List[Temperature] = field(default_factory=list)
    fans: List[Fan] = field(default_factory=list)
    ups: Optional[Ups] = None
    volumes: List[Volume] = field(default_factory=list)
    disks: List[Disk] = field(default_factory=list)
