"""
Raidar status packet decoder

Turns the text blob a ReadyNAS returns on UDP port 22081 into a StatusReport.
The wire format is loosely structured and differs between firmware releases,
so every component line is matched on its own and a line that does not match
only degrades that component to Status.UNKNOWN.

Packet layout after the 28 byte header (tab separated):

    mac \t name \t ip \t properties \t version \t boot flag

where properties is a newline separated list of ``<type>!!<index>!!<data>``.
"""

import re
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .models import Status, StatusReport, Temperature, Fan, Ups, Volume, Disk

HEADER_BYTE_COUNT = 28
MIN_FIELD_COUNT = 5

UNKNOWN_MODEL = "Unknown model"
UNKNOWN_FIRMWARE = "Unknown firmware"
UNKNOWN_VERSION = "Unknown version"
DEFAULT_DISK_STATE = "Active"

_PROPERTY_RE = re.compile(r"^([a-z]+)!!([0-9]+)!!(.*)$")
_MODEL_RE = re.compile(r"mode=[a-z]+::descr=([^:]+)")
_FIRMWARE_NAME_RE = re.compile(r"^([a-zA-Z]+)")
_FIRMWARE_VERSION_RE = re.compile(r"version=([^,\s]+)")
_DEVICE_TIME_RE = re.compile(r"time=([0-9]+)")

# Decimal values always use '.', float() is locale independent
_DECIMAL = r"[0-9]+(?:\.[0-9]+)?"

_TEMPERATURE_RE = re.compile(
    r"^status=([a-z_]+)::descr=(" + _DECIMAL + r")C/(" + _DECIMAL + r")F"
    r"::expected=([0-9]+)-([0-9]+)C/([0-9]+)-([0-9]+)F"
)
_FAN_RE = re.compile(r"^status=([a-z_]+)::descr=([0-9]+)RPM\s*(.*)$")
_UPS_RE = re.compile(r"^status=([a-z_]+)::descr=(.*)$")
_UPS_DESCR_RE = re.compile(r"^(.*?)[;,]?\s*Battery\s+charge:\s*([0-9]+)%,?\s*(.*)$")
_VOLUME_RE = re.compile(
    r"^status=([a-z_]+)::descr=([^:]*):\s*([^,]*),\s*([^;]*);"
    r"\s*([0-9]+)[^0-9]+([0-9]+)[^0-9]+([0-9]+)"
)
_DISK_RE = re.compile(
    r"^status=([a-z_]+)::descr=([^:]+):\s*([^,\[]+)"
    r"(?:,\s*([0-9]+)C/([0-9]+)F)?(.*)$"
)
_DISK_STATE_BRACKET_RE = re.compile(r"\[([^\]]*)\]")


class StatusDecodeError(ValueError):
    """Raised when a status packet does not have the expected top level fields"""


# ================== COMPONENT PARSERS ==================
# Each parser is pure: (data, index) -> (entity, matched). It never raises,
# an unmatched line yields the entity defaults with Status.UNKNOWN.

def parse_temperature(data: str, index: int = 0) -> Tuple[Temperature, bool]:
    match = _TEMPERATURE_RE.match(data)
    if not match:
        return Temperature(index=index), False

    return Temperature(
        index=index,
        status=Status.from_wire(match.group(1)),
        temp_celsius=float(match.group(2)),
        temp_fahrenheit=float(match.group(3)),
        min_expected_celsius=int(match.group(4)),
        max_expected_celsius=int(match.group(5)),
        min_expected_fahrenheit=int(match.group(6)),
        max_expected_fahrenheit=int(match.group(7)),
    ), True


def parse_fan(data: str, index: int = 0) -> Tuple[Fan, bool]:
    match = _FAN_RE.match(data)
    if not match:
        return Fan(index=index), False

    return Fan(
        index=index,
        status=Status.from_wire(match.group(1)),
        fan_speed=match.group(2),
        fan_type=match.group(3).strip(),
    ), True


def parse_ups(data: str, index: int = 0) -> Tuple[Ups, bool]:
    """Parse a UPS line; details are only read when a UPS is attached"""
    match = _UPS_RE.match(data)
    if not match:
        return Ups(), False

    ups = Ups(status=Status.from_wire(match.group(1)))
    if ups.status == Status.NOT_PRESENT:
        return ups, True

    descr = match.group(2).strip()
    descr_match = _UPS_DESCR_RE.match(descr)
    if descr_match:
        ups.description = descr_match.group(1).strip()
        ups.charge = descr_match.group(2)
        ups.time_left = descr_match.group(3).strip()
    else:
        ups.description = descr
    return ups, True


def parse_volume(data: str, index: int = 0) -> Tuple[Volume, bool]:
    match = _VOLUME_RE.match(data)
    if not match:
        return Volume(index=index), False

    # group 6 is the used percentage, recomputed from used/total on demand
    return Volume(
        index=index,
        status=Status.from_wire(match.group(1)),
        name=match.group(2).strip(),
        raid_level=match.group(3).strip(),
        raid_status=match.group(4).strip(),
        gb_used=int(match.group(5)),
        gb_total=int(match.group(7)),
    ), True


def parse_disk(data: str, index: int = 0) -> Tuple[Disk, bool]:
    match = _DISK_RE.match(data)
    if not match:
        return Disk(index=index), False

    return Disk(
        index=index,
        status=Status.from_wire(match.group(1)),
        channel=match.group(2).strip(),
        model=match.group(3).strip(),
        temp_celsius=int(match.group(4)) if match.group(4) else 0,
        temp_fahrenheit=int(match.group(5)) if match.group(5) else 0,
        state=_disk_state(match.group(6)),
    ), True


def _disk_state(trailer: str) -> str:
    """State text after the model or temperature, e.g. '[Spare]' or ';31 ATA Errors'"""
    bracket = _DISK_STATE_BRACKET_RE.search(trailer)
    state = bracket.group(1) if bracket else trailer
    return state.strip(" ;,") or DEFAULT_DISK_STATE


def parse_model(data: str, index: int = 0) -> Tuple[str, bool]:
    match = _MODEL_RE.search(data)
    if not match:
        return UNKNOWN_MODEL, False
    return match.group(1).strip(), True


# Property type token -> (parser, StatusReport attribute). List attributes are
# appended to, anything else is assigned. Unlisted tokens are ignored.
PROPERTY_PARSERS: Dict[str, Tuple[Callable[[str, int], Tuple[Any, bool]], str]] = {
    "temp": (parse_temperature, "temperatures"),
    "fan": (parse_fan, "fans"),
    "ups": (parse_ups, "ups"),
    "volume": (parse_volume, "volumes"),
    "disk": (parse_disk, "disks"),
    "model": (parse_model, "model"),
}


# ================== PACKET DECODER ==================

def decode(raw: Union[bytes, str], header_size: int = HEADER_BYTE_COUNT) -> StatusReport:
    """
    Decode a raw status packet into a new StatusReport.

    Raises StatusDecodeError when fewer than five tab separated fields remain
    after the header. Malformed component lines never raise.
    """
    text = raw.decode("ascii", errors="replace") if isinstance(raw, bytes) else raw
    fields = text[header_size:].split("\t")
    if len(fields) < MIN_FIELD_COUNT:
        raise StatusDecodeError(
            f"Invalid status packet: expected at least {MIN_FIELD_COUNT} fields, got {len(fields)}"
        )

    report = StatusReport(mac=fields[0], name=fields[1], ip=fields[2])

    for line in fields[3].split("\n"):
        _apply_property(report, line.rstrip("\r"))

    version_raw = fields[4].rstrip("\r\n")
    report.version_raw = version_raw
    report.software_name = _first_group(_FIRMWARE_NAME_RE, version_raw) or UNKNOWN_FIRMWARE
    report.software_version = _first_group(_FIRMWARE_VERSION_RE, version_raw) or UNKNOWN_VERSION
    device_time = _first_group(_DEVICE_TIME_RE, version_raw)
    report.device_time = int(device_time) if device_time else None

    if len(fields) > MIN_FIELD_COUNT:
        report.boot_flag = fields[5].rstrip("\r\n")

    return report


def _apply_property(report: StatusReport, line: str) -> None:
    match = _PROPERTY_RE.match(line)
    if not match:
        return

    entry = PROPERTY_PARSERS.get(match.group(1))
    if entry is None:
        return

    parser, attribute = entry
    value, _ = parser(match.group(3), int(match.group(2)))
    current = getattr(report, attribute)
    if isinstance(current, list):
        current.append(value)
    else:
        setattr(report, attribute, value)


def _first_group(pattern: "re.Pattern[str]", text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(1) if match else None
