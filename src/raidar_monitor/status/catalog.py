"""
Status catalog: display text and criticality for component statuses
"""

from typing import Dict

from .models import Status, Criticality, EntityKind

STATUS_OK_TEXT = "Normal"

_DESCRIPTIONS: Dict[Status, str] = {
    Status.OK: STATUS_OK_TEXT,
    Status.RESYNC: "Awaiting resync",
    Status.WARN: "Warning",
    Status.LIFE_SUPPORT: "Life support mode",
    Status.AWAITING_RECOVERY: "Awaiting recovery",
    Status.SPARE_INACTIVE: "Inactive spare",
    Status.NOT_PRESENT: "Not present",
    Status.FAIL: "Failed",
    Status.DEAD: "Dead",
    Status.CONNECTION_LOST: "Connection lost",
}

_CRITICALITIES: Dict[Status, Criticality] = {
    Status.OK: Criticality.NONE,
    Status.RESYNC: Criticality.TEMPORARY,
    Status.WARN: Criticality.TEMPORARY,
    Status.LIFE_SUPPORT: Criticality.CRITICAL,
    Status.AWAITING_RECOVERY: Criticality.CRITICAL,
    Status.SPARE_INACTIVE: Criticality.NONE,
    Status.NOT_PRESENT: Criticality.NONE,
    Status.FAIL: Criticality.FATAL,
    Status.DEAD: Criticality.FATAL,
    Status.CONNECTION_LOST: Criticality.NONE,
}

_CRITICALITY_SUFFIXES: Dict[Criticality, str] = {
    Criticality.TEMPORARY: " (temporary)",
    Criticality.VULNERABLE: " (vulnerable)",
    Criticality.CRITICAL: " (critical)",
    Criticality.FATAL: " (fatal)",
    Criticality.NONE: "",
}

_NOT_OK_TEXTS: Dict[EntityKind, str] = {
    EntityKind.DISK: "Disk not ok",
    EntityKind.VOLUME: "Volume not ok",
    EntityKind.TEMPERATURE: "Temperature not ok",
    EntityKind.FAN: "Fan not ok",
    EntityKind.UPS: "UPS not ok",
    EntityKind.DEVICE: "Device not ok",
}

_COMPONENT_LABELS: Dict[EntityKind, str] = {
    EntityKind.TEMPERATURE: "Temperature sensor",
    EntityKind.FAN: "Fan",
}


def get_criticality(status: Status) -> Criticality:
    """Severity tier of a status, NONE for statuses without a tier"""
    return _CRITICALITIES.get(status, Criticality.NONE)


def get_description(status: Status) -> str:
    return _DESCRIPTIONS.get(status, "")


def get_status_text(status: Status, kind: EntityKind) -> str:
    """
    Display text for a component status.

    Disks and volumes get the status description with its criticality tier,
    temperature sensors and fans are prefixed with the component name, the
    remaining kinds only distinguish ok from not ok.
    """
    if kind in (EntityKind.DISK, EntityKind.VOLUME):
        description = _DESCRIPTIONS.get(status)
        if description is None:
            return _NOT_OK_TEXTS[kind]
        return description + _CRITICALITY_SUFFIXES[get_criticality(status)]

    text = STATUS_OK_TEXT if status == Status.OK else _NOT_OK_TEXTS[kind]
    label = _COMPONENT_LABELS.get(kind)
    if label:
        return f"{label}\n{text}"
    return text
