"""
NAS status API routes
"""

from fastapi import APIRouter, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from typing import List, Optional
import logging

from ..status.catalog import get_status_text, get_criticality
from ..status.models import EntityKind, Status, StatusReport

logger = logging.getLogger(__name__)

# Response models
class DevicesResponse(BaseModel):
    state: str
    active_device: Optional[str]
    devices: List[str]

class ComponentSummary(BaseModel):
    kind: str
    index: Optional[int]
    status: str
    text: str
    criticality: str

class StatusSummaryResponse(BaseModel):
    name: str
    ip: str
    model: str
    firmware: str
    state: str
    components: List[ComponentSummary]

def _component(kind: EntityKind, index: Optional[int], status: Status) -> ComponentSummary:
    return ComponentSummary(
        kind=kind.value,
        index=index,
        status=status.value,
        text=get_status_text(status, kind),
        criticality=get_criticality(status).value
    )

def summarize_report(report: StatusReport) -> List[ComponentSummary]:
    """Catalog text and criticality for every component of a report"""
    components = []
    for temp in report.temperatures:
        components.append(_component(EntityKind.TEMPERATURE, temp.index, temp.status))
    for fan in report.fans:
        components.append(_component(EntityKind.FAN, fan.index, fan.status))
    if report.ups is not None:
        components.append(_component(EntityKind.UPS, None, report.ups.status))
    for volume in report.volumes:
        components.append(_component(EntityKind.VOLUME, volume.index, volume.status))
    for disk in report.disks:
        components.append(_component(EntityKind.DISK, disk.index, disk.status))
    return components

def create_status_routes(monitor):
    """Create NAS device and status routes"""
    router = APIRouter(prefix="/api", tags=["status"])

    @router.get("/devices", response_model=DevicesResponse)
    async def get_devices():
        """Discovered devices and the connection state"""
        return DevicesResponse(
            state=monitor.client.state.value,
            active_device=monitor.client.active_device,
            devices=monitor.client.devices
        )

    @router.get("/status")
    async def get_status():
        """Latest decoded status report"""
        report = monitor.latest_report
        if report is None:
            raise HTTPException(status_code=404, detail="No status report received yet")

        data = jsonable_encoder(report)
        data['volumes'] = [
            dict(volume_data, percent_used=round(volume.percent_used, 1))
            for volume_data, volume in zip(data['volumes'], report.volumes)
        ]
        return data

    @router.get("/status/summary", response_model=StatusSummaryResponse)
    async def get_status_summary():
        """Display text and criticality for each component of the latest report"""
        report = monitor.latest_report
        if report is None:
            raise HTTPException(status_code=404, detail="No status report received yet")

        return StatusSummaryResponse(
            name=report.name,
            ip=report.ip,
            model=report.model,
            firmware=f"{report.software_name} v{report.software_version}",
            state=monitor.client.state.value,
            components=summarize_report(report)
        )

    return router
