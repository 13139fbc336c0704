"""
System health and monitoring API routes
"""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Dict, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

# Response models
class HealthResponse(BaseModel):
    status: str
    state: str
    active_device: Optional[str]
    device_count: int
    last_poll_at: Optional[datetime]
    last_report_at: Optional[datetime]
    connection_lost_at: Optional[datetime]
    connection_lost_reason: Optional[str]
    stats: Dict[str, int]
    timestamp: datetime

def _health_status(health: Dict) -> str:
    if health['state'] in ('connection_lost', 'awaiting_reconnect'):
        return "degraded"
    if health['device_count'] == 0:
        return "searching"
    return "healthy"

def create_system_routes(monitor):
    """Create system monitoring routes"""
    router = APIRouter(prefix="/api/system", tags=["system"])

    @router.get("/health", response_model=HealthResponse)
    async def system_health():
        """System health check"""
        try:
            health = monitor.get_health()
            return HealthResponse(
                status=_health_status(health),
                timestamp=datetime.now(timezone.utc),
                **health
            )
        except Exception as e:
            logger.error(f"Error getting system health: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    return router
