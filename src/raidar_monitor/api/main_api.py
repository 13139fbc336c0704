"""
Main FastAPI application setup
Read-only local HTTP API exposing the monitored ReadyNAS status
"""

from fastapi import FastAPI
import logging

from .status_routes import create_status_routes
from .system_routes import create_system_routes

logger = logging.getLogger(__name__)


class RaidarAPI:
    """Local HTTP API for NAS discovery state and status reports"""

    def __init__(self, monitor, lifespan=None):
        self.monitor = monitor
        self.app = FastAPI(
            title="Raidar NAS Monitor",
            description="Local API for ReadyNAS discovery state and health reports",
            version="1.0.0",
            lifespan=lifespan
        )
        self._setup_routes()

    def _setup_routes(self):
        """Setup FastAPI routes using modular approach"""
        self.app.include_router(create_status_routes(self.monitor))
        self.app.include_router(create_system_routes(self.monitor))
