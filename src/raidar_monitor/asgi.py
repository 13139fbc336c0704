"""
ASGI entry point for uvicorn
Exposes the FastAPI app with the monitor's background services bound to its lifespan:

    uvicorn raidar_monitor.asgi:app
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager

from .api.main_api import RaidarAPI
from .services.monitor_server import MonitorServer

logger = logging.getLogger(__name__)

monitor = MonitorServer(config_path=os.environ.get('CONFIG_FILE', 'config/config.yaml'))

@asynccontextmanager
async def lifespan(app):
    """Run discovery and polling while the app is served"""
    logger.info("Starting up application...")
    task = asyncio.create_task(monitor.start(serve_api=False))
    yield
    logger.info("Shutting down application...")
    await monitor.stop()
    await asyncio.gather(task, return_exceptions=True)

app = RaidarAPI(monitor, lifespan=lifespan).app

logger.info("ASGI app ready for uvicorn")
