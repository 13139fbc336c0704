"""
Monitor Server - Main orchestrator for discovery, polling and the local API
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import uvicorn

from ..api.main_api import RaidarAPI
from ..config_loader import load_config, setup_logging
from ..discovery.models import (
    ConnectionState, PollOutcome, DeviceDiscovered, StatusReceived, ConnectionLost
)
from ..discovery.network_discovery import RaidarClient
from ..discovery.poller import StatusPoller
from ..status.models import StatusReport

logger = logging.getLogger(__name__)

class MonitorServer:
    """Discovers a ReadyNAS, polls it periodically and keeps the latest report"""

    def __init__(self, config_path: str = "config/config.yaml", config: Optional[Dict] = None,
                 client: Optional[RaidarClient] = None):
        if config is None:
            config = load_config(config_path)
            setup_logging(config)
        self.config = config

        self.client = client if client is not None else RaidarClient(self.config['raidar'])
        self.poller = StatusPoller(self.client)
        self.client.add_listener(self._on_client_event)

        self.latest_report: Optional[StatusReport] = None
        self.last_report_at: Optional[datetime] = None
        self.last_poll_at: Optional[datetime] = None
        self.connection_lost_at: Optional[datetime] = None
        self.connection_lost_reason: Optional[str] = None

        self.running = False
        self.tasks: List[asyncio.Task] = []
        self._stopped = asyncio.Event()

        self._stats = {
            'total_polls': 0,
            'reports_received': 0,
            'ignored_replies': 0,
            'connection_losses': 0,
            'transient_errors': 0
        }

    async def start(self, serve_api: bool = True):
        """Run discovery, start the polling service and serve the API until stopped"""
        logger.info("Starting Raidar NAS monitor...")

        try:
            self.running = True
            self.tasks = [
                asyncio.create_task(self._discovery_service()),
                asyncio.create_task(self._polling_service())
            ]
            logger.info(f"Background services started ({len(self.tasks)} tasks)")

            if serve_api and self.config.get('api', {}).get('enabled', True):
                await self._start_api_server()
            else:
                await self._stopped.wait()

        except Exception as e:
            logger.error(f"Monitor startup failed: {e}")
            await self.stop()
            raise

    async def stop(self):
        """Stop all services and close the socket"""
        if not self.running and not self.tasks:
            return
        logger.info("Stopping monitor...")
        self.running = False

        stats = self._stats
        if stats['total_polls'] > 0:
            logger.info(f"Poll stats: {stats['reports_received']} reports in {stats['total_polls']} polls, "
                        f"{stats['connection_losses']} connection losses, "
                        f"{stats['transient_errors']} transient errors")

        # Closing the client ends any pending receive as a clean shutdown
        self.client.close()

        for task in self.tasks:
            task.cancel()
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks = []

        self._stopped.set()
        logger.info("Monitor stopped")

    # ================== EVENTS ==================

    async def _on_client_event(self, event: Any):
        """Keep the latest report and connection info up to date"""
        now = datetime.now(timezone.utc)

        if isinstance(event, DeviceDiscovered):
            if event.report is not None and self.latest_report is None:
                self.latest_report = event.report
                self.last_report_at = now
                logger.info(f"Initial status from discovery: {event.report.name} ({event.address})")

        elif isinstance(event, StatusReceived):
            self.latest_report = event.report
            self.last_report_at = now
            self.connection_lost_at = None
            self.connection_lost_reason = None
            self._stats['reports_received'] += 1
            logger.debug(f"Status received from {event.report.name} ({event.address}): "
                         f"{len(event.report.disks)} disks, {len(event.report.volumes)} volumes")

        elif isinstance(event, ConnectionLost):
            self.connection_lost_at = now
            self.connection_lost_reason = event.reason
            self._stats['connection_losses'] += 1
            logger.warning(f"Connection lost with {event.address}: {event.reason}")

    # ================== DISCOVERY SERVICE ==================

    async def _discovery_service(self):
        """
        Discover devices at start-up. While nothing answered, repeat discovery
        every polling interval; stop once a device is known.
        """
        retry_interval = self.config['polling']['status_interval_seconds']

        while self.running:
            try:
                result = await self.client.discover()
                if result.devices:
                    logger.info(f"Monitoring NAS at {self.client.active_device}"
                                + (f" ({len(result.devices) - 1} other device(s) ignored)"
                                   if len(result.devices) > 1 else ""))
                    return
                if self.client.closed:
                    return

                logger.warning("No ReadyNAS found on the local network - retrying discovery")
                await asyncio.sleep(retry_interval)

            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Discovery service error: {e}")
                await asyncio.sleep(retry_interval)

    # ================== POLLING SERVICE ==================

    async def _polling_service(self):
        """Background service for periodic status polling"""
        poll_interval = self.config['polling']['status_interval_seconds']
        logger.info(f"Status polling service started ({poll_interval}s interval)")

        while self.running:
            cycle_start_time = time.monotonic()

            try:
                outcome = await self.poll_once()
                if outcome == PollOutcome.CLOSED:
                    break

                elapsed_time = time.monotonic() - cycle_start_time
                if elapsed_time > poll_interval:
                    logger.debug(f"Polling cycle took {elapsed_time:.1f}s (>{poll_interval}s configured) - "
                                 f"skipping sleep")
                    continue

                await asyncio.sleep(poll_interval - elapsed_time)

            except asyncio.CancelledError:
                raise
            except Exception as e:
                elapsed_time = time.monotonic() - cycle_start_time
                logger.error(f"Polling service error: {e}")
                # Respect timing to prevent rapid error loops
                await asyncio.sleep(max(0, poll_interval - elapsed_time))

    async def poll_once(self) -> PollOutcome:
        """Issue one status request and account for its outcome"""
        outcome = await self.poller.request_status()
        if outcome == PollOutcome.SKIPPED:
            return outcome

        self.last_poll_at = datetime.now(timezone.utc)
        self._stats['total_polls'] += 1
        if outcome == PollOutcome.IGNORED:
            self._stats['ignored_replies'] += 1
        elif outcome == PollOutcome.TRANSIENT_ERROR:
            self._stats['transient_errors'] += 1
        return outcome

    # ================== STATUS ACCESS ==================

    @property
    def state(self) -> ConnectionState:
        return self.client.state

    def get_health(self) -> Dict[str, Any]:
        """Snapshot of monitor health for the API"""
        return {
            'state': self.client.state.value,
            'active_device': self.client.active_device,
            'device_count': len(self.client.devices),
            'last_poll_at': self.last_poll_at,
            'last_report_at': self.last_report_at,
            'connection_lost_at': self.connection_lost_at,
            'connection_lost_reason': self.connection_lost_reason,
            'stats': dict(self._stats)
        }

    # ================== API SERVER ==================

    async def _start_api_server(self):
        """Start the FastAPI server"""
        api = RaidarAPI(self)
        config = uvicorn.Config(
            api.app,
            host=self.config['api']['host'],
            port=self.config['api']['port'],
            log_level="info",
            access_log=False  # We handle our own logging
        )
        server = uvicorn.Server(config)

        logger.info(f"Starting API server on {self.config['api']['host']}:{self.config['api']['port']}")
        await server.serve()
