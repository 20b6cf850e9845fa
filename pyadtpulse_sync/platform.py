"""
ADT Pulse platform.

Wires the portal client, session controller, change detector, reconciler
and scheduler together and handles the startup modes.
"""
import logging
import platform as _platform
import sys
import time
from collections.abc import Callable
from typing import Any

import aiohttp

from .client import ADTPulseClient
from .config import PlatformConfig, load_config
from .controller import SessionController
from .detect import ChangeDetector, DetectionListener
from .exceptions import ADTPulseInvalidStateTransition
from .models import DeviceRecord, PortalClient, PortalResponse
from .reconciler import DeviceReconciler
from .registry import DeviceRegistry
from .scheduler import SyncScheduler
from .state import SyncState

logger = logging.getLogger(__name__)


class ADTPulsePlatform:
    """
    Usage:
        async with aiohttp.ClientSession() as http_session:
            platform = ADTPulsePlatform(raw_config, registry, http_session=http_session)
            for record in cached_records:
                platform.configure_device(record)
            await platform.start()
            ...
            await platform.stop()

    Args:
        config: PlatformConfig or raw dict (validated here)
        registry: Host registry receiving device records
        client: Portal client; built from config and http_session if omitted
        http_session: aiohttp session used to build the default client
        listener: Optional detection listener (kind, payload, noteworthy)
        clock: Monotonic clock used for pacing

    Raises:
        ADTPulseConfigError: If the configuration is invalid
    """

    def __init__(
        self,
        config: PlatformConfig | dict[str, Any],
        registry: DeviceRegistry,
        client: PortalClient | None = None,
        http_session: aiohttp.ClientSession | None = None,
        listener: DetectionListener | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config if isinstance(config, PlatformConfig) else load_config(config)

        if client is None:
            if http_session is None:
                raise ValueError("Either client or http_session is required")
            client = ADTPulseClient.from_config(http_session, self.config)
        self.client = client

        intervals = self.config.intervals
        self.state = SyncState()
        self.detector = ChangeDetector(self.state.reported_hashes, listener=listener)
        self.controller = SessionController(client, self.state, self.detector, intervals, clock=clock)
        self.reconciler = DeviceReconciler(client, self.state, self.detector, registry, self.config.sensors)
        self.scheduler = SyncScheduler(client, self.state, self.controller, self.reconciler, intervals, clock=clock)

    # ========== Host callbacks ==========

    def configure_device(self, device: DeviceRecord) -> None:
        """Called by the host for every device restored from its cache."""
        logger.info("Configuring cached device %s (id: %s, uuid: %s) ...", device.name, device.id, device.uuid)
        self.reconciler.restore(device)

    # ========== Lifecycle ==========

    async def start(self) -> None:
        self.print_system_information()

        if self.config.mode == "paused":
            logger.warning("Plugin is now paused and all related devices will no longer respond.")
            return

        if self.config.mode == "reset":
            logger.warning("Plugin is now removing all related devices ...")
            removed = self.reconciler.remove_all()
            logger.warning("Removed %d %s. Set mode back to normal to resume.", removed, "device" if removed == 1 else "devices")
            return

        self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.controller.logout()

    def print_system_information(self) -> None:
        from . import __version__

        logger.info(
            " // ".join([
                "running on %s (%s)",
                "pyadtpulse-sync v%s",
                "python v%s",
                "aiohttp v%s",
            ]),
            _platform.system(),
            _platform.machine(),
            __version__,
            _platform.python_version(),
            aiohttp.__version__,
        )
        logger.debug("Python executable: %s", sys.executable)

    # ========== Commands ==========

    async def set_panel_status(self, target_state: str) -> PortalResponse:
        """
        Arm or disarm the panel from its last known state.

        A rejected transition is returned as a failed response, never retried.
        """
        panel_status = self.state.data.panel_status
        if panel_status is None:
            return PortalResponse.failed(
                "set-panel-status",
                ADTPulseInvalidStateTransition("Panel state is not known yet"),
            )

        response = await self.client.set_panel_status(panel_status.get("state"), target_state)
        if not response.success:
            logger.error("Setting panel status to %s has failed: %s", target_state, response.error)
        return response
