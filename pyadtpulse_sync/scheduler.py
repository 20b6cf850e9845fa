"""
Sync scheduler.

A single repeating tick logs in when needed and fires the keep-alive and
sync-check sub-tasks at their own pace. Every unit of work is guarded by its
own activity flag so it never overlaps with itself.
"""
import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any

from .config import Intervals
from .controller import AuthOutcome, SessionController
from .models import PortalClient
from .reconciler import DeviceReconciler
from .state import SyncState

logger = logging.getLogger(__name__)


class SyncScheduler:
    def __init__(
        self,
        client: PortalClient,
        state: SyncState,
        controller: SessionController,
        reconciler: DeviceReconciler,
        intervals: Intervals,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._state = state
        self._controller = controller
        self._reconciler = reconciler
        self._intervals = intervals
        self._clock = clock

        self._loop_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()
        self._stopping = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    # ========== Lifecycle ==========

    def start(self) -> None:
        """Start ticking. Must be called from a running event loop."""
        if self.is_running:
            return
        self._stopping.clear()
        self._loop_task = asyncio.create_task(self._run(), name="adtpulse-synchronize")

    async def stop(self) -> None:
        """
        Stop scheduling new ticks and wait for in-flight work.

        A tick that is waiting out a login cooldown returns immediately.
        """
        self._stopping.set()
        if self._loop_task is not None:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

        await self.wait_for_tasks()

    async def wait_for_tasks(self) -> None:
        """Wait until every spawned tick and sub-task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self) -> None:
        while not self._stopping.is_set():
            self._spawn(self.synchronize(), "adtpulse-tick")
            await asyncio.sleep(self._intervals.synchronize)

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # ========== Tick ==========

    async def synchronize(self) -> None:
        """One sync tick. Skipped entirely while a previous tick is running."""
        activity = self._state.activity
        if activity.is_syncing:
            return

        try:
            activity.is_syncing = True

            if not self._client.is_authenticated():
                outcome = await self._controller.ensure_authenticated()

                if outcome is AuthOutcome.COOLDOWN:
                    await self._controller.wait_out_cooldown(self._stopping)
                    return

                if not self._client.is_authenticated():
                    return

            now = self._clock()
            last_run_on = self._state.last_run_on

            # Fire and forget, each sub-task paces itself
            if now - last_run_on.keep_alive >= self._intervals.keep_alive:
                self.synchronize_keep_alive()

            if now - last_run_on.sync_check >= self._intervals.sync_check:
                self.synchronize_sync_check()
        except Exception:
            logger.exception("synchronize() has unexpectedly thrown an error, will continue to sync.")
        finally:
            activity.is_syncing = False

    # ========== Sub-tasks ==========

    def synchronize_keep_alive(self) -> asyncio.Task:
        return self._spawn(self._keep_alive(), "adtpulse-keep-alive")

    def synchronize_sync_check(self) -> asyncio.Task:
        return self._spawn(self._sync_check(), "adtpulse-sync-check")

    async def _keep_alive(self) -> None:
        activity = self._state.activity
        if activity.is_keeping_alive:
            return

        try:
            activity.is_keeping_alive = True

            keep_alive = await self._client.perform_heartbeat()

            if keep_alive.success:
                logger.debug("Keep alive request was successful. The login session should now be extended.")
            else:
                logger.error("Keeping alive attempt has failed (%s). Trying again later.", keep_alive.error)
        except Exception:
            logger.exception("synchronize_keep_alive() has unexpectedly thrown an error, will continue to keep alive.")
        finally:
            # Failed attempts still wait a full interval
            self._state.last_run_on.keep_alive = self._clock()
            activity.is_keeping_alive = False

    async def _sync_check(self) -> None:
        activity = self._state.activity
        if activity.is_sync_checking:
            return

        try:
            activity.is_sync_checking = True

            sync_check = await self._client.perform_change_check()

            if not sync_check.success:
                logger.error("Sync checking attempt has failed (%s). Trying again later.", sync_check.error)
                return

            data = self._state.data
            sync_code = sync_check.info["sync_code"]
            if sync_code == data.sync_code:
                logger.debug("Sync check request was successful. Panel and sensor data is up to date.")
                return

            logger.debug(
                "Panel and sensor data is outdated (old: %s, new: %s). Retrieving the latest data ...",
                data.sync_code,
                sync_code,
            )
            data.sync_code = sync_code

            # Awaited so two refreshes never run at once
            await self._reconciler.refresh()
        except Exception:
            logger.exception("synchronize_sync_check() has unexpectedly thrown an error, will continue to sync check.")
        finally:
            self._state.last_run_on.sync_check = self._clock()
            activity.is_sync_checking = False
