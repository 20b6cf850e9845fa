"""
Session controller: login, failed-login counting and cooldown.
"""
import asyncio
import logging
import time
from collections.abc import Callable
from enum import Enum

from .config import Intervals
from .detect import ChangeDetector
from .exceptions import ADTPulseUnexpectedResponseError
from .models import PortalClient, PortalResponse, ResourceKind
from .state import SyncState

logger = logging.getLogger(__name__)


class AuthOutcome(Enum):
    AUTHENTICATED = "authenticated"
    IN_PROGRESS = "in_progress"  # another login is running, check again later
    FAILED = "failed"  # login failed, retries left
    COOLDOWN = "cooldown"  # too many failures, suspend syncing


def _plural(count: float, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


class SessionController:
    """
    Owns the login lifecycle.

    After `intervals.max_login_retries` consecutive failures the controller
    enters a cooldown of `intervals.suspend_syncing` seconds. While cooling
    down no login is attempted; once it elapses the failure counter is reset.
    """

    def __init__(
        self,
        client: PortalClient,
        state: SyncState,
        detector: ChangeDetector,
        intervals: Intervals,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._state = state
        self._detector = detector
        self._intervals = intervals
        self._clock = clock

    # ---------- cooldown ----------

    @property
    def in_cooldown(self) -> bool:
        return self._state.event_counters.failed_logins >= self._intervals.max_login_retries

    def cooldown_remaining(self) -> float:
        if not self.in_cooldown:
            return 0.0
        started = self._state.cooldown_started
        if started is None:
            return self._intervals.suspend_syncing
        return max(0.0, started + self._intervals.suspend_syncing - self._clock())

    def end_cooldown(self) -> None:
        self._state.event_counters.failed_logins = 0
        self._state.cooldown_started = None

    async def wait_out_cooldown(self, interrupt: asyncio.Event | None = None) -> bool:
        """
        Sleep until the cooldown elapses, then reset the failure counter.

        Args:
            interrupt: Optional event that ends the wait early (shutdown)

        Returns:
            True if the cooldown ran to completion
        """
        remaining = self.cooldown_remaining()
        if remaining > 0:
            if interrupt is None:
                await asyncio.sleep(remaining)
            else:
                try:
                    await asyncio.wait_for(interrupt.wait(), timeout=remaining)
                    return False
                except asyncio.TimeoutError:
                    pass
        self.end_cooldown()
        logger.info("Login cooldown finished, resuming login attempts.")
        return True

    # ---------- login ----------

    async def ensure_authenticated(self) -> AuthOutcome:
        """
        Log in unless already authenticated.

        Returns:
            AuthOutcome describing what the caller should do next
        """
        if self._client.is_authenticated():
            return AuthOutcome.AUTHENTICATED

        if self.in_cooldown:
            if self.cooldown_remaining() > 0:
                return AuthOutcome.COOLDOWN
            self.end_cooldown()

        activity = self._state.activity
        if activity.is_logging_in:
            return AuthOutcome.IN_PROGRESS

        try:
            activity.is_logging_in = True

            try:
                login = await self._client.authenticate()
            except Exception as e:
                logger.exception("authenticate() has unexpectedly thrown an error")
                login = PortalResponse.failed("login", ADTPulseUnexpectedResponseError(f"{type(e).__name__}: {e}"))

            if login.success:
                return self._handle_login_success(login.info or {})
            return self._handle_login_failure(login)
        finally:
            activity.is_logging_in = False

    def _handle_login_success(self, info: dict) -> AuthOutcome:
        self._state.event_counters.failed_logins = 0
        self._state.cooldown_started = None

        # Pace the sub-tasks from the fresh login
        now = self._clock()
        self._state.last_run_on.keep_alive = now
        self._state.last_run_on.sync_check = now

        logger.info("Login successful (portal version: %s).", info.get("portal_version"))

        try:
            self._detector.notify_if_new(ResourceKind.PORTAL_VERSION, info.get("portal_version"))
        except Exception:
            logger.exception("Portal version detection failed")
        return AuthOutcome.AUTHENTICATED

    def _handle_login_failure(self, login) -> AuthOutcome:
        counters = self._state.event_counters
        max_retries = self._intervals.max_login_retries
        counters.failed_logins = min(counters.failed_logins + 1, max_retries)

        attempts_left = max_retries - counters.failed_logins
        if attempts_left > 0:
            logger.error(
                "Login attempt has failed (%s). Trying %d more %s ...",
                login.error,
                attempts_left,
                _plural(attempts_left, "time", "times"),
            )
            return AuthOutcome.FAILED

        suspend_minutes = self._intervals.suspend_syncing / 60
        logger.error(
            "Login attempt has failed for %d %s (%s). Sleeping for %g %s before resuming ...",
            max_retries,
            _plural(max_retries, "time", "times"),
            login.error,
            suspend_minutes,
            _plural(suspend_minutes, "minute", "minutes"),
        )
        self._state.cooldown_started = self._clock()
        return AuthOutcome.COOLDOWN

    async def logout(self) -> None:
        """End the portal session if one is open"""
        if not self._client.is_authenticated():
            return
        response = await self._client.end_session()
        if response.success:
            logger.info("Logged out of the portal.")
        else:
            logger.warning("Logout failed: %s", response.error)
