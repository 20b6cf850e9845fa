"""
ADT Pulse Portal Client

Transport layer for the sync engine: signs in, keeps the session alive and
fetches/commands portal resources. Every public operation returns a
PortalResponse; portal and network failures never escape as exceptions.
"""
import asyncio
import logging
import time
from collections.abc import Awaitable
from typing import Any

import aiohttp

from .session import ADTPulseSession
from .models import PortalResponse
from .parsers import (
    parse_gateway_info,
    parse_panel_info,
    parse_panel_status,
    parse_sensors_info,
    parse_sensors_status,
    parse_sync_code,
)
from .exceptions import (
    ADTPulseError,
    ADTPulseAuthError,
    ADTPulseInvalidStateTransition,
    ADTPulseNetworkError,
    ADTPulseNotInitialized,
    ADTPulseUnexpectedResponseError,
)
from .constants import (
    ARM_DISARM_HREF,
    DEFAULT_TIMEOUT,
    HTTP_200_OK,
    PANEL_ARM_STATES,
    PATH_ARM_DISARM,
    PATH_GATEWAY,
    PATH_KEEP_ALIVE,
    PATH_ORB,
    PATH_PANEL,
    PATH_SIGN_IN,
    PATH_SIGN_OUT,
    PATH_SUMMARY,
    PATH_SYNC_CHECK,
    PATH_SYSTEM,
)

logger = logging.getLogger(__name__)


class ADTPulseClient:
    """
    Main client for the ADT Pulse portal.

    Usage:
        async with aiohttp.ClientSession() as http_session:
            client = ADTPulseClient(http_session, "user@example.com", "password", fingerprint)

            # 1. Login (discovers the portal version first)
            login = await client.authenticate()
            if not login.success:
                print(login.error)

            # 2. Cheap change poll
            sync = await client.perform_change_check()
            print(sync.info["sync_code"])

            # 3. Fetch resources
            sensors = await client.fetch_sensors_info()

            # 4. Logout
            await client.end_session()
    """

    def __init__(
        self,
        aiohttp_session: aiohttp.ClientSession,
        username: str,
        password: str,
        fingerprint: str,
        subdomain: str = "portal",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.session = ADTPulseSession(aiohttp_session, subdomain)
        self._username = username
        self._password = password
        self._fingerprint = fingerprint
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    @classmethod
    def from_config(cls, aiohttp_session: aiohttp.ClientSession, config) -> "ADTPulseClient":
        """Build a client from a validated PlatformConfig"""
        return cls(
            aiohttp_session,
            config.username,
            config.password,
            config.fingerprint,
            subdomain=config.subdomain,
        )

    def is_authenticated(self) -> bool:
        """Cached session validity only, no network call"""
        return self.session.is_authenticated

    # ========== Session ==========

    async def authenticate(self) -> PortalResponse:
        """
        Sign in to the portal.

        Returns:
            PortalResponse with info {"portal_version": str} on success.
            Failures carry ADTPulseAuthError (rejected credentials),
            ADTPulseNetworkError or ADTPulseUnexpectedResponseError.
        """
        return await self._call("login", self._login())

    async def end_session(self) -> PortalResponse:
        """Sign out. The local session is invalidated even if the request fails."""
        return await self._call("logout", self._logout())

    async def perform_heartbeat(self) -> PortalResponse:
        """Extend the portal session (KeepAlive)"""
        return await self._call("keep-alive", self._keep_alive())

    async def perform_change_check(self) -> PortalResponse:
        """
        Poll the portal revision code.

        Returns:
            PortalResponse with info {"sync_code": "2-1-0"} on success
        """
        return await self._call("sync-check", self._sync_check())

    # ========== Resources ==========

    async def fetch_gateway_info(self) -> PortalResponse:
        return await self._call("get-gateway-information", self._fetch_page(PATH_GATEWAY, parse_gateway_info))

    async def fetch_panel_info(self) -> PortalResponse:
        return await self._call("get-panel-information", self._fetch_page(PATH_PANEL, parse_panel_info))

    async def fetch_panel_status(self) -> PortalResponse:
        return await self._call("get-panel-status", self._fetch_page(PATH_SUMMARY, parse_panel_status))

    async def fetch_sensors_info(self) -> PortalResponse:
        return await self._call("get-sensors-information", self._fetch_page(PATH_SYSTEM, parse_sensors_info))

    async def fetch_sensors_status(self) -> PortalResponse:
        return await self._call(
            "get-sensors-status",
            self._fetch_page(PATH_ORB, parse_sensors_status, ajax=True),
        )

    # ========== Commands ==========

    async def set_panel_status(self, current_state: str, target_state: str) -> PortalResponse:
        """
        Arm or disarm the security panel.

        Args:
            current_state: Panel state as last reported (away, stay, night, off)
            target_state: Requested state (away, stay, night, off)

        Returns:
            PortalResponse with info {"state": target_state} on success.
            ADTPulseInvalidStateTransition if the target is not reachable.
        """
        return await self._call("set-panel-status", self._set_panel_status(current_state, target_state))

    @staticmethod
    def validate_transition(current_state: str, target_state: str) -> None:
        """
        Raises:
            ADTPulseInvalidStateTransition: If target cannot be reached from current
        """
        if current_state not in PANEL_ARM_STATES:
            raise ADTPulseInvalidStateTransition(
                f"Cannot change panel state while current state is {current_state!r}"
            )
        if target_state not in PANEL_ARM_STATES:
            raise ADTPulseInvalidStateTransition(f"Unknown target panel state {target_state!r}")
        if current_state == target_state:
            raise ADTPulseInvalidStateTransition(f"Panel is already in state {target_state!r}")

    # ---------- internals ----------

    async def _call(self, action: str, operation: Awaitable[Any]) -> PortalResponse:
        try:
            info = await operation
        except ADTPulseError as e:
            logger.debug("Portal action %s failed: %s: %s", action, type(e).__name__, e)
            return PortalResponse.failed(action, e)
        return PortalResponse.ok(action, info)

    def _require_auth(self) -> None:
        if not self.session.is_authenticated:
            raise ADTPulseNotInitialized("Not authenticated")

    async def _request(
        self,
        method: str,
        url: str,
        *,
        ajax: bool = False,
        data: dict | None = None,
        params: dict | None = None,
    ) -> tuple[str, str]:
        """
        Perform one HTTP request.

        Returns:
            (body text, final URL after redirects)
        """
        headers = self.session.ajax_headers() if ajax else self.session.default_headers()
        try:
            async with self.session.http.request(
                method,
                url,
                headers=headers,
                data=data,
                params=params,
                timeout=self._timeout,
            ) as resp:
                try:
                    text = await resp.text()
                except UnicodeDecodeError as e:
                    raise ADTPulseUnexpectedResponseError(f"{method} {url} returned an undecodable body: {e}") from e
                status = resp.status
                final_url = str(resp.url)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ADTPulseNetworkError(f"Network error during {method} {url}: {e}") from e

        if status != HTTP_200_OK:
            raise ADTPulseUnexpectedResponseError(f"{method} {url} failed: {status}")
        return text, final_url

    async def _portal_request(self, method: str, path: str, **kwargs) -> str:
        """Request a portal page, detecting a silent redirect to the sign-in page."""
        self._require_auth()
        text, final_url = await self._request(method, self.session.portal_url(path), **kwargs)
        if PATH_SIGN_IN in final_url:
            self.session.invalidate()
            raise ADTPulseAuthError("Portal session is no longer valid")
        return text

    async def _fetch_page(self, path: str, parser, ajax: bool = False):
        text = await self._portal_request("GET", path, ajax=ajax)
        return parser(text)

    async def _login(self) -> dict[str, Any]:
        self.session.invalidate()

        # The root URL redirects to /myhome/<version>/access/signin.jsp
        _, final_url = await self._request("GET", self.session.root_url())
        if not self.session.update_version_from_url(final_url):
            raise ADTPulseUnexpectedResponseError(f"Unable to determine portal version from {final_url}")

        form = {
            "usernameForm": self._username,
            "passwordForm": self._password,
            "networkid": "",
            "fingerprint": self._fingerprint,
            "sun": "yes",
        }
        _, final_url = await self._request("POST", self.session.portal_url(PATH_SIGN_IN), data=form)
        self.session.update_version_from_url(final_url)

        if PATH_SUMMARY not in final_url:
            raise ADTPulseAuthError("Login rejected by the portal, check username, password and fingerprint")

        self.session.mark_authenticated()
        logger.debug("Signed in to portal version %s", self.session.portal_version)
        return {"portal_version": self.session.portal_version}

    async def _logout(self) -> None:
        if not self.session.has_version:
            self.session.invalidate()
            return None
        try:
            await self._request("GET", self.session.portal_url(PATH_SIGN_OUT))
        finally:
            self.session.invalidate()
        return None

    async def _keep_alive(self) -> None:
        await self._portal_request("POST", PATH_KEEP_ALIVE, ajax=True)
        return None

    async def _sync_check(self) -> dict[str, str]:
        text = await self._portal_request(
            "GET",
            PATH_SYNC_CHECK,
            ajax=True,
            params={"t": str(int(time.time() * 1000))},
        )
        return {"sync_code": parse_sync_code(text)}

    async def _set_panel_status(self, current_state: str, target_state: str) -> dict[str, str]:
        self.validate_transition(current_state, target_state)
        self._require_auth()

        # The portal cannot switch directly between two armed modes
        if current_state != "off" and target_state != "off":
            await self._arm_disarm(current_state, "off")
            current_state = "off"

        await self._arm_disarm(current_state, target_state)
        return {"state": target_state}

    async def _arm_disarm(self, arm_state: str, arm: str) -> None:
        form = {
            "href": ARM_DISARM_HREF,
            "armstate": arm_state,
            "arm": arm,
        }
        await self._portal_request("POST", PATH_ARM_DISARM, ajax=True, data=form)
