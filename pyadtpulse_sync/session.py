import aiohttp
import json
import logging
import os
import re
from .exceptions import ADTPulseNotInitialized
from .constants import (
    BASE_URL,
    PORTAL_PREFIX,
    HDR_ACCEPT,
    HDR_USER_AGENT,
    USER_AGENT,
)

WIRE_LOGGER_NAME = "pyadtpulse_sync.http"
WIRE_BODY_LIMIT = 500

# Form fields that must never reach the wire log
_REDACTED_FIELDS = ("passwordForm", "fingerprint")


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() in ("1", "true", "yes")


def _redact(form) -> str | None:
    if form is None:
        return None
    if isinstance(form, dict):
        return json.dumps(
            {k: ("***" if k in _REDACTED_FIELDS else v) for k, v in form.items()},
            ensure_ascii=False,
        )
    return str(form)


class _WireLogSession:
    """
    aiohttp session proxy that writes every portal exchange to a file.

    Enabled by ADTPULSE_HTTP_LOG_FILE; ADTPULSE_HTTP_LOG_HEADERS and
    ADTPULSE_HTTP_LOG_BODY select what goes into each line.
    """

    def __init__(self, session: aiohttp.ClientSession, log_file: str):
        self._session = session
        self._logger = logging.getLogger(WIRE_LOGGER_NAME)
        if not self._logger.handlers:
            handler = logging.FileHandler(log_file)
            handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
            self._logger.addHandler(handler)
            self._logger.setLevel(logging.INFO)

        self._with_headers = _env_flag("ADTPULSE_HTTP_LOG_HEADERS", False)
        self._with_body = _env_flag("ADTPULSE_HTTP_LOG_BODY", True)

    def request(self, method: str, url: str, **kwargs) -> "_WireLogExchange":
        parts = [f">> {method} {url}"]
        if kwargs.get("params"):
            parts.append(f"params={kwargs['params']}")
        if self._with_headers and kwargs.get("headers"):
            parts.append(f"headers={kwargs['headers']}")
        if self._with_body:
            parts.append(f"form={_redact(kwargs.get('data'))}")
        self._logger.info(" ".join(parts))
        return _WireLogExchange(self, self._session.request(method, url, **kwargs), method, url)

    async def log_reply(self, method: str, url: str, resp: aiohttp.ClientResponse) -> None:
        parts = [f"<< {method} {url} status={resp.status}"]
        if str(resp.url) != url:
            # Portal redirects carry the version and the sign-in detection
            parts.append(f"landed={resp.url}")
        if self._with_headers:
            parts.append(f"headers={dict(resp.headers)}")
        if self._with_body:
            try:
                # read() caches the payload for the caller
                text = (await resp.read()).decode("utf-8", errors="replace")
            except aiohttp.ClientError as e:
                text = f"<unreadable: {e}>"
            if len(text) > WIRE_BODY_LIMIT:
                text = text[:WIRE_BODY_LIMIT] + "..."
            parts.append(f"body={text!r}")
        self._logger.info(" ".join(parts))

    def __getattr__(self, name):
        return getattr(self._session, name)


class _WireLogExchange:
    """Request context manager that logs the reply before handing it back"""

    def __init__(self, wire: _WireLogSession, cm, method: str, url: str):
        self._wire = wire
        self._cm = cm
        self._method = method
        self._url = url

    async def __aenter__(self) -> aiohttp.ClientResponse:
        resp = await self._cm.__aenter__()
        await self._wire.log_reply(self._method, self._url, resp)
        return resp

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return await self._cm.__aexit__(exc_type, exc_val, exc_tb)


class ADTPulseSession:
    """
    HTTP session plus the portal session state.

    The portal embeds its version in every URL (/myhome/<version>/...), so
    the version must be discovered before any other call.
    """

    VERSION_PATTERN = re.compile(r"/myhome/(\d+(?:\.\d+)+-\d+)/")

    def __init__(self, session: aiohttp.ClientSession, subdomain: str = "portal"):
        log_file = os.getenv("ADTPULSE_HTTP_LOG_FILE")
        if log_file:
            self._session = _WireLogSession(session, log_file)
        else:
            self._session = session

        self.base_url = BASE_URL.format(subdomain=subdomain)

        # Portal data
        self.portal_version: str | None = None

        # Auth state
        self._authenticated = False

    @property
    def http(self):
        return self._session

    # ---------- state helpers ----------

    @property
    def has_version(self) -> bool:
        return self.portal_version is not None

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated and self.has_version

    def mark_authenticated(self) -> None:
        self._authenticated = True

    def invalidate(self) -> None:
        """Forget the login (signout or portal redirected to sign-in)."""
        self._authenticated = False

    def update_version_from_url(self, url: str) -> str | None:
        """Pick the portal version out of a redirected URL, if present."""
        match = self.VERSION_PATTERN.search(url)
        if match:
            self.portal_version = match.group(1)
        return self.portal_version

    # ---------- headers ----------

    def default_headers(self) -> dict:
        return {
            HDR_USER_AGENT: USER_AGENT,
            HDR_ACCEPT: "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }

    def ajax_headers(self) -> dict:
        headers = self.default_headers()
        headers.update({
            HDR_ACCEPT: "*/*",
            "X-Requested-With": "XMLHttpRequest",
        })
        return headers

    # ---------- url builders ----------

    def root_url(self) -> str:
        return f"{self.base_url}/"

    def portal_url(self, path: str) -> str:
        if not self.portal_version:
            raise ADTPulseNotInitialized("Portal version not discovered yet")
        return f"{self.base_url}{PORTAL_PREFIX.format(version=self.portal_version)}{path}"
