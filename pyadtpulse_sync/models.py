"""
Data types shared by the portal client and the sync engine.
"""
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, NewType, Protocol, runtime_checkable

from .constants import DEVICE_ID_PREFIX
from .exceptions import ADTPulseError

StableId = NewType("StableId", str)

# Namespace for deriving host-side UUIDs from stable ids
DEVICE_UUID_NAMESPACE = uuid.UUID("6f1d2a3e-5b0c-4c1e-9a8f-2d7b3c4e5f60")


def make_stable_id(portal_id: int | str) -> StableId:
    """Build the stable id for a portal device id (e.g. 12 -> "adt-device-12")."""
    return StableId(f"{DEVICE_ID_PREFIX}{int(portal_id)}")


class ResourceKind(str, Enum):
    """Kinds of portal observations routed through the change detector."""

    PORTAL_VERSION = "portalVersion"
    GATEWAY = "gateway"
    PANEL = "panel"
    PANEL_STATUS = "panelStatus"
    SENSORS_INFO = "sensorsInfo"
    SENSORS_STATUS = "sensorsStatus"


@dataclass
class PortalResponse:
    """
    Tagged result of a portal operation.

    On success `info` holds the parsed payload; on failure `error` holds the
    exception describing what went wrong.
    """
    action: str
    success: bool
    info: Any = None
    error: ADTPulseError | None = None

    @classmethod
    def ok(cls, action: str, info: Any = None) -> "PortalResponse":
        return cls(action=action, success=True, info=info)

    @classmethod
    def failed(cls, action: str, error: ADTPulseError) -> "PortalResponse":
        return cls(action=action, success=False, error=error)


@dataclass
class DeviceRecord:
    """Device as handed to the host registry"""
    id: StableId
    name: str
    type: str  # gateway, panel or a condensed sensor type
    category: str  # host category: BRIDGE, SECURITY_SYSTEM, SENSOR
    manufacturer: str | None
    model: str | None
    serial: str | None = None
    zone: int | None = None

    @property
    def uuid(self) -> str:
        """Host UUID derived from the stable id"""
        return str(uuid.uuid5(DEVICE_UUID_NAMESPACE, self.id))


@runtime_checkable
class PortalClient(Protocol):
    """
    What the sync engine needs from a portal client.

    ADTPulseClient is the production implementation; every coroutine returns
    a PortalResponse instead of raising on portal failures.
    """

    def is_authenticated(self) -> bool: ...

    async def authenticate(self) -> PortalResponse: ...

    async def end_session(self) -> PortalResponse: ...

    async def perform_heartbeat(self) -> PortalResponse: ...

    async def perform_change_check(self) -> PortalResponse: ...

    async def fetch_gateway_info(self) -> PortalResponse: ...

    async def fetch_panel_info(self) -> PortalResponse: ...

    async def fetch_panel_status(self) -> PortalResponse: ...

    async def fetch_sensors_info(self) -> PortalResponse: ...

    async def fetch_sensors_status(self) -> PortalResponse: ...

    async def set_panel_status(self, current_state: str, target_state: str) -> PortalResponse: ...
