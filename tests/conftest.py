import asyncio
from collections import Counter

import pytest

from pyadtpulse_sync.config import Intervals, SensorConfig
from pyadtpulse_sync.exceptions import ADTPulseAuthError, ADTPulseNetworkError
from pyadtpulse_sync.models import DeviceRecord, PortalResponse
from pyadtpulse_sync.registry import DeviceRegistry


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePortalClient:
    """Scripted portal client; every queued response is consumed in order."""

    def __init__(self):
        self.authenticated = False
        self.calls = Counter()
        self.login_results: list[PortalResponse] = []
        self.heartbeat_results: list[PortalResponse] = []
        self.sync_codes: list[str] = []
        self.login_gate: asyncio.Event | None = None

        self.gateway = PortalResponse.ok("get-gateway-information", {
            "manufacturer": "ADT Pulse Gateway",
            "model": "PGZNG1",
            "serial_number": "5U020CN3007E3",
            "firmware_version": "24.0.0-9",
        })
        self.panel = PortalResponse.ok("get-panel-information", {
            "manufacturer_provider": "ADT",
            "type_model": "Security Panel - Safewatch Pro 3000/3000CN",
            "emergency_keys": "Button: Fire Alarm (Zone 95)",
            "status": "Online",
        })
        self.panel_status = PortalResponse.ok("get-panel-status", {"state": "off", "status": "All Quiet"})
        self.sensors_info = PortalResponse.ok("get-sensors-information", [
            {"device_id": 12, "name": "Front Door", "zone": 3, "device_type": "sensor,doorWindow", "status": "Online"},
            {"device_id": 13, "name": "Hallway Motion", "zone": 5, "device_type": "Motion Sensor", "status": "Online"},
        ])
        self.sensors_status = PortalResponse.ok("get-sensors-status", [
            {"name": "Front Door", "zone": 3, "status": "Closed", "icon": "devStatOK.png"},
            {"name": "Hallway Motion", "zone": 5, "status": "No Motion", "icon": "devStatOK.png"},
        ])
        self.panel_commands: list[tuple[str, str]] = []

    def is_authenticated(self) -> bool:
        return self.authenticated

    async def authenticate(self) -> PortalResponse:
        self.calls["authenticate"] += 1
        if self.login_gate is not None:
            await self.login_gate.wait()
        if self.login_results:
            result = self.login_results.pop(0)
        else:
            result = PortalResponse.ok("login", {"portal_version": "27.0.0-140"})
        self.authenticated = result.success
        return result

    async def end_session(self) -> PortalResponse:
        self.calls["end_session"] += 1
        self.authenticated = False
        return PortalResponse.ok("logout")

    async def perform_heartbeat(self) -> PortalResponse:
        self.calls["perform_heartbeat"] += 1
        if self.heartbeat_results:
            return self.heartbeat_results.pop(0)
        return PortalResponse.ok("keep-alive")

    async def perform_change_check(self) -> PortalResponse:
        self.calls["perform_change_check"] += 1
        code = self.sync_codes.pop(0) if self.sync_codes else "1-0-0"
        return PortalResponse.ok("sync-check", {"sync_code": code})

    async def fetch_gateway_info(self) -> PortalResponse:
        self.calls["fetch_gateway_info"] += 1
        return self.gateway

    async def fetch_panel_info(self) -> PortalResponse:
        self.calls["fetch_panel_info"] += 1
        return self.panel

    async def fetch_panel_status(self) -> PortalResponse:
        self.calls["fetch_panel_status"] += 1
        return self.panel_status

    async def fetch_sensors_info(self) -> PortalResponse:
        self.calls["fetch_sensors_info"] += 1
        return self.sensors_info

    async def fetch_sensors_status(self) -> PortalResponse:
        self.calls["fetch_sensors_status"] += 1
        return self.sensors_status

    async def set_panel_status(self, current_state: str, target_state: str) -> PortalResponse:
        self.panel_commands.append((current_state, target_state))
        return PortalResponse.ok("set-panel-status", {"state": target_state})


class RecordingRegistry(DeviceRegistry):
    """Registry that only records what it was asked to do"""

    def __init__(self):
        self.added: list[DeviceRecord] = []
        self.updated: list[DeviceRecord] = []
        self.removed: list[DeviceRecord] = []

    def add(self, device: DeviceRecord) -> None:
        self.added.append(device)

    def update(self, device: DeviceRecord) -> None:
        self.updated.append(device)

    def remove(self, device: DeviceRecord) -> None:
        self.removed.append(device)


def failed_login(message: str = "bad credentials") -> PortalResponse:
    return PortalResponse.failed("login", ADTPulseAuthError(message))


def failed_network(action: str) -> PortalResponse:
    return PortalResponse.failed(action, ADTPulseNetworkError("connection reset"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def portal() -> FakePortalClient:
    return FakePortalClient()


@pytest.fixture
def registry() -> RecordingRegistry:
    return RecordingRegistry()


@pytest.fixture
def intervals() -> Intervals:
    return Intervals()


@pytest.fixture
def sensors() -> list[SensorConfig]:
    return [
        SensorConfig(name="Entry", adt_name="Front Door", adt_type="doorWindow", adt_zone=3),
        SensorConfig(adt_name="Hallway Motion", adt_type="motion", adt_zone=5),
    ]


@pytest.fixture
def raw_config() -> dict:
    return {
        "platform": "ADTPulse",
        "name": "ADT Pulse",
        "subdomain": "portal",
        "username": "user@example.com",
        "password": "secret",
        "fingerprint": "fingerprint-blob",
        "mode": "normal",
        "speed": 1,
        "sensors": [
            {"name": "Entry", "adtName": "Front Door", "adtType": "doorWindow", "adtZone": 3},
            {"adtName": "Hallway Motion", "adtType": "motion", "adtZone": 5},
        ],
    }
