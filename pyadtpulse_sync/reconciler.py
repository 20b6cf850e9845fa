"""
Device reconciliation.

Merges the latest portal data with the configured sensors into a canonical
device list and applies it to the host registry.
"""
import asyncio
import logging
from typing import Any

from .config import SensorConfig
from .constants import (
    CATEGORY_BRIDGE,
    CATEGORY_SECURITY_SYSTEM,
    CATEGORY_SENSOR,
    GATEWAY_NAME,
    GATEWAY_PORTAL_ID,
    PANEL_NAME,
    PANEL_PORTAL_ID,
    SENSOR_MANUFACTURER,
)
from .detect import ChangeDetector
from .exceptions import ADTPulseConfigMismatch
from .models import DeviceRecord, PortalClient, ResourceKind, StableId, make_stable_id
from .parsers import condense_sensor_type
from .registry import DeviceRegistry
from .state import SyncState

logger = logging.getLogger(__name__)

# Resource kind -> (client method, PortalData attribute)
FETCHES = {
    ResourceKind.GATEWAY: ("fetch_gateway_info", "gateway_info"),
    ResourceKind.PANEL: ("fetch_panel_info", "panel_info"),
    ResourceKind.PANEL_STATUS: ("fetch_panel_status", "panel_status"),
    ResourceKind.SENSORS_INFO: ("fetch_sensors_info", "sensors_info"),
    ResourceKind.SENSORS_STATUS: ("fetch_sensors_status", "sensors_status"),
}


def find_portal_sensor(
    sensor: SensorConfig,
    sensors_info: list[dict[str, Any]],
) -> dict[str, Any] | None:
    """
    First portal sensor whose name, condensed type and zone all equal the
    configured ones, or None.
    """
    for portal_sensor in sensors_info:
        if (
            portal_sensor.get("name") == sensor.adt_name
            and condense_sensor_type(portal_sensor.get("device_type")) == sensor.adt_type
            and portal_sensor.get("zone") == sensor.adt_zone
        ):
            return portal_sensor
    return None


class DeviceReconciler:
    """
    Args:
        client: Portal client (fetch_* operations)
        state: Shared sync state; portal data slots are written here
        detector: Change detector every fetched payload passes through
        registry: Host registry receiving add/update/remove
        sensors: Configured sensors, in configuration order
    """

    def __init__(
        self,
        client: PortalClient,
        state: SyncState,
        detector: ChangeDetector,
        registry: DeviceRegistry,
        sensors: list[SensorConfig],
    ):
        self._client = client
        self._state = state
        self._detector = detector
        self._registry = registry
        self._sensors = tuple(sensors)
        self._known: dict[StableId, DeviceRecord] = {}

    @property
    def known_devices(self) -> list[DeviceRecord]:
        return list(self._known.values())

    def restore(self, device: DeviceRecord) -> None:
        """Track a device the host already has (restored from its cache)."""
        self._known[device.id] = device

    # ---------- refresh ----------

    async def refresh(self) -> list[DeviceRecord]:
        """
        Fetch all five resources concurrently, then rebuild and apply the
        device list. A failed fetch leaves its previous data in place.
        """
        await asyncio.gather(*(self._fetch(kind) for kind in FETCHES))

        devices = self.unify()
        self.diff_and_apply(devices)
        return devices

    async def _fetch(self, kind: ResourceKind) -> None:
        method_name, slot = FETCHES[kind]
        try:
            response = await getattr(self._client, method_name)()
            if not response.success:
                logger.error("Unable to retrieve %s: %s", kind.value, response.error)
                return

            setattr(self._state.data, slot, response.info)
            self._detector.notify_if_new(kind, response.info)
        except Exception:
            logger.exception("Retrieving %s has unexpectedly failed, will continue to fetch.", kind.value)

    # ---------- unify ----------

    def unify(self) -> list[DeviceRecord]:
        """Build the canonical device list from scratch."""
        data = self._state.data
        devices: list[DeviceRecord] = []

        if data.gateway_info is not None:
            gateway = data.gateway_info
            devices.append(DeviceRecord(
                id=make_stable_id(GATEWAY_PORTAL_ID),
                name=GATEWAY_NAME,
                type="gateway",
                category=CATEGORY_BRIDGE,
                manufacturer=gateway.get("manufacturer"),
                model=gateway.get("model"),
                serial=gateway.get("serial_number"),
            ))

        if data.panel_info is not None:
            panel = data.panel_info
            devices.append(DeviceRecord(
                id=make_stable_id(PANEL_PORTAL_ID),
                name=PANEL_NAME,
                type="panel",
                category=CATEGORY_SECURITY_SYSTEM,
                manufacturer=panel.get("manufacturer_provider"),
                model=panel.get("type_model"),
            ))

        seen = {device.id for device in devices}
        for sensor in self._sensors:
            try:
                device = self._sensor_device(sensor, data.sensors_info)
            except ADTPulseConfigMismatch as e:
                logger.warning("%s Skipping ...", e)
                continue

            if device.id in seen:
                logger.warning(
                    "%s (zone: %s) resolves to device %s which is already configured. Skipping ...",
                    sensor.adt_name,
                    sensor.adt_zone,
                    device.id,
                )
                continue
            seen.add(device.id)
            devices.append(device)

        return devices

    def _sensor_device(self, sensor: SensorConfig, sensors_info: list[dict[str, Any]]) -> DeviceRecord:
        portal_sensor = find_portal_sensor(sensor, sensors_info)
        if portal_sensor is None:
            raise ADTPulseConfigMismatch(
                f"Attempted to add or update {sensor.adt_name} (zone: {sensor.adt_zone}) "
                "that does not exist on the portal."
            )

        return DeviceRecord(
            id=make_stable_id(portal_sensor["device_id"]),
            name=sensor.display_name,
            type=sensor.adt_type,
            category=CATEGORY_SENSOR,
            manufacturer=SENSOR_MANUFACTURER,
            model=portal_sensor.get("device_type"),
            zone=sensor.adt_zone,
        )

    # ---------- apply ----------

    def diff_and_apply(self, devices: list[DeviceRecord]) -> tuple[list[StableId], list[StableId]]:
        """
        Update devices the registry already has, add the rest.

        Known devices missing from `devices` are left alone; only remove_all()
        removes devices.

        Returns:
            (added ids, updated ids)
        """
        added: list[StableId] = []
        updated: list[StableId] = []

        for device in devices:
            try:
                if device.id in self._known:
                    self._registry.update(device)
                    updated.append(device.id)
                else:
                    self._registry.add(device)
                    added.append(device.id)
                self._known[device.id] = device
            except Exception:
                logger.exception("Registry rejected %s (id: %s)", device.name, device.id)

        return added, updated

    def remove_all(self) -> int:
        """Remove every known device from the registry (reset mode)."""
        removed = 0
        for device in list(self._known.values()):
            try:
                self._registry.remove(device)
                removed += 1
            except Exception:
                logger.exception("Registry failed to remove %s (id: %s)", device.name, device.id)
            del self._known[device.id]
        return removed
