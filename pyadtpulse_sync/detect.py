"""
Change detection.

Every observed payload is hashed; a payload that was already reported as
noteworthy is never looked at again for the lifetime of the process.
"""
import hashlib
import json
import logging
from collections.abc import Callable
from typing import Any

from .constants import (
    KNOWN_GATEWAYS,
    KNOWN_PANEL_STATUSES,
    KNOWN_PANELS,
    KNOWN_PORTAL_VERSIONS,
    KNOWN_SENSOR_STATUSES,
    PANEL_STATE_UNKNOWN,
)
from .models import ResourceKind
from .parsers import condense_sensor_type

logger = logging.getLogger(__name__)

# listener(kind, payload, noteworthy)
DetectionListener = Callable[[ResourceKind, Any, bool], None]
DetectionHandler = Callable[[Any], bool]


def generate_hash(kind: ResourceKind, payload: Any) -> str:
    """Stable content hash (key order independent)"""
    serialized = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(f"{kind.value}:{serialized}".encode("utf-8")).hexdigest()


# ---------- detection handlers ----------
# Each returns True when the payload holds something worth surfacing.

def detected_new_portal_version(version: Any) -> bool:
    if version in KNOWN_PORTAL_VERSIONS:
        return False
    logger.warning("Detected a new portal version (%s). Please report it so support can be verified.", version)
    return True


def detected_new_gateway_information(info: dict[str, Any]) -> bool:
    if (info.get("manufacturer"), info.get("model")) in KNOWN_GATEWAYS:
        return False
    logger.warning(
        "Detected a new gateway (manufacturer: %s, model: %s, firmware: %s).",
        info.get("manufacturer"),
        info.get("model"),
        info.get("firmware_version"),
    )
    return True


def detected_new_panel_information(info: dict[str, Any]) -> bool:
    if (info.get("manufacturer_provider"), info.get("type_model")) in KNOWN_PANELS:
        return False
    logger.warning(
        "Detected a new security panel (manufacturer: %s, model: %s).",
        info.get("manufacturer_provider"),
        info.get("type_model"),
    )
    return True


def detected_new_panel_status(status: dict[str, Any]) -> bool:
    state = status.get("state")
    text = status.get("status")
    if state != PANEL_STATE_UNKNOWN and (text is None or text in KNOWN_PANEL_STATUSES):
        return False
    logger.warning("Detected a new panel status (state: %s, status: %s).", state, text)
    return True


def detected_new_sensors_information(sensors: list[dict[str, Any]]) -> bool:
    unknown = [s for s in sensors if condense_sensor_type(s.get("device_type")) is None]
    if not unknown:
        return False
    for sensor in unknown:
        logger.warning(
            "Detected an unsupported sensor %s (zone: %s, type: %s).",
            sensor.get("name"),
            sensor.get("zone"),
            sensor.get("device_type"),
        )
    return True


def detected_new_sensors_status(sensors: list[dict[str, Any]]) -> bool:
    unknown = [
        s for s in sensors
        if s.get("status") is not None and s.get("status") not in KNOWN_SENSOR_STATUSES
    ]
    if not unknown:
        return False
    for sensor in unknown:
        logger.warning(
            "Detected a new sensor status %r for %s (zone: %s, icon: %s).",
            sensor.get("status"),
            sensor.get("name"),
            sensor.get("zone"),
            sensor.get("icon"),
        )
    return True


DEFAULT_HANDLERS: dict[ResourceKind, DetectionHandler] = {
    ResourceKind.PORTAL_VERSION: detected_new_portal_version,
    ResourceKind.GATEWAY: detected_new_gateway_information,
    ResourceKind.PANEL: detected_new_panel_information,
    ResourceKind.PANEL_STATUS: detected_new_panel_status,
    ResourceKind.SENSORS_INFO: detected_new_sensors_information,
    ResourceKind.SENSORS_STATUS: detected_new_sensors_status,
}


class ChangeDetector:
    """
    Suppresses repeat notifications of the same observation.

    Args:
        reported_hashes: Set owned by the sync state; only ever grows
        listener: Optional callback invoked with (kind, payload, noteworthy)
            for every payload whose hash has not been reported yet
        handlers: Per-kind detection handlers, defaults to DEFAULT_HANDLERS
    """

    def __init__(
        self,
        reported_hashes: set[str],
        listener: DetectionListener | None = None,
        handlers: dict[ResourceKind, DetectionHandler] | None = None,
    ):
        self._reported_hashes = reported_hashes
        self._listener = listener
        self._handlers = dict(DEFAULT_HANDLERS)
        if handlers:
            self._handlers.update(handlers)

    def notify_if_new(self, kind: ResourceKind, payload: Any) -> bool:
        """
        Run the detection handler for `kind` unless this exact payload was
        already reported.

        Returns:
            True if the payload was reported as noteworthy by this call
        """
        content_hash = generate_hash(kind, payload)
        if content_hash in self._reported_hashes:
            return False

        noteworthy = bool(self._handlers[kind](payload))

        if self._listener is not None:
            self._listener(kind, payload, noteworthy)

        # Only remember noteworthy observations, others are re-evaluated
        if noteworthy:
            self._reported_hashes.add(content_hash)
        return noteworthy
