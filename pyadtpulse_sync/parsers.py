"""
Portal response parsing.

Turns the portal's HTML pages and text replies into plain dict payloads.
Payloads are what the change detector hashes, so they only carry JSON-safe
values.
"""
import re
from typing import Any

from bs4 import BeautifulSoup

from .constants import (
    PANEL_STATE_MAP,
    PANEL_STATE_UNKNOWN,
    SENSOR_TYPE_MAP,
    SENSOR_TYPES,
)
from .exceptions import ADTPulseUnexpectedResponseError

SYNC_CODE_PATTERN = re.compile(r"^\d+-\d+-\d+$")
DEVICE_HREF_PATTERN = re.compile(r"device\.jsp\?id=(\d+)")
ZONE_PATTERN = re.compile(r"(\d+)")

GATEWAY_FIELDS = {
    "manufacturer": "manufacturer",
    "model": "model",
    "serial number": "serial_number",
    "firmware version": "firmware_version",
    "hardware version": "hardware_version",
    "status": "status",
    "primary connection type": "primary_connection_type",
    "broadband lan ip address": "broadband_lan_ip",
    "device lan ip address": "device_lan_ip",
    "router lan ip address": "router_lan_ip",
    "router wan ip address": "router_wan_ip",
}

PANEL_FIELDS = {
    "manufacturer/provider": "manufacturer_provider",
    "type/model": "type_model",
    "emergency keys": "emergency_keys",
    "status": "status",
}


def condense_sensor_type(device_type: str | None) -> str | None:
    """
    Normalize a portal device type to one of the configurable sensor types.

    Accepts both the portal's display labels ("Door/Window Sensor") and
    comma-tagged values ("sensor,doorWindow").

    Returns:
        The condensed type, or None if the device is not a supported sensor
    """
    if not device_type:
        return None

    value = device_type.strip()
    if "," in value:
        value = value.split(",")[-1].strip()

    if value in SENSOR_TYPES:
        return value
    return SENSOR_TYPE_MAP.get(value.lower())


def parse_sync_code(text: str) -> str:
    """Validate a SyncCheckServ reply such as "2-1-0"."""
    code = (text or "").strip()
    if not SYNC_CODE_PATTERN.match(code):
        raise ADTPulseUnexpectedResponseError(f"Unexpected sync check response: {code[:50]!r}")
    return code


# ---------- helpers ----------

def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _parse_zone(text: str) -> int | None:
    match = ZONE_PATTERN.search(text or "")
    return int(match.group(1)) if match else None


def _label_table(soup: BeautifulSoup) -> dict[str, str | None]:
    """Collect "Label:" / value cell pairs from every table row."""
    values: dict[str, str | None] = {}
    for row in soup.find_all("tr"):
        cells = row.find_all("td", recursive=False)
        if len(cells) < 2:
            continue
        label = cells[0].get_text(" ", strip=True)
        if not label.endswith(":"):
            continue
        key = label[:-1].strip().lower()
        values.setdefault(key, cells[1].get_text(" ", strip=True) or None)
    return values


def _pick_fields(table: dict[str, str | None], fields: dict[str, str]) -> dict[str, Any]:
    return {key: table.get(label) for label, key in fields.items()}


# ---------- pages ----------

def parse_gateway_info(html: str) -> dict[str, Any]:
    """Parse system/gateway.jsp"""
    info = _pick_fields(_label_table(_soup(html)), GATEWAY_FIELDS)
    if info["manufacturer"] is None and info["model"] is None:
        raise ADTPulseUnexpectedResponseError("Gateway page did not contain device details")
    return info


def parse_panel_info(html: str) -> dict[str, Any]:
    """Parse system/device.jsp?id=1"""
    info = _pick_fields(_label_table(_soup(html)), PANEL_FIELDS)
    if info["manufacturer_provider"] is None and info["type_model"] is None:
        raise ADTPulseUnexpectedResponseError("Panel page did not contain device details")
    return info


def parse_panel_status(html: str) -> dict[str, Any]:
    """
    Parse the orb summary ("Disarmed. All Quiet.") from summary.jsp.

    Returns:
        {"state": away|stay|night|off|unknown, "status": str | None}
    """
    orb = _soup(html).find(id="divOrbTextSummary")
    if orb is None:
        raise ADTPulseUnexpectedResponseError("Summary page did not contain the panel orb")

    parts = [p.strip() for p in orb.get_text(" ", strip=True).split(".") if p.strip()]
    if not parts:
        raise ADTPulseUnexpectedResponseError("Panel orb is empty")

    return {
        "state": PANEL_STATE_MAP.get(parts[0].lower(), PANEL_STATE_UNKNOWN),
        "status": ". ".join(parts[1:]) or None,
    }


def parse_sensors_info(html: str) -> list[dict[str, Any]]:
    """
    Parse the device list on system/system.jsp.

    Rows link to device.jsp?id=N and hold icon, name, zone, device type
    and (optionally) status cells. Rows without a zone (gateway, panel)
    are skipped.
    """
    sensors = []
    for row in _soup(html).find_all("tr"):
        match = DEVICE_HREF_PATTERN.search(row.get("onclick") or "")
        if not match:
            continue
        cells = [td.get_text(" ", strip=True) for td in row.find_all("td", recursive=False)]
        if len(cells) < 4:
            continue
        zone = _parse_zone(cells[2])
        if zone is None:
            continue
        sensors.append({
            "device_id": int(match.group(1)),
            "name": cells[1],
            "zone": zone,
            "device_type": cells[3],
            "status": cells[4] if len(cells) > 4 and cells[4] else None,
        })
    return sensors


def parse_sensors_status(html: str) -> list[dict[str, Any]]:
    """Parse the sensor rows of ajax/orb.jsp"""
    sensors = []
    for row in _soup(html).find_all("tr", class_="p_listRow"):
        tds = row.find_all("td", recursive=False)
        if len(tds) < 4:
            continue
        zone = _parse_zone(tds[2].get_text(" ", strip=True))
        if zone is None:
            continue

        icon = None
        img = tds[0].find("img")
        if img is not None and img.get("src"):
            icon = img["src"].rsplit("/", 1)[-1]

        sensors.append({
            "name": tds[1].get_text(" ", strip=True),
            "zone": zone,
            "status": tds[3].get_text(" ", strip=True) or None,
            "icon": icon,
        })
    return sensors
