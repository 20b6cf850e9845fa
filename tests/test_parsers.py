import pytest

from pyadtpulse_sync.exceptions import ADTPulseUnexpectedResponseError
from pyadtpulse_sync.parsers import (
    condense_sensor_type,
    parse_gateway_info,
    parse_panel_info,
    parse_panel_status,
    parse_sensors_info,
    parse_sensors_status,
    parse_sync_code,
)

GATEWAY_HTML = """
<html><body><table>
  <tr><td>Manufacturer:</td><td>ADT Pulse Gateway</td></tr>
  <tr><td>Model:</td><td>PGZNG1</td></tr>
  <tr><td>Serial Number:</td><td>5U020CN3007E3</td></tr>
  <tr><td>Firmware Version:</td><td>24.0.0-9</td></tr>
  <tr><td>Status:</td><td>Online</td></tr>
  <tr><td colspan="2">Network</td></tr>
</table></body></html>
"""

PANEL_HTML = """
<html><body><table>
  <tr><td>Manufacturer/Provider:</td><td>ADT</td></tr>
  <tr><td>Type/Model:</td><td>Security Panel - Safewatch Pro 3000/3000CN</td></tr>
  <tr><td>Emergency Keys:</td><td>Button: Fire Alarm (Zone 95)</td></tr>
  <tr><td>Status:</td><td>Online</td></tr>
</table></body></html>
"""

SUMMARY_HTML = """
<html><body>
  <div id="divOrbTextSummary"><span>Armed Away.</span> <span>1 Sensor Open.</span></div>
</body></html>
"""

SYSTEM_HTML = """
<html><body><table>
  <tr onclick="goToUrl('device.jsp?id=0');">
    <td><img src="icon_gateway.png"></td><td>Gateway</td><td></td><td>Gateway</td></tr>
  <tr onclick="goToUrl('device.jsp?id=12');">
    <td><img src="icon_door.png"></td><td>Front Door</td><td>3</td><td>Door/Window Sensor</td><td>Online</td></tr>
  <tr onclick="goToUrl('device.jsp?id=13');">
    <td><img src="icon_motion.png"></td><td>Hallway Motion</td><td>Zone 5</td><td>Motion Sensor</td></tr>
  <tr><td>Footer</td><td>x</td><td>9</td><td>y</td></tr>
</table></body></html>
"""

ORB_HTML = """
<table>
  <tr class="p_listRow">
    <td><img src="/myhome/27.0.0-140/images/devStatOpen.png"></td>
    <td>Front Door</td><td>Zone 3</td><td>Open</td>
  </tr>
  <tr class="p_listRow">
    <td><img src="/myhome/27.0.0-140/images/devStatOK.png"></td>
    <td>Hallway Motion</td><td>Zone 5</td><td>No Motion</td>
  </tr>
  <tr class="p_listRow"><td></td><td>Header</td><td>Zone</td><td>Status</td></tr>
</table>
"""


@pytest.mark.parametrize("value, expected", [
    ("sensor,doorWindow", "doorWindow"),
    ("Door/Window Sensor", "doorWindow"),
    ("Motion Sensor", "motion"),
    ("Fire (Smoke/Heat) Detector", "fire"),
    ("glass", "glass"),
    ("Wireless Siren", None),
    ("", None),
    (None, None),
])
def test_condense_sensor_type(value, expected):
    assert condense_sensor_type(value) == expected


def test_parse_sync_code():
    assert parse_sync_code(" 2-1-0\n") == "2-1-0"
    with pytest.raises(ADTPulseUnexpectedResponseError):
        parse_sync_code("<html>signin</html>")


def test_parse_gateway_info():
    info = parse_gateway_info(GATEWAY_HTML)

    assert info["manufacturer"] == "ADT Pulse Gateway"
    assert info["model"] == "PGZNG1"
    assert info["serial_number"] == "5U020CN3007E3"
    assert info["firmware_version"] == "24.0.0-9"
    assert info["hardware_version"] is None


def test_parse_gateway_info_rejects_other_pages():
    with pytest.raises(ADTPulseUnexpectedResponseError):
        parse_gateway_info("<html><body>Sign in</body></html>")


def test_parse_panel_info():
    info = parse_panel_info(PANEL_HTML)

    assert info == {
        "manufacturer_provider": "ADT",
        "type_model": "Security Panel - Safewatch Pro 3000/3000CN",
        "emergency_keys": "Button: Fire Alarm (Zone 95)",
        "status": "Online",
    }


def test_parse_panel_status():
    assert parse_panel_status(SUMMARY_HTML) == {"state": "away", "status": "1 Sensor Open"}

    disarmed = '<div id="divOrbTextSummary">Disarmed. All Quiet.</div>'
    assert parse_panel_status(disarmed) == {"state": "off", "status": "All Quiet"}

    odd = '<div id="divOrbTextSummary">Status Unavailable.</div>'
    assert parse_panel_status(odd) == {"state": "unknown", "status": None}


def test_parse_panel_status_requires_orb():
    with pytest.raises(ADTPulseUnexpectedResponseError):
        parse_panel_status("<html></html>")


def test_parse_sensors_info():
    sensors = parse_sensors_info(SYSTEM_HTML)

    assert sensors == [
        {"device_id": 12, "name": "Front Door", "zone": 3, "device_type": "Door/Window Sensor", "status": "Online"},
        {"device_id": 13, "name": "Hallway Motion", "zone": 5, "device_type": "Motion Sensor", "status": None},
    ]


def test_parse_sensors_status():
    sensors = parse_sensors_status(ORB_HTML)

    assert sensors == [
        {"name": "Front Door", "zone": 3, "status": "Open", "icon": "devStatOpen.png"},
        {"name": "Hallway Motion", "zone": 5, "status": "No Motion", "icon": "devStatOK.png"},
    ]
