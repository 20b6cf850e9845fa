DEFAULT_TIMEOUT = 20

# ========== BASE URLS ==========
BASE_URL = "https://{subdomain}.adtpulse.com"

# ========== PORTAL PATHS ==========
# All paths below are relative to /myhome/{portal_version}
PORTAL_PREFIX = "/myhome/{version}"
PATH_SIGN_IN = "/access/signin.jsp"
PATH_SIGN_OUT = "/access/signout.jsp"
PATH_SUMMARY = "/summary/summary.jsp"
PATH_KEEP_ALIVE = "/KeepAlive"
PATH_SYNC_CHECK = "/Ajax/SyncCheckServ"
PATH_GATEWAY = "/system/gateway.jsp"
PATH_PANEL = "/system/device.jsp?id=1"
PATH_SYSTEM = "/system/system.jsp"
PATH_ORB = "/ajax/orb.jsp"
PATH_ARM_DISARM = "/quickcontrol/serv/RunRRACommand"
ARM_DISARM_HREF = "rest/adt/ui/client/security/setArmState"

# ========== HEADERS ==========
HDR_USER_AGENT = "User-Agent"
HDR_ACCEPT = "Accept"
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# ========== INTERVALS (seconds, at speed 1) ==========
INTERVAL_SYNCHRONIZE = 1.0
INTERVAL_SYNC_CHECK = 3.0
INTERVAL_KEEP_ALIVE = 538.0  # ~9 minutes, portal session lasts 10
INTERVAL_SUSPEND_SYNCING = 1800.0  # 30 minutes

MAX_LOGIN_RETRIES = 3
SPEEDS = (1.0, 0.75, 0.5, 0.25)

# Revision code before the first change check
INITIAL_SYNC_CODE = "1-0-0"

# ========== DEVICES ==========
DEVICE_ID_PREFIX = "adt-device-"
GATEWAY_PORTAL_ID = 0
PANEL_PORTAL_ID = 1
GATEWAY_NAME = "ADT Pulse Gateway"
PANEL_NAME = "Security Panel"
SENSOR_MANUFACTURER = "ADT"

CATEGORY_BRIDGE = "BRIDGE"
CATEGORY_SECURITY_SYSTEM = "SECURITY_SYSTEM"
CATEGORY_SENSOR = "SENSOR"

# ========== SENSOR TYPES ==========
SENSOR_TYPES = (
    "co",
    "doorWindow",
    "fire",
    "flood",
    "glass",
    "motion",
    "panic",
    "temperature",
)

# Portal device type label -> condensed sensor type
SENSOR_TYPE_MAP = {
    "carbon monoxide detector": "co",
    "door sensor": "doorWindow",
    "window sensor": "doorWindow",
    "door/window sensor": "doorWindow",
    "fire (smoke/heat) detector": "fire",
    "smoke detector": "fire",
    "heat (rate-of-rise) detector": "fire",
    "water/flood sensor": "flood",
    "glass break detector": "glass",
    "motion sensor": "motion",
    "motion sensor (notable events only)": "motion",
    "audible panic button/pendant": "panic",
    "silent panic button/pendant": "panic",
    "temperature sensor": "temperature",
}

# ========== PANEL STATES ==========
# Orb summary text -> arm state
PANEL_STATE_MAP = {
    "armed away": "away",
    "armed stay": "stay",
    "armed night": "night",
    "disarmed": "off",
}
PANEL_ARM_STATES = ("away", "stay", "night", "off")
PANEL_STATE_UNKNOWN = "unknown"

# ========== KNOWN HARDWARE / FIRMWARE ==========
# Anything outside these tables is surfaced by the detectors
KNOWN_PORTAL_VERSIONS = (
    "24.0.0-117",
    "25.0.0-21",
    "26.0.0-32",
    "27.0.0-140",
)
KNOWN_GATEWAYS = (
    ("ADT Pulse Gateway", "PGZNG1"),
    ("ADT Pulse Gateway", "PGZNG2"),
    ("ADT", "TS Gateway"),
)
KNOWN_PANELS = (
    ("ADT", "Security Panel - Safewatch Pro 3000/3000CN"),
    ("Honeywell", "Security Panel - Lynx Touch 5100"),
    ("Honeywell", "Security Panel - Vista 20P"),
)
KNOWN_PANEL_STATUSES = (
    "All Quiet",
    "1 Sensor Open",
    "Sensor Problem",
    "Sensors Open",
    "Uncleared Alarm",
    "Motion",
)
KNOWN_SENSOR_STATUSES = (
    "Closed",
    "Open",
    "No Motion",
    "Motion",
    "Okay",
    "Tripped",
    "Online",
    "Offline",
    "Unknown",
)

# ========== HTTP STATUS ==========
HTTP_200_OK = 200
