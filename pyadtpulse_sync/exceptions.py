class ADTPulseError(Exception):
    """Base exception"""


class ADTPulseNotInitialized(ADTPulseError):
    """Portal version or session not established yet"""


class ADTPulseAuthError(ADTPulseError):
    """Invalid credentials or session no longer valid"""


class ADTPulseNetworkError(ADTPulseError):
    """Network error"""


class ADTPulseUnexpectedResponseError(ADTPulseError):
    """Portal response could not be parsed"""


class ADTPulseInvalidStateTransition(ADTPulseError):
    """Requested panel state is not reachable from the current state"""


class ADTPulseConfigError(ADTPulseError):
    """Invalid platform configuration"""


class ADTPulseConfigMismatch(ADTPulseError):
    """Configured sensor has no matching portal entry"""


class ADTPulseDeviceExists(ADTPulseError):
    """Device with the same stable id is already registered"""
