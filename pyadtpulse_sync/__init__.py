"""
ADT Pulse sync engine
"""
__version__ = "0.1.0"

from .client import ADTPulseClient
from .config import Intervals, PlatformConfig, SensorConfig, load_config, load_config_file
from .controller import AuthOutcome, SessionController
from .detect import ChangeDetector
from .models import DeviceRecord, PortalClient, PortalResponse, ResourceKind, StableId, make_stable_id
from .platform import ADTPulsePlatform
from .reconciler import DeviceReconciler
from .registry import DeviceRegistry, InMemoryDeviceRegistry
from .scheduler import SyncScheduler
from .state import SyncState
from .exceptions import (
    ADTPulseError,
    ADTPulseNotInitialized,
    ADTPulseAuthError,
    ADTPulseNetworkError,
    ADTPulseUnexpectedResponseError,
    ADTPulseInvalidStateTransition,
    ADTPulseConfigError,
    ADTPulseConfigMismatch,
    ADTPulseDeviceExists,
)

__all__ = [
    "ADTPulseClient",
    "ADTPulsePlatform",
    "AuthOutcome",
    "ChangeDetector",
    "DeviceReconciler",
    "DeviceRecord",
    "DeviceRegistry",
    "InMemoryDeviceRegistry",
    "Intervals",
    "PlatformConfig",
    "PortalClient",
    "PortalResponse",
    "ResourceKind",
    "SensorConfig",
    "SessionController",
    "StableId",
    "SyncScheduler",
    "SyncState",
    "load_config",
    "load_config_file",
    "make_stable_id",
    # Exceptions
    "ADTPulseError",
    "ADTPulseNotInitialized",
    "ADTPulseAuthError",
    "ADTPulseNetworkError",
    "ADTPulseUnexpectedResponseError",
    "ADTPulseInvalidStateTransition",
    "ADTPulseConfigError",
    "ADTPulseConfigMismatch",
    "ADTPulseDeviceExists",
]
