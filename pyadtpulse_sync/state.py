"""
Mutable sync state.

One `SyncState` is created per platform and passed by reference to the
session controller, the scheduler and the reconciler. Nothing else holds it.
"""
from dataclasses import dataclass, field
from typing import Any

from .constants import INITIAL_SYNC_CODE


@dataclass
class ActivityFlags:
    """Each flag guards exactly one operation"""
    is_logging_in: bool = False
    is_syncing: bool = False
    is_keeping_alive: bool = False
    is_sync_checking: bool = False


@dataclass
class EventCounters:
    failed_logins: int = 0


@dataclass
class LastRunOn:
    # Clock readings (seconds); 0 means "never ran"
    keep_alive: float = 0.0
    sync_check: float = 0.0


@dataclass
class PortalData:
    gateway_info: dict[str, Any] | None = None
    panel_info: dict[str, Any] | None = None
    panel_status: dict[str, Any] | None = None
    sensors_info: list[dict[str, Any]] = field(default_factory=list)
    sensors_status: list[dict[str, Any]] = field(default_factory=list)
    sync_code: str = INITIAL_SYNC_CODE


@dataclass
class SyncState:
    activity: ActivityFlags = field(default_factory=ActivityFlags)
    event_counters: EventCounters = field(default_factory=EventCounters)
    last_run_on: LastRunOn = field(default_factory=LastRunOn)
    data: PortalData = field(default_factory=PortalData)
    reported_hashes: set[str] = field(default_factory=set)
    cooldown_started: float | None = None
