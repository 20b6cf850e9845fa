"""
Platform configuration.

Mirrors the Homebridge "ADTPulse" platform block. Field names are snake_case,
the original camelCase keys are accepted as aliases.
"""
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    INTERVAL_KEEP_ALIVE,
    INTERVAL_SUSPEND_SYNCING,
    INTERVAL_SYNC_CHECK,
    INTERVAL_SYNCHRONIZE,
    MAX_LOGIN_RETRIES,
    SPEEDS,
)
from .exceptions import ADTPulseConfigError

SensorType = Literal[
    "co",
    "doorWindow",
    "fire",
    "flood",
    "glass",
    "motion",
    "panic",
    "temperature",
]

# Environment variables that override credentials from the config file
ENV_OVERRIDES = {
    "ADTPULSE_USERNAME": "username",
    "ADTPULSE_PASSWORD": "password",
    "ADTPULSE_FINGERPRINT": "fingerprint",
}


class SensorConfig(BaseModel):
    """Sensor the user expects to find on the portal"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str | None = Field(default=None, min_length=1, max_length=50)
    adt_name: str = Field(alias="adtName", min_length=1, max_length=100)
    adt_type: SensorType = Field(alias="adtType")
    adt_zone: int = Field(alias="adtZone", ge=1, le=99)

    @property
    def display_name(self) -> str:
        return self.name or self.adt_name


class PlatformConfig(BaseModel):
    """Validated platform configuration"""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    platform: Literal["ADTPulse"] = "ADTPulse"
    name: str = Field(default="ADT Pulse", min_length=1, max_length=50)
    subdomain: Literal["portal", "portal-ca"] = "portal"
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1, max_length=300)
    fingerprint: str = Field(min_length=1, max_length=5120)
    mode: Literal["normal", "paused", "reset"] = "normal"
    speed: float = 1.0
    sensors: list[SensorConfig] = Field(min_length=1, max_length=148)

    @field_validator("speed")
    @classmethod
    def _check_speed(cls, value: float) -> float:
        if value not in SPEEDS:
            raise ValueError(f"speed must be one of {', '.join(str(s) for s in SPEEDS)}")
        return float(value)

    @property
    def intervals(self) -> "Intervals":
        return Intervals.for_speed(self.speed)


@dataclass(frozen=True)
class Intervals:
    """Pacing constants in seconds, already scaled by speed"""
    synchronize: float = INTERVAL_SYNCHRONIZE
    sync_check: float = INTERVAL_SYNC_CHECK
    keep_alive: float = INTERVAL_KEEP_ALIVE
    suspend_syncing: float = INTERVAL_SUSPEND_SYNCING
    max_login_retries: int = MAX_LOGIN_RETRIES

    @classmethod
    def for_speed(cls, speed: float) -> "Intervals":
        """Slower speeds stretch every interval (speed 0.5 doubles them)."""
        return cls(
            synchronize=INTERVAL_SYNCHRONIZE / speed,
            sync_check=INTERVAL_SYNC_CHECK / speed,
            keep_alive=INTERVAL_KEEP_ALIVE / speed,
            suspend_syncing=INTERVAL_SUSPEND_SYNCING / speed,
        )


def load_config(raw: dict[str, Any]) -> PlatformConfig:
    """
    Validate a raw platform block.

    Raises:
        ADTPulseConfigError: If any field is missing or out of range
    """
    try:
        return PlatformConfig.model_validate(raw)
    except ValidationError as e:
        raise ADTPulseConfigError(f"Invalid platform configuration: {e}") from e


def apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of `raw` with credentials taken from the environment when set."""
    merged = dict(raw)
    for env_name, key in ENV_OVERRIDES.items():
        value = os.getenv(env_name, "").strip()
        if value:
            merged[key] = value
    return merged


def load_config_file(path: str | Path, use_env: bool = True) -> PlatformConfig:
    """
    Load configuration from a JSON file.

    The file may hold the platform block itself or a full Homebridge
    config.json, in which case the first "ADTPulse" entry of "platforms"
    is used.

    Raises:
        ADTPulseConfigError: If the file cannot be read or is invalid
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ADTPulseConfigError(f"Unable to read config file {path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("platforms"), list):
        blocks = [
            p for p in data["platforms"]
            if isinstance(p, dict) and p.get("platform") == "ADTPulse"
        ]
        if not blocks:
            raise ADTPulseConfigError(f"No ADTPulse platform found in {path}")
        data = blocks[0]

    if not isinstance(data, dict):
        raise ADTPulseConfigError(f"Config file {path} does not contain an object")

    if use_env:
        data = apply_env_overrides(data)
    return load_config(data)
