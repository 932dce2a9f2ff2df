#!/usr/bin/env python3
"""
config.py
-------------------
Runtime configuration for Showbook.

Configuration is layered:
    1. Defaults from showbook.core.paths and the dataclasses below
    2. An optional YAML file (showbook.yaml at the project root by default)
    3. SHOWBOOK_* environment variables, which take precedence over the file

Example showbook.yaml:
    database:
      path: data/showbook.db
    logging:
      dir: logs
    limits:
      bulk_import: 50
      discovery_import: 100
    timezones:
      default: America/Phoenix
      states:
        AZ: America/Phoenix
        NV: America/Los_Angeles
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

# --- Third party imports ---
import yaml

# --- Local imports ---
from .exceptions import ValidationError
from .paths import ALEMBIC_DIR, CONFIG_PATH, DB_PATH, LOG_DIR, ROOT

ENV_PREFIX = "SHOWBOOK_"

DEFAULT_STATE_TIMEZONES: Dict[str, str] = {
    "AZ": "America/Phoenix",
    "CA": "America/Los_Angeles",
    "NV": "America/Los_Angeles",
    "OR": "America/Los_Angeles",
    "WA": "America/Los_Angeles",
    "CO": "America/Denver",
    "NM": "America/Denver",
    "UT": "America/Denver",
    "TX": "America/Chicago",
    "IL": "America/Chicago",
    "NY": "America/New_York",
}


@dataclass
class BatchLimits:
    """Hard caps on batch sizes, enforced before any item is processed."""

    bulk_export: int = 50
    bulk_import: int = 50
    discovery_import: int = 100
    discovery_check: int = 200


@dataclass
class ShowbookConfig:
    """
    Resolved configuration.

    Attributes:
        db_path: SQLite database file
        alembic_dir: Alembic migration scripts directory
        log_dir: Directory for rotating log files
        limits: Batch size caps
        default_timezone: Timezone for states without an explicit mapping
        state_timezones: State code to IANA timezone name
    """

    db_path: Path = DB_PATH
    alembic_dir: Path = ALEMBIC_DIR
    log_dir: Path = LOG_DIR
    limits: BatchLimits = field(default_factory=BatchLimits)
    default_timezone: str = "America/Phoenix"
    state_timezones: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_STATE_TIMEZONES)
    )

    def timezone_for_state(self, state: Optional[str]) -> str:
        """Return the IANA timezone name for a state code."""
        if not state:
            return self.default_timezone
        return self.state_timezones.get(state.strip().upper(), self.default_timezone)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "ShowbookConfig":
        """
        Load config from YAML, then overlay SHOWBOOK_* environment variables.

        Args:
            path: Config file; defaults to SHOWBOOK_CONFIG or showbook.yaml

        Returns:
            Resolved ShowbookConfig

        Raises:
            ValidationError: If the file is malformed or has unknown keys
        """
        config_path = Path(path or os.environ.get(f"{ENV_PREFIX}CONFIG", CONFIG_PATH))
        raw: Dict[str, Any] = {}
        if config_path.exists():
            try:
                raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as e:
                raise ValidationError(f"Invalid config file {config_path}: {e}") from e
            if not isinstance(raw, dict):
                raise ValidationError(f"Config file {config_path} must be a mapping")

        config = cls()
        config._apply_file(raw)
        config._apply_env()
        return config

    def _apply_file(self, raw: Dict[str, Any]) -> None:
        unknown = set(raw) - {"database", "logging", "limits", "timezones"}
        if unknown:
            raise ValidationError(f"Unknown config sections: {sorted(unknown)}")

        database = raw.get("database") or {}
        if "path" in database:
            self.db_path = _resolve_path(database["path"])
        if "alembic_dir" in database:
            self.alembic_dir = _resolve_path(database["alembic_dir"])

        logging_section = raw.get("logging") or {}
        if "dir" in logging_section:
            self.log_dir = _resolve_path(logging_section["dir"])

        limits = raw.get("limits") or {}
        known_limits = {f.name for f in fields(BatchLimits)}
        for key, value in limits.items():
            if key not in known_limits:
                raise ValidationError(f"Unknown batch limit: {key}")
            setattr(self.limits, key, _positive_int(key, value))

        timezones = raw.get("timezones") or {}
        if "default" in timezones:
            self.default_timezone = str(timezones["default"])
        for state, tz_name in (timezones.get("states") or {}).items():
            self.state_timezones[str(state).upper()] = str(tz_name)

    def _apply_env(self) -> None:
        if value := os.environ.get(f"{ENV_PREFIX}DB_PATH"):
            self.db_path = _resolve_path(value)
        if value := os.environ.get(f"{ENV_PREFIX}LOG_DIR"):
            self.log_dir = _resolve_path(value)
        if value := os.environ.get(f"{ENV_PREFIX}DEFAULT_TIMEZONE"):
            self.default_timezone = value
        for limit in fields(BatchLimits):
            if value := os.environ.get(f"{ENV_PREFIX}LIMIT_{limit.name.upper()}"):
                setattr(self.limits, limit.name, _positive_int(limit.name, value))


def _resolve_path(value: Union[str, Path]) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else ROOT / path


def _positive_int(name: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Limit '{name}' must be an integer, got {value!r}") from e
    if number < 1:
        raise ValidationError(f"Limit '{name}' must be positive, got {number}")
    return number
