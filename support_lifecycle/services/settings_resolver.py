# support_lifecycle/services/settings_resolver.py
"""
Support settings resolution.

Merges the raw settings mapping stored on the AppConfiguration singleton with
documented defaults into a typed SupportSettings value. Resolution happens on
every invocation; the resolved value is never written back.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from typing import Any, Optional

from sqlalchemy.orm import Session

from support_lifecycle.models import AppConfiguration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SupportSettings:
    """Resolved policy knobs. Field defaults are the documented defaults."""

    # Retention
    retention_days: float = 90
    audit_log_retention_days: float = 365
    auto_archive_enabled: bool = True
    delete_archived_data: bool = False

    # Backup
    backup_schedule: str = "daily"
    backup_retention_days: float = 30

    # Privacy
    redact_addresses: bool = False

    # Password policy
    pw_require_min_length: bool = True
    pw_require_uppercase: bool = True
    pw_require_numbers: bool = True
    pw_require_special: bool = True
    pw_require_expiry: bool = False

    # Audit categories
    audit_log_auth: bool = True
    audit_log_email_access: bool = True
    audit_log_config_changes: bool = True
    audit_log_exports: bool = True

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


DEFAULT_SETTINGS = SupportSettings()
SETTING_KEYS = tuple(f.name for f in fields(SupportSettings))


def _as_number(value: Any, fallback: float) -> float:
    if isinstance(value, bool):
        return int(value)
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return fallback
    if not math.isfinite(parsed):
        return fallback
    return int(parsed) if parsed.is_integer() else parsed


def _coerce(value: Any, default: Any) -> Any:
    # bool before number: bool is an int subclass
    if isinstance(default, bool):
        return bool(value)
    if isinstance(default, (int, float)):
        return _as_number(value, default)
    return str(value)


def resolve_support_settings(raw_config: Optional[Mapping[str, Any]]) -> SupportSettings:
    """
    Resolve raw configuration values into SupportSettings.

    Missing keys and None values take the documented default. Values are
    coerced by the default's type: booleans by truthiness, numbers by numeric
    parse (default on failure or non-finite result), strings by str().
    Never raises.
    """
    if not isinstance(raw_config, Mapping):
        return DEFAULT_SETTINGS

    resolved = {}
    for key in SETTING_KEYS:
        default = getattr(DEFAULT_SETTINGS, key)
        value = raw_config.get(key)
        resolved[key] = default if value is None else _coerce(value, default)

    return SupportSettings(**resolved)


def get_app_configuration(db: Session) -> Optional[AppConfiguration]:
    """Return the configuration singleton, or None if it was never created."""
    return db.query(AppConfiguration).order_by(AppConfiguration.created_at).first()


def ensure_app_configuration(db: Session) -> AppConfiguration:
    """
    Ensure the configuration singleton exists.

    Creates it with an empty settings mapping (all defaults) when missing.
    """
    config = get_app_configuration(db)
    if config:
        return config

    config = AppConfiguration(settings={})
    db.add(config)
    db.commit()
    db.refresh(config)

    logger.info("Created default app configuration")
    return config


def load_support_settings(config: Optional[AppConfiguration]) -> SupportSettings:
    """Resolve settings from a configuration row; a missing row yields defaults."""
    return resolve_support_settings(config.settings if config is not None else None)


def update_support_settings(db: Session, config: AppConfiguration, changes: Mapping[str, Any]) -> SupportSettings:
    """
    Merge known keys from changes into the stored raw settings.

    Unknown keys raise ValueError. Returns the newly resolved settings.
    """
    unknown = sorted(set(changes) - set(SETTING_KEYS))
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(unknown)}")

    merged = dict(config.settings or {})
    merged.update(changes)
    # Reassign so the JSON column is flagged dirty
    config.settings = merged
    db.add(config)
    db.commit()
    db.refresh(config)

    logger.info(f"Updated support settings: {', '.join(sorted(changes))}")
    return resolve_support_settings(merged)
