# support_lifecycle/services/backup.py
"""
Backup scheduling.

Decides whether a backup is due from the configured cadence and the last run
time, and records the run. Scheduled ticks run unauthenticated; forced
(manual) runs and ticks that carry a caller session require an admin.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

from support_lifecycle.constants import SYSTEM_ACTOR, BackupIntervals
from support_lifecycle.models import ActionType, AppConfiguration, PerformedVia, utcnow
from support_lifecycle.services.access_guard import require_admin
from support_lifecycle.services.audit import AuditCategory, record_if_enabled
from support_lifecycle.services.settings_resolver import load_support_settings
from support_lifecycle.services.single_flight import single_flight

logger = logging.getLogger(__name__)

OPERATION = "run_backup"


@dataclass
class BackupRunResult:
    """Outcome of a backup tick: either skipped or ran at ran_at."""

    skipped: bool = False
    ran_at: Optional[datetime] = None
    forced: bool = False

    def as_dict(self) -> dict:
        if self.skipped:
            return {"ok": True, "skipped": True}
        return {"ok": True, "ranAt": self.ran_at.isoformat(), "forced": self.forced}


def interval_for(schedule: str) -> timedelta:
    """Cadence for a schedule name; unknown names fall back to daily."""
    hours = BackupIntervals.HOURS.get(schedule, BackupIntervals.HOURS[BackupIntervals.DEFAULT_SCHEDULE])
    return timedelta(hours=hours)


def is_backup_due(
    last_backup_at: Optional[datetime],
    now: datetime,
    schedule: str,
    force: bool = False,
) -> bool:
    """Due when forced, never run, or at least one interval has elapsed."""
    if force or last_backup_at is None:
        return True
    return now - last_backup_at >= interval_for(schedule)


def run_backup(
    db: Session,
    config: AppConfiguration,
    force: bool = False,
    session: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
    performed_via: Optional[PerformedVia] = None,
) -> BackupRunResult:
    """
    Run a backup tick against the configuration singleton.

    On due: records an audit entry (export category, if enabled) and sets
    last_backup_at = now. On not due: no mutation.
    """
    # Scheduled ticks carry no session; any caller identity must be an admin
    attended = force or bool(session)
    actor = require_admin(db, session) if attended else SYSTEM_ACTOR
    if performed_via is None:
        performed_via = PerformedVia.WEB_UI if attended else PerformedVia.SCHEDULED_JOB

    now = now or utcnow()
    settings = load_support_settings(config)

    if not is_backup_due(config.last_backup_at, now, settings.backup_schedule, force):
        logger.debug(f"Backup not due (last run {config.last_backup_at}, schedule {settings.backup_schedule})")
        return BackupRunResult(skipped=True)

    with single_flight(OPERATION):
        record_if_enabled(
            db,
            settings,
            AuditCategory.EXPORT,
            action=ActionType.BULK_ACTION,
            description=(
                f"Backup run completed (schedule: {settings.backup_schedule}, "
                f"retention: {settings.backup_retention_days} days)"
            ),
            performed_by=actor,
            performed_via=performed_via,
            performed_at=now,
            metadata={
                "kind": "support_backup",
                "backup_schedule": settings.backup_schedule,
                "backup_retention_days": settings.backup_retention_days,
                "forced": force,
            },
        )

        config.last_backup_at = now
        db.add(config)
        db.commit()

    logger.info(
        f"Backup completed (schedule: {settings.backup_schedule}, forced: {force})",
        extra={"event": "backup_complete", "backup_schedule": settings.backup_schedule, "actor": actor},
    )
    return BackupRunResult(ran_at=now, forced=force)
