# support_lifecycle/services/jobs.py
"""
Scheduler entry points.

The cron triggers (daily retention at 02:15, hourly backup tick) call these.
They never raise: failures are logged and returned as {"ok": False, ...}.
The next scheduled tick is the retry.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from support_lifecycle.errors import RunAbort, SupportLifecycleError
from support_lifecycle.services.backup import run_backup
from support_lifecycle.services.retention.enforcer import enforce_retention_policy
from support_lifecycle.services.settings_resolver import get_app_configuration, load_support_settings

logger = logging.getLogger(__name__)

RETENTION_CRON = "15 2 * * *"
BACKUP_CRON = "0 * * * *"


def run_scheduled_retention(db: Session, now: Optional[datetime] = None) -> dict:
    """Scheduled retention enforcement."""
    try:
        config = get_app_configuration(db)
        if config is None:
            logger.warning("No app configuration found for retention policy")
            return {"ok": False, "error": "App configuration not found"}

        result = enforce_retention_policy(db, load_support_settings(config), now=now)
    except RunAbort as e:
        logger.error(f"Scheduled retention aborted: {e.cause}", extra={"event": "retention_aborted", **e.partial})
        return {"ok": False, "error": str(e), "partial": e.partial}
    except SupportLifecycleError as e:
        logger.error(f"Scheduled retention refused: {e}")
        return {"ok": False, "error": str(e)}
    except Exception as e:
        db.rollback()
        logger.error(f"Scheduled retention failed: {e}", exc_info=True)
        return {"ok": False, "error": str(e)}

    return {"ok": True, **result.as_dict()}


def run_scheduled_backup(db: Session, now: Optional[datetime] = None) -> dict:
    """Scheduled (unforced) backup tick."""
    config = get_app_configuration(db)
    if config is None:
        logger.warning("No app configuration found for backup")
        return {"ok": False, "error": "App configuration not found"}

    try:
        result = run_backup(db, config, force=False, now=now)
    except Exception as e:
        db.rollback()
        logger.error(f"Scheduled backup failed: {e}", exc_info=True)
        return {"ok": False, "error": str(e)}

    return result.as_dict()
