# support_lifecycle/services/audit.py
"""
Audit gate and action log writer.

should_record_audit() only decides; record_action() only writes. Callers
combine them (or use record_if_enabled) after their operation completes.
"""

import logging
from enum import Enum
from typing import Any, Optional

from sqlalchemy.orm import Session

from support_lifecycle.models import ActionLog, ActionType, PerformedVia, utcnow
from support_lifecycle.services.settings_resolver import SupportSettings

logger = logging.getLogger(__name__)


class AuditCategory(str, Enum):
    """Categories an operator can switch audit recording on or off for."""

    AUTH = "auth"
    EMAIL_ACCESS = "email_access"
    CONFIG_CHANGE = "config_change"
    EXPORT = "export"


_CATEGORY_FIELDS = {
    AuditCategory.AUTH: "audit_log_auth",
    AuditCategory.EMAIL_ACCESS: "audit_log_email_access",
    AuditCategory.CONFIG_CHANGE: "audit_log_config_changes",
    AuditCategory.EXPORT: "audit_log_exports",
}


def should_record_audit(settings: SupportSettings, category: AuditCategory | str) -> bool:
    """
    Decide whether an action in category should be recorded.

    Unrecognized categories are recorded (fail-open); known categories follow
    their flag.
    """
    try:
        category = AuditCategory(category)
    except ValueError:
        return True
    return bool(getattr(settings, _CATEGORY_FIELDS[category]))


def record_action(
    db: Session,
    *,
    action: ActionType | str,
    description: str,
    performed_by: str,
    performed_via: PerformedVia | str,
    success: bool = True,
    error_message: Optional[str] = None,
    metadata: Optional[dict[str, Any]] = None,
    conversation_id: Optional[str] = None,
    performed_at=None,
) -> ActionLog:
    """Add an ActionLog row to the session. The caller commits."""
    entry = ActionLog(
        action=ActionType(action).value,
        action_description=description,
        performed_at=performed_at or utcnow(),
        performed_by=performed_by,
        performed_via=PerformedVia(performed_via).value,
        success=success,
        error_message=error_message,
        conversation_id=conversation_id,
        event_metadata=metadata,
    )
    db.add(entry)
    return entry


def record_if_enabled(
    db: Session,
    settings: SupportSettings,
    category: AuditCategory | str,
    **entry: Any,
) -> Optional[ActionLog]:
    """Record an action when the category is enabled; returns the row or None."""
    if not should_record_audit(settings, category):
        logger.debug(f"Audit recording disabled for category {category}", extra={"category": str(category)})
        return None
    return record_action(db, **entry)
