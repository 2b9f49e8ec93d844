# support_lifecycle/services/exports.py
"""
Admin exports: the support audit trail (CSV or JSON) and a backup snapshot
summarising the current retention/backup policy and row counts.

Both are admin-only and are themselves audited under the export category.
"""

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from support_lifecycle.constants import REDACTED_EMAIL, ExportLimits
from support_lifecycle.errors import PolicyViolation
from support_lifecycle.models import (
    ActionLog,
    ActionType,
    AppConfiguration,
    Conversation,
    EmailMessage,
    PerformedVia,
    User,
    utcnow,
)
from support_lifecycle.services.access_guard import require_admin
from support_lifecycle.services.audit import AuditCategory, record_if_enabled, should_record_audit
from support_lifecycle.services.settings_resolver import load_support_settings

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)

AUDIT_EXPORT_COLUMNS = (
    "id",
    "action",
    "actionDescription",
    "performedAt",
    "performedBy",
    "performedVia",
    "success",
    "conversationId",
    "conversationSubject",
    "errorMessage",
    "metadata",
)

EXPORT_FORMATS = ("csv", "json")


@dataclass
class ExportFile:
    """A generated export ready to hand back as a download."""

    filename: str
    mime_type: str
    content: str
    count: int = 0


def redact_emails(text: str) -> str:
    return EMAIL_PATTERN.sub(REDACTED_EMAIL, text)


def csv_escape(value: Any) -> str:
    """Quote a field containing a comma, a double quote or a newline; double embedded quotes."""
    text = "" if value is None else str(value)
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def _iso(value) -> str:
    return value.isoformat() + "Z" if value else ""


def _export_timestamp() -> str:
    return re.sub(r"[:.]", "-", utcnow().isoformat())


def clamp_export_limit(limit: Optional[int]) -> int:
    if limit is None:
        return ExportLimits.DEFAULT_ROWS
    return min(max(int(limit), ExportLimits.MIN_ROWS), ExportLimits.MAX_ROWS)


def _audit_row(log: ActionLog, subject: Optional[str], redact: bool) -> dict[str, str]:
    description = log.action_description or ""
    error = log.error_message or ""
    subject = subject or ""
    if redact:
        description = redact_emails(description)
        error = redact_emails(error)
        subject = redact_emails(subject)

    return {
        "id": log.id,
        "action": log.action or "",
        "actionDescription": description,
        "performedAt": _iso(log.performed_at),
        "performedBy": log.performed_by or "",
        "performedVia": log.performed_via or "",
        "success": "" if log.success is None else str(log.success).lower(),
        "conversationId": log.conversation_id or "",
        "conversationSubject": subject,
        "errorMessage": error,
        "metadata": json.dumps(log.event_metadata or {}),
    }


def render_audit_csv(rows: list[dict[str, str]]) -> str:
    lines = [",".join(AUDIT_EXPORT_COLUMNS)]
    lines.extend(",".join(csv_escape(row[column]) for column in AUDIT_EXPORT_COLUMNS) for row in rows)
    return "\n".join(lines)


def render_audit_json(rows: list[dict[str, str]]) -> str:
    return json.dumps({"exportedAt": _iso(utcnow()), "count": len(rows), "rows": rows}, indent=2)


def export_support_audit_logs(
    db: Session,
    session: Optional[Mapping[str, Any]],
    config: Optional[AppConfiguration],
    limit: Optional[int] = ExportLimits.DEFAULT_ROWS,
    export_format: str = "csv",
    performed_via: PerformedVia = PerformedVia.WEB_UI,
) -> ExportFile:
    """
    Export the newest action log rows.

    Raises:
        Unauthenticated / Forbidden: caller is not an admin
        PolicyViolation: export auditing is disabled by policy
        ValueError: unsupported export_format
    """
    actor = require_admin(db, session)

    export_format = (export_format or "csv").lower()
    if export_format not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{export_format}' (expected csv or json)")

    limit = clamp_export_limit(limit)
    settings = load_support_settings(config)
    if not should_record_audit(settings, AuditCategory.EXPORT):
        raise PolicyViolation("Audit log export is disabled by policy")

    results = (
        db.query(ActionLog, Conversation.subject)
        .outerjoin(Conversation, ActionLog.conversation_id == Conversation.id)
        .order_by(ActionLog.performed_at.desc())
        .limit(limit)
        .all()
    )
    rows = [_audit_row(log, subject, settings.redact_addresses) for log, subject in results]

    filename_base = f"support-audit-{_export_timestamp()}"
    if export_format == "json":
        export = ExportFile(f"{filename_base}.json", "application/json", render_audit_json(rows), len(rows))
    else:
        export = ExportFile(f"{filename_base}.csv", "text/csv", render_audit_csv(rows), len(rows))

    record_if_enabled(
        db,
        settings,
        AuditCategory.EXPORT,
        action=ActionType.DATA_EXPORT,
        description=f"Exported support audit logs ({len(rows)} rows)",
        performed_by=actor,
        performed_via=performed_via,
        metadata={
            "kind": "support_audit_export",
            "limit": limit,
            "format": export_format,
            "redacted": settings.redact_addresses,
        },
    )
    db.commit()

    logger.info(f"Exported {len(rows)} audit log rows as {export_format}", extra={"actor": actor})
    return export


def export_support_backup_snapshot(
    db: Session,
    session: Optional[Mapping[str, Any]],
    config: Optional[AppConfiguration],
    performed_via: PerformedVia = PerformedVia.WEB_UI,
) -> ExportFile:
    """Export the current backup/retention policy and row counts as JSON."""
    actor = require_admin(db, session)
    if config is None:
        raise PolicyViolation("App configuration not found")

    settings = load_support_settings(config)

    counts = {
        "conversations": db.query(func.count(Conversation.id)).scalar() or 0,
        "emailMessages": db.query(func.count(EmailMessage.id)).scalar() or 0,
        "actionLogs": db.query(func.count(ActionLog.id)).scalar() or 0,
        "users": db.query(func.count(User.id)).scalar() or 0,
    }

    snapshot = {
        "exportedAt": _iso(utcnow()),
        "policy": {
            "backupSchedule": settings.backup_schedule,
            "backupRetentionDays": settings.backup_retention_days,
            "lastBackupAt": _iso(config.last_backup_at) or None,
            "retentionDays": settings.retention_days,
            "auditLogRetentionDays": settings.audit_log_retention_days,
        },
        "counts": counts,
    }

    record_if_enabled(
        db,
        settings,
        AuditCategory.EXPORT,
        action=ActionType.DATA_EXPORT,
        description="Exported support backup snapshot",
        performed_by=actor,
        performed_via=performed_via,
        metadata={"kind": "support_backup_snapshot", "counts": counts},
    )
    db.commit()

    return ExportFile(
        filename=f"support-backup-snapshot-{_export_timestamp()}.json",
        mime_type="application/json",
        content=json.dumps(snapshot, indent=2),
        count=sum(counts.values()),
    )
