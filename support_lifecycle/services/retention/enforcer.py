# support_lifecycle/services/retention/enforcer.py
"""
Scheduled retention enforcement.

Three passes, each a re-query-from-scratch page loop that stops on a short
page:
1. Archive conversations inactive past the retention window (optional)
2. Delete conversations archived before the retention window (optional)
3. Delete action log rows older than the audit log window (always)

Unlike the hard reset purge, this run is fail-loud: the first row error
rolls back and aborts the run with the counts reached so far.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from support_lifecycle.constants import RetentionPageSizes
from support_lifecycle.errors import RunAbort
from support_lifecycle.logging_config import log_operation
from support_lifecycle.models import (
    ActionLog,
    AIComment,
    Classification,
    Conversation,
    ConversationStatus,
    EmailMessage,
    utcnow,
)
from support_lifecycle.services.settings_resolver import SupportSettings
from support_lifecycle.services.single_flight import single_flight

logger = logging.getLogger(__name__)

OPERATION = "enforce_retention_policy"


@dataclass
class RetentionResult:
    """Counts from one retention run."""

    archived_count: int = 0
    deleted_count: int = 0
    audit_deleted: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def retention_cutoff(now: datetime, days: float) -> datetime:
    """
    now minus a whole, non-negative number of days.

    A window reaching past the earliest representable date clamps to
    datetime.min, so nothing is old enough to match.
    """
    try:
        return now - timedelta(days=max(0, int(days)))
    except OverflowError:
        return datetime.min


def delete_conversation_cascade(db: Session, conversation_id: str) -> dict:
    """
    Delete a conversation and its dependent rows (leaf-to-root).

    Order:
    1. Classification (references EmailMessage / Conversation)
    2. AIComment (references Conversation)
    3. EmailMessage (references Conversation)
    4. ActionLog rows are kept and detached; the audit trail is pruned by age only
    5. Conversation (root)

    Does not commit. Returns counts by table.
    """
    counts = {}

    message_ids = [
        m.id for m in db.query(EmailMessage.id).filter(EmailMessage.conversation_id == conversation_id).all()
    ]

    counts["classifications"] = (
        db.query(Classification)
        .filter(Classification.conversation_id == conversation_id)
        .delete(synchronize_session=False)
    )
    if message_ids:
        counts["classifications"] += (
            db.query(Classification)
            .filter(Classification.email_message_id.in_(message_ids))
            .delete(synchronize_session=False)
        )

    counts["ai_comments"] = (
        db.query(AIComment).filter(AIComment.conversation_id == conversation_id).delete(synchronize_session=False)
    )

    counts["email_messages"] = (
        db.query(EmailMessage)
        .filter(EmailMessage.conversation_id == conversation_id)
        .delete(synchronize_session=False)
    )

    counts["action_logs_detached"] = (
        db.query(ActionLog)
        .filter(ActionLog.conversation_id == conversation_id)
        .update({"conversation_id": None}, synchronize_session=False)
    )

    counts["conversations"] = (
        db.query(Conversation).filter(Conversation.id == conversation_id).delete(synchronize_session=False)
    )

    return counts


def _archive_inactive(db: Session, cutoff: datetime, now: datetime, result: RetentionResult) -> None:
    page_size = RetentionPageSizes.ARCHIVE
    while True:
        conversations = (
            db.query(Conversation)
            .filter(
                Conversation.latest_message_at < cutoff,
                Conversation.archived_at.is_(None),
            )
            .limit(page_size)
            .all()
        )
        if not conversations:
            break

        for conversation in conversations:
            conversation.archived_at = now
            conversation.status = ConversationStatus.ARCHIVED.value
            db.add(conversation)
            db.commit()
            result.archived_count += 1

        if len(conversations) < page_size:
            break


def _delete_archived(db: Session, cutoff: datetime, result: RetentionResult) -> None:
    page_size = RetentionPageSizes.DELETE_ARCHIVED
    while True:
        rows = db.query(Conversation.id).filter(Conversation.archived_at < cutoff).limit(page_size).all()
        if not rows:
            break

        for row in rows:
            delete_conversation_cascade(db, row.id)
            db.commit()
            result.deleted_count += 1

        if len(rows) < page_size:
            break


def _prune_action_logs(db: Session, cutoff: datetime, result: RetentionResult) -> None:
    page_size = RetentionPageSizes.AUDIT_LOG
    while True:
        rows = db.query(ActionLog.id).filter(ActionLog.performed_at < cutoff).limit(page_size).all()
        if not rows:
            break

        for row in rows:
            db.query(ActionLog).filter(ActionLog.id == row.id).delete(synchronize_session=False)
            db.commit()
            result.audit_deleted += 1

        if len(rows) < page_size:
            break


def enforce_retention_policy(
    db: Session,
    settings: SupportSettings,
    now: Optional[datetime] = None,
) -> RetentionResult:
    """
    Apply the retention policy in settings as of now.

    Raises RunAbort (with partial counts) on the first row error.
    """
    now = now or utcnow()
    archive_cutoff = retention_cutoff(now, settings.retention_days)
    audit_cutoff = retention_cutoff(now, settings.audit_log_retention_days)
    result = RetentionResult()

    with single_flight(OPERATION), log_operation(OPERATION):
        try:
            if settings.auto_archive_enabled:
                _archive_inactive(db, archive_cutoff, now, result)

            if settings.delete_archived_data:
                _delete_archived(db, archive_cutoff, result)

            _prune_action_logs(db, audit_cutoff, result)
        except Exception as exc:
            db.rollback()
            raise RunAbort(OPERATION, exc, partial=result.as_dict()) from exc

    logger.info(
        "Retention policy enforcement complete",
        extra={"event": "retention_complete", **result.as_dict()},
    )
    return result
