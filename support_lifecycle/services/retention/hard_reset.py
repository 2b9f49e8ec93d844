# support_lifecycle/services/retention/hard_reset.py
"""
Whole-tenant hard reset of support data.

WARNING: irreversible. Deletes every support-domain row, children before
parents, then clears the mail sync cursor so the next sync treats the
dataset as empty. Reachable only from an explicit admin action.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.orm import Session

from support_lifecycle.constants import PurgeDefaults
from support_lifecycle.logging_config import log_operation
from support_lifecycle.models import (
    ActionLog,
    AIComment,
    AppConfiguration,
    Classification,
    Conversation,
    EmailMessage,
    TriageSession,
)
from support_lifecycle.services.access_guard import require_admin
from support_lifecycle.services.retention.purger import PurgeStats, purge_paginated
from support_lifecycle.services.single_flight import single_flight

logger = logging.getLogger(__name__)

OPERATION = "hard_reset_support_data"

# Children and derived records first, then conversations, then triage state
HARD_RESET_TARGETS = (
    ("classification", Classification),
    ("ai_comment", AIComment),
    ("action_log", ActionLog),
    ("email_message", EmailMessage),
    ("conversation", Conversation),
    ("triage_session", TriageSession),
)


@dataclass
class HardResetResult:
    """Result of a hard reset."""

    success: bool = True
    sync_cursor_cleared: bool = False
    deleted: dict[str, PurgeStats] = field(default_factory=dict)
    remaining_any: dict[str, bool] = field(default_factory=dict)


def _fetch_ids(db: Session, model, limit: int) -> list[str]:
    return [row.id for row in db.query(model.id).limit(limit).all()]


def _make_delete_one(db: Session, model):
    def delete_one(row_id: str) -> None:
        try:
            db.query(model).filter(model.id == row_id).delete(synchronize_session=False)
            db.commit()
        except Exception:
            db.rollback()
            raise

    return delete_one


def hard_reset_support_data(
    db: Session,
    session: Optional[Mapping[str, Any]],
    config: Optional[AppConfiguration] = None,
    batch_size: int = PurgeDefaults.BATCH_SIZE,
) -> HardResetResult:
    """
    Purge all support-domain entities and clear the sync cursor.

    The admin check runs before anything is read. Per-row failures are
    tallied in the per-entity PurgeStats; remaining_any reports whether any
    row of each kind survived.
    """
    actor = require_admin(db, session)

    result = HardResetResult()

    with single_flight(OPERATION), log_operation(OPERATION):
        logger.warning(f"Starting hard support data reset requested by {actor}", extra={"actor": actor})

        for key, model in HARD_RESET_TARGETS:
            result.deleted[key] = purge_paginated(
                key,
                fetch_batch=lambda model=model: _fetch_ids(db, model, batch_size),
                delete_one=_make_delete_one(db, model),
                batch_size=batch_size,
            )

        for key, model in HARD_RESET_TARGETS:
            result.remaining_any[key] = bool(_fetch_ids(db, model, PurgeDefaults.PROBE_SIZE))

        if config is not None:
            config.last_sync_at = None
            db.add(config)
            db.commit()
            result.sync_cursor_cleared = True

    logger.info(
        f"Hard support data reset completed: "
        f"{sum(s.deleted for s in result.deleted.values())} deleted, "
        f"{sum(s.failed for s in result.deleted.values())} failed, "
        f"remaining={[k for k, v in result.remaining_any.items() if v]}",
        extra={"event": "hard_reset_complete", "actor": actor},
    )
    return result
