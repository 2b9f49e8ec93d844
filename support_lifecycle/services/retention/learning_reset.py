# support_lifecycle/services/retention/learning_reset.py
"""
Reset of triage learning signal.

Clears per-conversation playbook selection metadata and deletes triage AI
comments so selection tuning starts from a clean history. Row errors
propagate.
"""

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from support_lifecycle.constants import LEARNING_AI_COMMENT_SOURCE, RetentionPageSizes
from support_lifecycle.logging_config import log_operation
from support_lifecycle.models import ActionType, AIComment, AppConfiguration, Conversation, PerformedVia
from support_lifecycle.services.access_guard import require_admin
from support_lifecycle.services.audit import AuditCategory, record_if_enabled
from support_lifecycle.services.settings_resolver import load_support_settings
from support_lifecycle.services.single_flight import single_flight

logger = logging.getLogger(__name__)

OPERATION = "reset_support_learning"


@dataclass
class LearningResetResult:
    success: bool = True
    cleared_conversations: int = 0
    deleted_ai_comments: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def reset_support_learning(
    db: Session,
    session: Optional[Mapping[str, Any]],
    config: Optional[AppConfiguration],
    performed_via: PerformedVia = PerformedVia.WEB_UI,
) -> LearningResetResult:
    """Clear learned playbook selection data. Admin only."""
    actor = require_admin(db, session)
    settings = load_support_settings(config)
    result = LearningResetResult()

    with single_flight(OPERATION), log_operation(OPERATION):
        page_size = RetentionPageSizes.LEARNING_CONVERSATIONS
        while True:
            conversations = (
                db.query(Conversation)
                .filter(
                    or_(
                        Conversation.playbook_selection_meta.isnot(None),
                        Conversation.selected_playbook_confidence.isnot(None),
                    )
                )
                .limit(page_size)
                .all()
            )
            if not conversations:
                break
            for conversation in conversations:
                conversation.playbook_selection_meta = None
                conversation.selected_playbook_confidence = None
                db.add(conversation)
                db.commit()
                result.cleared_conversations += 1
            if len(conversations) < page_size:
                break

        page_size = RetentionPageSizes.LEARNING_AI_COMMENTS
        while True:
            rows = (
                db.query(AIComment.id)
                .filter(AIComment.source == LEARNING_AI_COMMENT_SOURCE)
                .limit(page_size)
                .all()
            )
            if not rows:
                break
            for row in rows:
                db.query(AIComment).filter(AIComment.id == row.id).delete(synchronize_session=False)
                db.commit()
                result.deleted_ai_comments += 1
            if len(rows) < page_size:
                break

        record_if_enabled(
            db,
            settings,
            AuditCategory.CONFIG_CHANGE,
            action=ActionType.CONFIG_CHANGED,
            description="Support learning data reset",
            performed_by=actor,
            performed_via=performed_via,
            metadata={"kind": "support_learning_reset", **result.as_dict()},
        )
        db.commit()

    logger.info(
        f"Support learning reset: {result.cleared_conversations} conversations cleared, "
        f"{result.deleted_ai_comments} AI comments deleted",
        extra={"event": "learning_reset_complete", "actor": actor},
    )
    return result
