# support_lifecycle/models.py
"""
Support data store models touched by the lifecycle engine.

Tables:
- User / UserSession: identity and role lists used for admin gating
- Conversation: support threads subject to archival and deletion
- EmailMessage, Classification, AIComment, TriageSession: support-domain
  records removed by the hard reset
- ActionLog: append-only audit trail, pruned by age
- AppConfiguration: singleton holding raw policy settings and sync/backup
  bookkeeping

Only the columns this engine reads or writes are modelled here.
"""

import uuid
from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
)

from support_lifecycle.database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns below."""
    return datetime.now(UTC).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class ConversationStatus(str, Enum):
    """Lifecycle status of a support conversation."""
    NEW = "new"
    IN_PROGRESS = "in_progress"
    WAITING = "waiting_customer"
    RESOLVED = "resolved"
    ARCHIVED = "archived"


class ActionType(str, Enum):
    """Audit trail action kinds written by this engine."""
    ARCHIVED = "archived"
    BULK_ACTION = "bulk_action"
    CONFIG_CHANGED = "config_changed"
    DATA_EXPORT = "data_export"


class PerformedVia(str, Enum):
    """How an audited action was triggered."""
    WEB_UI = "web_ui"
    API = "api"
    SCHEDULED_JOB = "scheduled_job"
    CLI = "cli"


# -----------------------------------------------------------------------------
# Identity
# -----------------------------------------------------------------------------

class User(Base):
    """Application user. role_list holds bare keys or {"key": ...} objects."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(320), unique=True, nullable=False)
    role_list = Column(JSON, default=list, nullable=False)
    password_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class UserSession(Base):
    """Browser/API session resolving to a user."""
    __tablename__ = "user_sessions"

    id = Column(String(36), primary_key=True, default=_new_id)
    token = Column(String(128), unique=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=True)


# -----------------------------------------------------------------------------
# Support domain
# -----------------------------------------------------------------------------

class Conversation(Base):
    """Support thread."""
    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=_new_id)
    subject = Column(Text, nullable=True)
    status = Column(String(32), default=ConversationStatus.NEW.value, nullable=False)
    latest_message_at = Column(DateTime, nullable=True)
    archived_at = Column(DateTime, nullable=True)

    # Triage learning signal (cleared by the learning reset)
    playbook_selection_meta = Column(JSON(none_as_null=True), nullable=True)
    selected_playbook_confidence = Column(Float, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_conversations_latest_message_at", "latest_message_at"),
        Index("ix_conversations_archived_at", "archived_at"),
    )


class EmailMessage(Base):
    """Inbound/outbound email belonging to a conversation."""
    __tablename__ = "email_messages"

    id = Column(String(36), primary_key=True, default=_new_id)
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=True)
    subject = Column(Text, nullable=True)
    from_address = Column(String(320), nullable=True)
    received_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_email_messages_conversation", "conversation_id"),
    )


class Classification(Base):
    """Opaque output of the external classifier for an email."""
    __tablename__ = "classifications"

    id = Column(String(36), primary_key=True, default=_new_id)
    email_message_id = Column(String(36), ForeignKey("email_messages.id"), nullable=True)
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=True)
    priority = Column(String(8), nullable=True)
    sentiment = Column(String(16), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class AIComment(Base):
    """AI-authored note on a conversation."""
    __tablename__ = "ai_comments"

    id = Column(String(36), primary_key=True, default=_new_id)
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=True)
    source = Column(String(32), nullable=True)  # "triage_ai" marks learned signal
    content = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_ai_comments_source", "source"),
    )


class TriageSession(Base):
    """Interactive triage state."""
    __tablename__ = "triage_sessions"

    id = Column(String(36), primary_key=True, default=_new_id)
    started_by = Column(String(36), nullable=True)
    state = Column(JSON(none_as_null=True), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


# -----------------------------------------------------------------------------
# ActionLog
# -----------------------------------------------------------------------------

class ActionLog(Base):
    """Append-only audit trail."""
    __tablename__ = "action_logs"

    id = Column(String(36), primary_key=True, default=_new_id)
    action = Column(String(32), nullable=False)
    action_description = Column(Text, nullable=False)
    performed_at = Column(DateTime, default=utcnow, nullable=False)
    performed_by = Column(String(64), nullable=False)
    performed_via = Column(String(32), nullable=False)
    success = Column(Boolean, default=True, nullable=False)
    error_message = Column(Text, nullable=True)
    conversation_id = Column(String(36), ForeignKey("conversations.id"), nullable=True)

    # "metadata" is reserved on declarative classes
    event_metadata = Column("metadata", JSON(none_as_null=True), nullable=True)

    __table_args__ = (
        Index("ix_action_logs_performed_at", "performed_at"),
    )


# -----------------------------------------------------------------------------
# AppConfiguration
# -----------------------------------------------------------------------------

class AppConfiguration(Base):
    """Singleton configuration record."""
    __tablename__ = "app_configurations"

    id = Column(String(36), primary_key=True, default=_new_id)
    settings = Column(JSON, default=dict, nullable=False)  # raw policy knobs
    last_backup_at = Column(DateTime, nullable=True)
    last_sync_at = Column(DateTime, nullable=True)  # external mail sync cursor
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
