"""Support lifecycle schema: identity, support domain, audit trail, configuration.

Creates:
- users, user_sessions: identity and role lists for admin gating
- conversations, email_messages, classifications, ai_comments, triage_sessions
- action_logs: append-only audit trail, pruned by performed_at
- app_configurations: singleton holding raw policy settings and the
  backup / mail sync bookkeeping timestamps

Revision ID: 001_support_lifecycle_schema
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_support_lifecycle_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create lifecycle tables."""

    # -------------------------------------------------------------------------
    # 1. Identity
    # -------------------------------------------------------------------------
    print("  Creating users and user_sessions tables...")

    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('role_list', sa.JSON(), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email')
    )

    op.create_table(
        'user_sessions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('token', sa.String(length=128), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.UniqueConstraint('token', name='uq_user_sessions_token')
    )

    # -------------------------------------------------------------------------
    # 2. Support domain
    # -------------------------------------------------------------------------
    print("  Creating support domain tables...")

    op.create_table(
        'conversations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('subject', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='new'),
        sa.Column('latest_message_at', sa.DateTime(), nullable=True),
        sa.Column('archived_at', sa.DateTime(), nullable=True),
        sa.Column('playbook_selection_meta', sa.JSON(), nullable=True),
        sa.Column('selected_playbook_confidence', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_conversations_latest_message_at', 'conversations', ['latest_message_at'], unique=False)
    op.create_index('ix_conversations_archived_at', 'conversations', ['archived_at'], unique=False)

    op.create_table(
        'email_messages',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('conversation_id', sa.String(length=36), nullable=True),
        sa.Column('subject', sa.Text(), nullable=True),
        sa.Column('from_address', sa.String(length=320), nullable=True),
        sa.Column('received_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id'])
    )
    op.create_index('ix_email_messages_conversation', 'email_messages', ['conversation_id'], unique=False)

    op.create_table(
        'classifications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email_message_id', sa.String(length=36), nullable=True),
        sa.Column('conversation_id', sa.String(length=36), nullable=True),
        sa.Column('priority', sa.String(length=8), nullable=True),
        sa.Column('sentiment', sa.String(length=16), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['email_message_id'], ['email_messages.id']),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id'])
    )

    op.create_table(
        'ai_comments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('conversation_id', sa.String(length=36), nullable=True),
        sa.Column('source', sa.String(length=32), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id'])
    )
    op.create_index('ix_ai_comments_source', 'ai_comments', ['source'], unique=False)

    op.create_table(
        'triage_sessions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('started_by', sa.String(length=36), nullable=True),
        sa.Column('state', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    # -------------------------------------------------------------------------
    # 3. Audit trail
    # -------------------------------------------------------------------------
    print("  Creating action_logs table...")

    op.create_table(
        'action_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('action', sa.String(length=32), nullable=False),
        sa.Column('action_description', sa.Text(), nullable=False),
        sa.Column('performed_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('performed_by', sa.String(length=64), nullable=False),
        sa.Column('performed_via', sa.String(length=32), nullable=False),
        sa.Column('success', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('conversation_id', sa.String(length=36), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['conversation_id'], ['conversations.id'])
    )
    op.create_index('ix_action_logs_performed_at', 'action_logs', ['performed_at'], unique=False)

    # -------------------------------------------------------------------------
    # 4. Configuration singleton
    # -------------------------------------------------------------------------
    print("  Creating app_configurations table...")

    op.create_table(
        'app_configurations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('settings', sa.JSON(), nullable=False),
        sa.Column('last_backup_at', sa.DateTime(), nullable=True),
        sa.Column('last_sync_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    print("  Support lifecycle schema created")


def downgrade() -> None:
    """Drop lifecycle tables, children first."""
    op.drop_table('app_configurations')
    op.drop_index('ix_action_logs_performed_at', table_name='action_logs')
    op.drop_table('action_logs')
    op.drop_table('triage_sessions')
    op.drop_index('ix_ai_comments_source', table_name='ai_comments')
    op.drop_table('ai_comments')
    op.drop_table('classifications')
    op.drop_index('ix_email_messages_conversation', table_name='email_messages')
    op.drop_table('email_messages')
    op.drop_index('ix_conversations_archived_at', table_name='conversations')
    op.drop_index('ix_conversations_latest_message_at', table_name='conversations')
    op.drop_table('conversations')
    op.drop_table('user_sessions')
    op.drop_table('users')
