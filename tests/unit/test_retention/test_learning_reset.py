# tests/unit/test_retention/test_learning_reset.py
"""Unit tests for the triage learning reset."""

import pytest


class TestResetSupportLearning:
    """Tests for reset_support_learning()."""

    def test_clears_selection_data_and_triage_comments(self, db_session, admin_user, app_config):
        from support_lifecycle.models import ActionLog, AIComment, Conversation
        from support_lifecycle.services.retention import reset_support_learning

        tuned = Conversation(subject="a", playbook_selection_meta={"playbook": "refund"}, selected_playbook_confidence=0.8)
        confidence_only = Conversation(subject="b", selected_playbook_confidence=0.4)
        untouched = Conversation(subject="c")
        db_session.add_all([tuned, confidence_only, untouched])
        db_session.commit()
        db_session.add_all([
            AIComment(conversation_id=tuned.id, source="triage_ai", content="picked refund"),
            AIComment(conversation_id=tuned.id, source="triage_ai", content="confidence 0.8"),
            AIComment(conversation_id=tuned.id, source="agent", content="human note"),
        ])
        db_session.commit()

        result = reset_support_learning(db_session, {"user": admin_user.id}, app_config)

        assert result.success is True
        assert result.cleared_conversations == 2
        assert result.deleted_ai_comments == 2
        assert (
            db_session.query(Conversation)
            .filter(Conversation.playbook_selection_meta.isnot(None))
            .count()
            == 0
        )
        assert [c.source for c in db_session.query(AIComment).all()] == ["agent"]

        entry = db_session.query(ActionLog).one()
        assert entry.action == "config_changed"
        assert entry.event_metadata["cleared_conversations"] == 2

    def test_no_audit_when_config_changes_disabled(self, db_session, admin_user, app_config):
        from support_lifecycle.models import ActionLog
        from support_lifecycle.services.retention import reset_support_learning
        from support_lifecycle.services.settings_resolver import update_support_settings

        update_support_settings(db_session, app_config, {"audit_log_config_changes": False})

        reset_support_learning(db_session, {"user": admin_user.id}, app_config)

        assert db_session.query(ActionLog).count() == 0

    def test_requires_admin(self, db_session, agent_user, app_config):
        from support_lifecycle.errors import Forbidden
        from support_lifecycle.services.retention import reset_support_learning

        with pytest.raises(Forbidden):
            reset_support_learning(db_session, {"user": agent_user.id}, app_config)
