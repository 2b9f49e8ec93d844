# tests/unit/test_exports.py
"""Unit tests for audit log and backup snapshot exports."""

import json
from datetime import datetime, timedelta

import pytest


def _log(db, description, performed_at, **kwargs):
    from support_lifecycle.models import ActionLog

    entry = ActionLog(
        action=kwargs.pop("action", "archived"),
        action_description=description,
        performed_at=performed_at,
        performed_by=kwargs.pop("performed_by", "system"),
        performed_via=kwargs.pop("performed_via", "scheduled_job"),
        **kwargs,
    )
    db.add(entry)
    db.commit()
    return entry


class TestCsvHelpers:
    """Tests for csv_escape() / clamp_export_limit() / redact_emails()."""

    def test_comma_is_quoted(self):
        from support_lifecycle.services.exports import csv_escape

        assert csv_escape("Archived, then deleted") == '"Archived, then deleted"'

    def test_quotes_doubled(self):
        from support_lifecycle.services.exports import csv_escape

        assert csv_escape('said "hi"') == '"said ""hi"""'

    def test_newline_quoted(self):
        from support_lifecycle.services.exports import csv_escape

        assert csv_escape("line1\nline2") == '"line1\nline2"'

    def test_plain_and_none(self):
        from support_lifecycle.services.exports import csv_escape

        assert csv_escape("plain") == "plain"
        assert csv_escape(None) == ""

    @pytest.mark.parametrize("limit,expected", [(None, 1000), (0, 1), (-5, 1), (250, 250), (99999, 5000)])
    def test_clamp(self, limit, expected):
        from support_lifecycle.services.exports import clamp_export_limit

        assert clamp_export_limit(limit) == expected

    def test_redact_emails(self):
        from support_lifecycle.services.exports import redact_emails

        assert redact_emails("Reply from Jane.Doe@Example.com") == "Reply from [redacted-email]"


class TestExportSupportAuditLogs:
    """Tests for export_support_audit_logs()."""

    def test_csv_quotes_description_with_comma(self, db_session, app_config, admin_user):
        from support_lifecycle.services.exports import AUDIT_EXPORT_COLUMNS, export_support_audit_logs

        _log(db_session, "Archived conversation, inactive", datetime(2026, 1, 1))

        export = export_support_audit_logs(db_session, {"user": admin_user.id}, app_config, limit=10)

        lines = export.content.split("\n")
        assert lines[0] == ",".join(AUDIT_EXPORT_COLUMNS)
        assert '"Archived conversation, inactive"' in lines[1]
        assert export.mime_type == "text/csv"
        assert export.filename.startswith("support-audit-")
        assert export.filename.endswith(".csv")
        assert export.count == 1

    def test_json_newest_first_with_limit(self, db_session, app_config, admin_user):
        from support_lifecycle.services.exports import export_support_audit_logs

        base = datetime(2026, 1, 1)
        for i in range(3):
            _log(db_session, f"entry {i}", base + timedelta(hours=i))

        export = export_support_audit_logs(
            db_session, {"user": admin_user.id}, app_config, limit=2, export_format="JSON"
        )

        payload = json.loads(export.content)
        assert payload["count"] == 2
        assert [row["actionDescription"] for row in payload["rows"]] == ["entry 2", "entry 1"]
        assert payload["rows"][0]["performedAt"] == "2026-01-01T02:00:00Z"
        assert export.filename.endswith(".json")

    def test_includes_conversation_subject(self, db_session, app_config, admin_user):
        from support_lifecycle.models import Conversation
        from support_lifecycle.services.exports import export_support_audit_logs

        conversation = Conversation(subject="Refund request")
        db_session.add(conversation)
        db_session.commit()
        _log(db_session, "Archived", datetime(2026, 1, 1), conversation_id=conversation.id)

        export = export_support_audit_logs(db_session, {"user": admin_user.id}, app_config, export_format="json")

        row = json.loads(export.content)["rows"][0]
        assert row["conversationId"] == conversation.id
        assert row["conversationSubject"] == "Refund request"

    def test_redacts_addresses_when_enabled(self, db_session, app_config, admin_user):
        from support_lifecycle.services.exports import export_support_audit_logs
        from support_lifecycle.services.settings_resolver import update_support_settings

        update_support_settings(db_session, app_config, {"redact_addresses": True})
        _log(db_session, "Reply sent to bob@example.com", datetime(2026, 1, 1), error_message="bounce: bob@example.com")

        export = export_support_audit_logs(db_session, {"user": admin_user.id}, app_config, export_format="json")

        row = json.loads(export.content)["rows"][0]
        assert row["actionDescription"] == "Reply sent to [redacted-email]"
        assert row["errorMessage"] == "bounce: [redacted-email]"

    def test_records_export_audit_entry(self, db_session, app_config, admin_user):
        from support_lifecycle.models import ActionLog
        from support_lifecycle.services.exports import export_support_audit_logs

        export_support_audit_logs(db_session, {"user": admin_user.id}, app_config)

        entry = db_session.query(ActionLog).filter(ActionLog.action == "data_export").one()
        assert entry.performed_by == admin_user.id
        assert entry.event_metadata["kind"] == "support_audit_export"

    def test_disabled_by_policy(self, db_session, app_config, admin_user):
        from support_lifecycle.errors import PolicyViolation
        from support_lifecycle.services.exports import export_support_audit_logs
        from support_lifecycle.services.settings_resolver import update_support_settings

        update_support_settings(db_session, app_config, {"audit_log_exports": False})

        with pytest.raises(PolicyViolation, match="disabled by policy"):
            export_support_audit_logs(db_session, {"user": admin_user.id}, app_config)

    def test_unknown_format(self, db_session, app_config, admin_user):
        from support_lifecycle.services.exports import export_support_audit_logs

        with pytest.raises(ValueError, match="Unsupported export format"):
            export_support_audit_logs(db_session, {"user": admin_user.id}, app_config, export_format="xml")

    def test_non_admin_forbidden(self, db_session, app_config, agent_user):
        from support_lifecycle.errors import Forbidden
        from support_lifecycle.services.exports import export_support_audit_logs

        with pytest.raises(Forbidden):
            export_support_audit_logs(db_session, {"user": agent_user.id}, app_config)


class TestExportSupportBackupSnapshot:
    """Tests for export_support_backup_snapshot()."""

    def test_policy_and_counts(self, db_session, app_config, admin_user):
        from support_lifecycle.models import Conversation, EmailMessage
        from support_lifecycle.services.exports import export_support_backup_snapshot

        conversation = Conversation(subject="Hello")
        db_session.add(conversation)
        db_session.commit()
        db_session.add(EmailMessage(conversation_id=conversation.id, subject="Hello"))
        db_session.commit()

        export = export_support_backup_snapshot(db_session, {"user": admin_user.id}, app_config)

        snapshot = json.loads(export.content)
        assert snapshot["policy"]["backupSchedule"] == "daily"
        assert snapshot["policy"]["backupRetentionDays"] == 30
        assert snapshot["policy"]["lastBackupAt"] is None
        assert snapshot["counts"] == {"conversations": 1, "emailMessages": 1, "actionLogs": 0, "users": 1}
        assert export.mime_type == "application/json"

    def test_missing_configuration(self, db_session, admin_user):
        from support_lifecycle.errors import PolicyViolation
        from support_lifecycle.services.exports import export_support_backup_snapshot

        with pytest.raises(PolicyViolation, match="App configuration not found"):
            export_support_backup_snapshot(db_session, {"user": admin_user.id}, None)
