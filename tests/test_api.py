# tests/test_api.py
"""
Contract tests for API responses.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(db_session):
    """Create test client bound to the test database session."""
    from support_lifecycle.database import get_db
    from support_lifecycle.main import app

    app.dependency_overrides[get_db] = lambda: db_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_token(db_session):
    from support_lifecycle.models import UserSession

    def _make(user, expires_in=timedelta(hours=1)):
        from support_lifecycle.models import utcnow

        record = UserSession(token=f"tok-{user.id}", user_id=user.id, expires_at=utcnow() + expires_in)
        db_session.add(record)
        db_session.commit()
        return {"X-Session-Token": record.token}

    return _make


@pytest.fixture
def admin_headers(admin_user, make_token):
    return make_token(admin_user)


@pytest.fixture
def agent_headers(agent_user, make_token):
    return make_token(agent_user)


JOB_HEADERS = {"X-API-Key": "test-job-key"}


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "support-lifecycle"}


class TestJobEndpoints:
    """Scheduler-triggered endpoints."""

    def test_requires_api_key(self, client):
        response = client.post("/v1/jobs/backup")
        assert response.status_code == 401

        response = client.post("/v1/jobs/backup", headers={"X-API-Key": "wrong"})
        assert response.status_code == 401

    def test_backup_without_configuration(self, client):
        response = client.post("/v1/jobs/backup", headers=JOB_HEADERS)
        assert response.status_code == 200
        assert response.json() == {"ok": False, "error": "App configuration not found"}

    def test_backup_tick(self, client, app_config):
        first = client.post("/v1/jobs/backup", headers=JOB_HEADERS).json()
        second = client.post("/v1/jobs/backup", headers=JOB_HEADERS).json()

        assert first["ok"] is True
        assert "ranAt" in first
        assert second == {"ok": True, "skipped": True}

    def test_enforce_retention(self, client, app_config):
        response = client.post("/v1/jobs/enforce-retention", headers=JOB_HEADERS)
        assert response.status_code == 200
        assert response.json() == {"ok": True, "archived_count": 0, "deleted_count": 0, "audit_deleted": 0}


class TestAdminSupportEndpoints:
    """Admin lifecycle endpoints."""

    def test_unauthenticated(self, client):
        response = client.post("/v1/admin/support/backup", json={"force": True})
        assert response.status_code == 401

    def test_expired_session_unauthenticated(self, client, admin_user, make_token):
        headers = make_token(admin_user, expires_in=timedelta(hours=-1))
        response = client.get("/v1/admin/support/settings", headers=headers)
        assert response.status_code == 401

    def test_non_admin_forbidden(self, client, agent_headers):
        response = client.post("/v1/admin/support/hard-reset", json={"confirm": True}, headers=agent_headers)
        assert response.status_code == 403

    def test_forced_backup(self, client, admin_headers):
        response = client.post("/v1/admin/support/backup", json={"force": True}, headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["forced"] is True
        assert data["ranAt"]

    def test_unforced_backup_attributed_to_admin(self, client, db_session, admin_user, admin_headers, app_config):
        from support_lifecycle.models import ActionLog

        response = client.post("/v1/admin/support/backup", json={}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["forced"] is False
        entry = db_session.query(ActionLog).one()
        assert entry.performed_by == admin_user.id
        assert entry.performed_via == "web_ui"

    def test_hard_reset_authenticates_before_confirm(self, client):
        response = client.post("/v1/admin/support/hard-reset", json={})
        assert response.status_code == 401

    def test_hard_reset_requires_confirm(self, client, admin_headers):
        response = client.post("/v1/admin/support/hard-reset", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_hard_reset(self, client, db_session, admin_headers, app_config):
        from support_lifecycle.models import Conversation

        db_session.add(Conversation(subject="Help"))
        db_session.commit()

        response = client.post("/v1/admin/support/hard-reset", json={"confirm": True}, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["deleted"]["conversation"] == {"deleted": 1, "failed": 0, "rounds": 1}
        assert data["sync_cursor_cleared"] is True
        assert not any(data["remaining_any"].values())

    def test_hard_reset_in_progress(self, client, admin_headers):
        from support_lifecycle.services.single_flight import single_flight

        with single_flight("hard_reset_support_data"):
            response = client.post("/v1/admin/support/hard-reset", json={"confirm": True}, headers=admin_headers)

        assert response.status_code == 409

    def test_reset_learning(self, client, admin_headers, app_config):
        response = client.post("/v1/admin/support/reset-learning", headers=admin_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True, "cleared_conversations": 0, "deleted_ai_comments": 0}

    def test_export_audit_logs_csv(self, client, admin_headers, app_config):
        response = client.get("/v1/admin/support/audit-logs/export", headers=admin_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert response.text.startswith("id,action,actionDescription")

    def test_export_audit_logs_bad_format(self, client, admin_headers, app_config):
        response = client.get("/v1/admin/support/audit-logs/export?format=xml", headers=admin_headers)
        assert response.status_code == 422

    def test_export_disabled_by_policy(self, client, db_session, admin_headers, app_config):
        from support_lifecycle.services.settings_resolver import update_support_settings

        update_support_settings(db_session, app_config, {"audit_log_exports": False})

        response = client.get("/v1/admin/support/audit-logs/export", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Audit log export is disabled by policy"

    def test_backup_snapshot(self, client, admin_headers, app_config):
        response = client.get("/v1/admin/support/backup-snapshot", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["policy"]["backupSchedule"] == "daily"
        assert data["counts"]["users"] == 1

    def test_settings_round_trip(self, client, db_session, admin_headers, app_config):
        from support_lifecycle.models import ActionLog

        response = client.put(
            "/v1/admin/support/settings",
            json={"settings": {"retention_days": 30}},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["retention_days"] == 30

        response = client.get("/v1/admin/support/settings", headers=admin_headers)
        assert response.json()["retention_days"] == 30
        assert response.json()["audit_log_retention_days"] == 365
        assert db_session.query(ActionLog).filter(ActionLog.action == "config_changed").count() == 1

    def test_settings_unknown_key(self, client, admin_headers, app_config):
        response = client.put(
            "/v1/admin/support/settings",
            json={"settings": {"retention_dayz": 30}},
            headers=admin_headers,
        )
        assert response.status_code == 422


class TestAccountEndpoints:
    """Self-service account endpoints."""

    def test_change_password(self, client, agent_headers, app_config):
        response = client.post(
            "/v1/account/password",
            json={"current_password": "Old-passw0rd!", "new_password": "New-passw0rd!"},
            headers=agent_headers,
        )
        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_policy_failure(self, client, agent_headers, app_config):
        response = client.post(
            "/v1/account/password",
            json={"current_password": "Old-passw0rd!", "new_password": "weak"},
            headers=agent_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Password policy failed")

    def test_requires_session(self, client):
        response = client.post(
            "/v1/account/password",
            json={"current_password": "a", "new_password": "b"},
        )
        assert response.status_code == 401
