# support_lifecycle/routers/admin_support.py
"""
Admin endpoints for support data lifecycle and governance.

POST /v1/admin/support/backup - Run a backup (force to bypass the schedule)
POST /v1/admin/support/hard-reset - Irreversibly purge all support data
POST /v1/admin/support/reset-learning - Clear learned playbook selection data
GET  /v1/admin/support/audit-logs/export - Download the audit trail (csv/json)
GET  /v1/admin/support/backup-snapshot - Download policy + row counts snapshot
GET  /v1/admin/support/settings - Resolved support settings
PUT  /v1/admin/support/settings - Update stored support settings

Caller identity comes from the X-Session-Token header; every endpoint
requires an admin role.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from support_lifecycle.auth import get_session_context
from support_lifecycle.constants import ExportLimits
from support_lifecycle.database import get_db
from support_lifecycle.errors import SupportLifecycleError
from support_lifecycle.models import ActionType, PerformedVia
from support_lifecycle.routers.errors import http_error
from support_lifecycle.services.access_guard import require_admin
from support_lifecycle.services.audit import AuditCategory, record_if_enabled
from support_lifecycle.services.backup import run_backup
from support_lifecycle.services.exports import export_support_audit_logs, export_support_backup_snapshot
from support_lifecycle.services.retention import hard_reset_support_data, reset_support_learning
from support_lifecycle.services.settings_resolver import (
    ensure_app_configuration,
    get_app_configuration,
    load_support_settings,
    update_support_settings,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/admin/support", tags=["admin-support"])


# -----------------------------------------------------------------------------
# Request / Response Models
# -----------------------------------------------------------------------------


class BackupRequest(BaseModel):
    """Request to run a backup."""

    force: bool = Field(False, description="Run now regardless of the schedule")


class BackupResponse(BaseModel):
    """Backup tick result."""

    ok: bool = True
    skipped: bool = False
    ranAt: str | None = None
    forced: bool = False


class HardResetRequest(BaseModel):
    """Request to hard reset all support data."""

    confirm: bool = Field(False, description="Required confirmation; the reset is irreversible")


class PurgeStatsResponse(BaseModel):
    deleted: int
    failed: int
    rounds: int


class HardResetResponse(BaseModel):
    """Hard reset result."""

    success: bool
    sync_cursor_cleared: bool
    deleted: dict[str, PurgeStatsResponse]
    remaining_any: dict[str, bool]


class LearningResetResponse(BaseModel):
    """Learning reset result."""

    success: bool
    cleared_conversations: int
    deleted_ai_comments: int


class SettingsUpdateRequest(BaseModel):
    """Raw setting values to merge into the stored configuration."""

    settings: dict[str, Any] = Field(..., description="Setting key to raw value")


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _attachment(content: str, filename: str, mime_type: str) -> Response:
    return Response(
        content=content,
        media_type=mime_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("/backup", response_model=BackupResponse)
def trigger_backup(
    request: BackupRequest,
    db: Session = Depends(get_db),
    session: dict = Depends(get_session_context),
) -> BackupResponse:
    """
    Run a backup tick as an admin.

    Without force the configured schedule decides; a run that is not due
    returns skipped=true.
    """
    try:
        require_admin(db, session)
        config = ensure_app_configuration(db)
        result = run_backup(db, config, force=request.force, session=session)
    except (SupportLifecycleError, ValueError) as e:
        raise http_error(e)

    return BackupResponse(**result.as_dict())


@router.post("/hard-reset", response_model=HardResetResponse)
def trigger_hard_reset(
    request: HardResetRequest,
    db: Session = Depends(get_db),
    session: dict = Depends(get_session_context),
) -> HardResetResponse:
    """
    Delete every support-domain row and clear the mail sync cursor.

    WARNING: This is irreversible. Requires confirm=true.
    """
    try:
        require_admin(db, session)
    except SupportLifecycleError as e:
        raise http_error(e)

    if not request.confirm:
        raise HTTPException(
            status_code=400,
            detail="Must set confirm=true to run a hard reset",
        )

    logger.warning("Hard reset requested over HTTP")

    try:
        result = hard_reset_support_data(db, session, config=get_app_configuration(db))
    except (SupportLifecycleError, ValueError) as e:
        raise http_error(e)

    return HardResetResponse(
        success=result.success,
        sync_cursor_cleared=result.sync_cursor_cleared,
        deleted={key: PurgeStatsResponse(**stats.as_dict()) for key, stats in result.deleted.items()},
        remaining_any=result.remaining_any,
    )


@router.post("/reset-learning", response_model=LearningResetResponse)
def trigger_learning_reset(
    db: Session = Depends(get_db),
    session: dict = Depends(get_session_context),
) -> LearningResetResponse:
    """Clear playbook selection metadata and triage AI comments."""
    try:
        result = reset_support_learning(db, session, get_app_configuration(db))
    except (SupportLifecycleError, ValueError) as e:
        raise http_error(e)

    return LearningResetResponse(**result.as_dict())


@router.get("/audit-logs/export")
def export_audit_logs(
    limit: int = Query(ExportLimits.DEFAULT_ROWS, description="Rows to export (clamped to 1-5000)"),
    format: str = Query("csv", description="csv or json"),
    db: Session = Depends(get_db),
    session: dict = Depends(get_session_context),
) -> Response:
    """Download the newest action log rows."""
    try:
        export = export_support_audit_logs(
            db, session, get_app_configuration(db), limit=limit, export_format=format
        )
    except (SupportLifecycleError, ValueError) as e:
        raise http_error(e)

    return _attachment(export.content, export.filename, export.mime_type)


@router.get("/backup-snapshot")
def export_backup_snapshot(
    db: Session = Depends(get_db),
    session: dict = Depends(get_session_context),
) -> Response:
    """Download the backup policy and current row counts."""
    try:
        export = export_support_backup_snapshot(db, session, get_app_configuration(db))
    except (SupportLifecycleError, ValueError) as e:
        raise http_error(e)

    return _attachment(export.content, export.filename, export.mime_type)


@router.get("/settings")
def get_support_settings(
    db: Session = Depends(get_db),
    session: dict = Depends(get_session_context),
) -> dict[str, Any]:
    """Resolved settings (stored values merged with defaults)."""
    try:
        require_admin(db, session)
    except SupportLifecycleError as e:
        raise http_error(e)

    return load_support_settings(get_app_configuration(db)).as_dict()


@router.put("/settings")
def put_support_settings(
    request: SettingsUpdateRequest,
    db: Session = Depends(get_db),
    session: dict = Depends(get_session_context),
) -> dict[str, Any]:
    """Merge raw values into the stored settings. Unknown keys are rejected."""
    try:
        actor = require_admin(db, session)
        config = ensure_app_configuration(db)
        settings = update_support_settings(db, config, request.settings)
    except (SupportLifecycleError, ValueError) as e:
        raise http_error(e)

    record_if_enabled(
        db,
        settings,
        AuditCategory.CONFIG_CHANGE,
        action=ActionType.CONFIG_CHANGED,
        description=f"Updated support settings: {', '.join(sorted(request.settings))}",
        performed_by=actor,
        performed_via=PerformedVia.WEB_UI,
        metadata={"keys": sorted(request.settings)},
    )
    db.commit()

    return settings.as_dict()
