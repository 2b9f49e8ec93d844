# support_lifecycle/routers/jobs.py
"""
Scheduler-triggered job endpoints.

POST /v1/jobs/enforce-retention - Daily retention run (cron 15 2 * * *)
POST /v1/jobs/backup - Hourly backup tick (cron 0 * * * *)

Protected by the X-API-Key header. Jobs report failure in the body
({"ok": false, ...}) rather than with an error status; the next scheduled
tick is the retry.
"""

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from support_lifecycle.auth import require_job_key
from support_lifecycle.database import get_db
from support_lifecycle.services.jobs import run_scheduled_backup, run_scheduled_retention

router = APIRouter(prefix="/v1/jobs", tags=["jobs"])


@router.post("/enforce-retention")
def trigger_retention(
    db: Session = Depends(get_db),
    _: None = Depends(require_job_key),
) -> dict[str, Any]:
    return run_scheduled_retention(db)


@router.post("/backup")
def trigger_backup_tick(
    db: Session = Depends(get_db),
    _: None = Depends(require_job_key),
) -> dict[str, Any]:
    return run_scheduled_backup(db)
