# support_lifecycle/auth.py
"""Shared authentication dependencies."""

import os
import secrets
from typing import Any

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from support_lifecycle.database import get_db
from support_lifecycle.models import UserSession, utcnow


def require_job_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> None:
    """Validate the scheduler API key. Fails closed if JOB_API_KEY is not set."""
    expected_key = os.getenv("JOB_API_KEY")

    if not expected_key:
        raise HTTPException(
            status_code=500,
            detail="Server misconfiguration: job authentication not configured",
        )

    if not x_api_key or not secrets.compare_digest(x_api_key, expected_key):
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing API key",
        )


def get_session_context(
    x_session_token: str | None = Header(default=None, alias="X-Session-Token"),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """
    Resolve the X-Session-Token header into a session mapping.

    Unknown or expired tokens yield an empty session; the access guard then
    rejects the call as unauthenticated.
    """
    if not x_session_token:
        return {}

    record = db.query(UserSession).filter(UserSession.token == x_session_token).first()
    if not record or (record.expires_at and record.expires_at <= utcnow()):
        return {}

    return {"id": record.id, "user": record.user_id}
