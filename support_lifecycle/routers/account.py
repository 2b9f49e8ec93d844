# support_lifecycle/routers/account.py
"""
Self-service account endpoints.

POST /v1/account/password - Change the caller's own password
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from support_lifecycle.auth import get_session_context
from support_lifecycle.database import get_db
from support_lifecycle.errors import SupportLifecycleError
from support_lifecycle.routers.errors import http_error
from support_lifecycle.services.password_policy import change_own_password
from support_lifecycle.services.settings_resolver import get_app_configuration

router = APIRouter(prefix="/v1/account", tags=["account"])


class PasswordChangeRequest(BaseModel):
    """Request to change the caller's password."""

    current_password: str = Field("", description="Current password")
    new_password: str = Field("", description="New password; must satisfy the configured policy")


class PasswordChangeResponse(BaseModel):
    ok: bool = True


@router.post("/password", response_model=PasswordChangeResponse)
def change_password(
    request: PasswordChangeRequest,
    db: Session = Depends(get_db),
    session: dict = Depends(get_session_context),
) -> PasswordChangeResponse:
    """Change the caller's own password under the configured password policy."""
    try:
        change_own_password(
            db,
            session,
            get_app_configuration(db),
            current_password=request.current_password,
            new_password=request.new_password,
        )
    except SupportLifecycleError as e:
        raise http_error(e)

    return PasswordChangeResponse()
