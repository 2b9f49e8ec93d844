# support_lifecycle/services/password_policy.py
"""
Password policy checks and self-service password change.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any, Optional

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from support_lifecycle.constants import PasswordRules
from support_lifecycle.errors import PolicyViolation, Unauthenticated
from support_lifecycle.models import ActionType, AppConfiguration, PerformedVia, User
from support_lifecycle.services.access_guard import require_user
from support_lifecycle.services.audit import AuditCategory, record_if_enabled
from support_lifecycle.services.settings_resolver import SupportSettings, load_support_settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    # Unrecognised hash formats never verify
    if not password_hash or pwd_context.identify(password_hash) is None:
        return False
    return pwd_context.verify(password, password_hash)


def password_policy_errors(settings: SupportSettings, password: str) -> list[str]:
    """List the requirements password misses under the configured policy."""
    errors = []
    if settings.pw_require_min_length and len(password) < PasswordRules.MIN_LENGTH:
        errors.append(f"at least {PasswordRules.MIN_LENGTH} characters")
    if settings.pw_require_uppercase and not re.search(r"[A-Z]", password):
        errors.append("an uppercase letter")
    if settings.pw_require_numbers and not re.search(r"[0-9]", password):
        errors.append("a number")
    if settings.pw_require_special and not re.search(r"[^A-Za-z0-9]", password):
        errors.append("a special character")
    return errors


def change_own_password(
    db: Session,
    session: Optional[Mapping[str, Any]],
    config: Optional[AppConfiguration],
    current_password: str,
    new_password: str,
    performed_via: PerformedVia = PerformedVia.WEB_UI,
) -> None:
    """
    Change the caller's own password.

    Raises:
        Unauthenticated: no session identity, or current password mismatch
        PolicyViolation: missing/unchanged password or policy failure
    """
    user_id = require_user(db, session)

    current_password = current_password or ""
    new_password = new_password or ""
    if not current_password or not new_password:
        raise PolicyViolation("Current password and new password are required")
    if current_password == new_password:
        raise PolicyViolation("New password must be different")

    user = db.get(User, user_id)
    if user.password_hash and not verify_password(current_password, user.password_hash):
        logger.warning(f"Password change rejected for user {user_id}: current password mismatch")
        raise Unauthenticated("Current password is incorrect")

    settings = load_support_settings(config)
    errors = password_policy_errors(settings, new_password)
    if errors:
        raise PolicyViolation(f"Password policy failed: include {', '.join(errors)}")

    user.password_hash = hash_password(new_password)
    db.add(user)

    record_if_enabled(
        db,
        settings,
        AuditCategory.AUTH,
        action=ActionType.CONFIG_CHANGED,
        description="User changed own password",
        performed_by=user_id,
        performed_via=performed_via,
        metadata={"event": "password_change", "user_id": user_id},
    )
    db.commit()

    logger.info(f"User {user_id} changed their password", extra={"actor": user_id})
