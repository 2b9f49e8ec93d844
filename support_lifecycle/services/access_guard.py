# support_lifecycle/services/access_guard.py
"""
Caller identity resolution and admin gating.

Sessions reference their user either as a bare id string or as a linked
record ({"_link": id} / {"id": id}); role lists hold bare keys or
{"key": ...} objects. Both shapes normalize through the pure helpers below so
every entry point sees the same SessionUser.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from support_lifecycle.config import get_settings
from support_lifecycle.errors import Forbidden, Unauthenticated
from support_lifecycle.models import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """Canonical caller identity."""

    id: str
    roles: frozenset[str]


def get_session_user_id(session: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Extract the user id from a session, whatever shape the reference has."""
    if not session:
        return None

    user_ref = session.get("user")
    if not user_ref:
        return None
    if isinstance(user_ref, str):
        return user_ref
    if isinstance(user_ref, Mapping):
        user_id = user_ref.get("_link") or user_ref.get("id")
        return str(user_id) if user_id else None
    return None


def normalize_role_keys(role_list: Optional[Iterable[Any]]) -> frozenset[str]:
    """Flatten role entries (bare strings or {"key": ...}) into a set of keys."""
    if not role_list or isinstance(role_list, (str, Mapping)):
        return frozenset()

    keys = set()
    for role in role_list:
        key = role if isinstance(role, str) else role.get("key") if isinstance(role, Mapping) else None
        if key:
            keys.add(key)
    return frozenset(keys)


def resolve_session_user(db: Session, session: Optional[Mapping[str, Any]]) -> SessionUser:
    """
    Resolve the session to a known user.

    Raises Unauthenticated when no id is present or the id matches no user.
    """
    user_id = get_session_user_id(session)
    if not user_id:
        raise Unauthenticated()

    user = db.get(User, user_id)
    if user is None:
        logger.warning(f"Session references unknown user {user_id}")
        raise Unauthenticated()

    return SessionUser(id=user.id, roles=normalize_role_keys(user.role_list))


def require_user(db: Session, session: Optional[Mapping[str, Any]]) -> str:
    """Require an authenticated caller; returns the user id."""
    return resolve_session_user(db, session).id


def require_admin(
    db: Session,
    session: Optional[Mapping[str, Any]],
    admin_roles: Optional[Iterable[str]] = None,
) -> str:
    """
    Require an authenticated admin caller; returns the user id.

    Mandatory first step of every destructive or exporting operation.
    """
    user = resolve_session_user(db, session)
    allowed = frozenset(admin_roles) if admin_roles is not None else get_settings().admin_role_keys

    if user.roles.isdisjoint(allowed):
        logger.warning(f"Admin access denied for user {user.id}", extra={"actor": user.id})
        raise Forbidden()

    return user.id
