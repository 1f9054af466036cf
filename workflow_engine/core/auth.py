"""
Caller identity for workflow mutations.

Every create/update/delete records who performed it, so routes resolve a
`UserContext` from request headers and pass it explicitly into the
services. With `WORKFLOW_AUTH_DISABLED` on (the default for local work)
the caller is an administrator named by `X-User-Name`. Otherwise a shared
bearer token (`WORKFLOW_AUTH_TOKEN`) must be presented and the role is
taken from `X-User-Role`.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException

from .config import env_flag, get_app_env

ADMIN_ROLES = {"ADMIN", "WORKFLOW_ADMIN"}
SYSTEM_USER = "system"
DEV_FALLBACK_TOKEN = "demo-token"


@dataclass
class UserContext:
    role: str
    user_id: Optional[str] = None
    username: Optional[str] = None

    @property
    def actor(self) -> str:
        """Name written into created_by / updated_by / executed_by."""
        return self.username or self.user_id or SYSTEM_USER

    @property
    def is_admin(self) -> bool:
        return self.role.upper() in ADMIN_ROLES


def system_user() -> UserContext:
    return UserContext(role="ADMIN", user_id=SYSTEM_USER, username=SYSTEM_USER)


def _configured_token() -> Optional[str]:
    token = (os.getenv("WORKFLOW_AUTH_TOKEN") or "").strip()
    if token:
        return token
    # Prod never accepts the fallback token.
    return None if get_app_env() == "prod" else DEV_FALLBACK_TOKEN


def _bearer(authorization: Optional[str]) -> Optional[str]:
    scheme, _, credentials = (authorization or "").partition(" ")
    if scheme.lower() != "bearer":
        return None
    return credentials.strip() or None


def get_current_user(
    authorization: Optional[str] = Header(None),
    x_user_name: Optional[str] = Header(None, alias="X-User-Name"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> UserContext:
    name = (x_user_name or "").strip() or None
    if env_flag("WORKFLOW_AUTH_DISABLED", "true"):
        return UserContext(role="ADMIN", user_id=name, username=name)

    presented = _bearer(authorization)
    if presented is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    expected = _configured_token()
    if expected is None or not secrets.compare_digest(presented, expected):
        raise HTTPException(status_code=401, detail="Invalid token")

    name = name or "service"
    return UserContext(role=(x_user_role or "ADMIN").strip().upper(), user_id=name, username=name)


def require_roles(*roles: str):
    """Dependency factory: 403 unless the caller holds one of `roles`."""
    allowed = frozenset(r.strip().upper() for r in roles if r and r.strip())

    def _check(user: UserContext = Depends(get_current_user)) -> UserContext:
        if allowed and user.role.upper() not in allowed:
            raise HTTPException(status_code=403, detail=f"Role {user.role} may not modify workflows")
        return user

    return _check


require_admin = require_roles(*ADMIN_ROLES)
