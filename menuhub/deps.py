from __future__ import annotations

import logging
from typing import Iterable

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from menuhub.core.config import IS_PROD, ONBOARDING_API_TOKEN
from menuhub.core.database import get_db
from menuhub.core.request_context import set_request_context
from menuhub.models.admin_user import AdminUser
from menuhub.services.admin_auth import ADMIN_SESSION_COOKIE, decode_admin_session
from menuhub.services.tenant_context import get_current_tenant_id

logger = logging.getLogger(__name__)


def _log_access_denied(*, reason: str, user: AdminUser | None, tenant_id: int | None, request: Request) -> None:
    logger.warning(
        "Access denied (%s): user_id=%s user_role=%s user_tenant=%s tenant_id=%s endpoint=%s %s",
        reason,
        getattr(user, "id", None),
        getattr(user, "role", None),
        getattr(user, "tenant_id", None),
        tenant_id,
        request.method,
        request.url.path,
    )


def get_current_admin_user(request: Request, db: Session = Depends(get_db)) -> AdminUser:
    token = request.cookies.get(ADMIN_SESSION_COOKIE)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    payload = decode_admin_session(token)
    if not payload or not payload.get("user_id"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")

    user = (
        db.query(AdminUser)
        .filter(AdminUser.id == int(payload["user_id"]), AdminUser.active.is_(True))
        .first()
    )
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin not found")
    if payload.get("tenant_id") is not None and int(user.tenant_id) != int(payload["tenant_id"]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")
    return user


def require_admin_user(request: Request, user: AdminUser = Depends(get_current_admin_user)) -> AdminUser:
    """Logged-in admin whose restaurant matches the request's tenant."""
    tenant = getattr(request.state, "tenant", None)
    tenant_id = getattr(tenant, "id", None)
    if tenant_id is not None and int(tenant_id) != int(user.tenant_id):
        _log_access_denied(reason="tenant_mismatch", user=user, tenant_id=tenant_id, request=request)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed for this restaurant")
    request.state.user = user
    set_request_context(user_id=user.id)
    return user


def require_role(roles: Iterable[str]):
    allowed = {role.strip().lower() for role in roles}
    if "admin" in allowed or "owner" in allowed:
        allowed.update({"admin", "owner"})

    def _dependency(request: Request, user: AdminUser = Depends(require_admin_user)) -> AdminUser:
        if (user.role or "").strip().lower() not in allowed:
            _log_access_denied(reason="role_denied", user=user, tenant_id=user.tenant_id, request=request)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return _dependency


def get_request_tenant_id(request: Request) -> int:
    return get_current_tenant_id(request)


def get_admin_tenant_id(request: Request, _user: AdminUser = Depends(require_admin_user)) -> int:
    return get_current_tenant_id(request)


def require_onboarding_token(x_onboarding_token: str | None = Header(default=None)) -> None:
    if not IS_PROD:
        return
    configured = (ONBOARDING_API_TOKEN or "").strip()
    if not configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Onboarding requires ONBOARDING_API_TOKEN in production",
        )
    if (x_onboarding_token or "").strip() != configured:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid onboarding token")


MENU_EDITOR_ROLES = ("admin", "manager")
