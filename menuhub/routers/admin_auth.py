from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from menuhub.core.database import get_db
from menuhub.deps import get_current_admin_user
from menuhub.models.admin_user import AdminUser
from menuhub.models.tenant import Tenant
from menuhub.services.admin_audit import log_admin_action
from menuhub.services.admin_auth import (
    clear_admin_session_cookie,
    create_admin_session,
    set_admin_session_cookie,
)
from menuhub.services.passwords import hash_password, needs_rehash, verify_password
from menuhub.services.tenant_resolver import TenantResolver

router = APIRouter(prefix="/api/admin/auth", tags=["admin-auth"])
logger = logging.getLogger(__name__)


class AdminLoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    subdomain: Optional[str] = Field(default=None, max_length=63)


class AdminUserRead(BaseModel):
    id: int
    tenant_id: int
    email: EmailStr
    name: str
    role: str
    active: bool


def _resolve_login_tenant(db: Session, request: Request, payload: AdminLoginPayload) -> Optional[Tenant]:
    tenant = getattr(request.state, "tenant", None)
    if tenant is not None:
        return tenant
    if payload.subdomain:
        return TenantResolver.resolve_from_subdomain(db, payload.subdomain)
    return None


def _candidate_users(db: Session, tenant: Optional[Tenant], email: str) -> list[AdminUser]:
    query = db.query(AdminUser).filter(func.lower(AdminUser.email) == email, AdminUser.active.is_(True))
    if tenant is not None:
        query = query.filter(AdminUser.tenant_id == tenant.id)
    return query.all()


@router.post("/login", response_model=AdminUserRead)
def admin_login(
    payload: AdminLoginPayload,
    response: Response,
    request: Request,
    db: Session = Depends(get_db),
):
    normalized_email = payload.email.strip().lower()
    tenant = _resolve_login_tenant(db, request, payload)
    if tenant is None and payload.subdomain:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    # Without a tenant hint the email must match exactly one restaurant
    matched = [
        user
        for user in _candidate_users(db, tenant, normalized_email)
        if verify_password(payload.password, user.password_hash)
    ]
    if len(matched) != 1:
        logger.warning(
            "Admin login failed email=%s tenant_id=%s matches=%s",
            normalized_email,
            getattr(tenant, "id", None),
            len(matched),
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user = matched[0]
    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
    log_admin_action(
        db,
        tenant_id=user.tenant_id,
        user_id=user.id,
        action="login",
        entity_type="admin_user",
        entity_id=user.id,
    )

    token = create_admin_session(user_id=user.id, tenant_id=user.tenant_id)
    set_admin_session_cookie(response, token)
    return AdminUserRead(
        id=user.id,
        tenant_id=user.tenant_id,
        email=user.email,
        name=user.name,
        role=user.role,
        active=bool(user.active),
    )


@router.post("/logout")
def admin_logout(response: Response):
    clear_admin_session_cookie(response)
    return {"ok": True}


@router.get("/me", response_model=AdminUserRead)
def admin_me(user: AdminUser = Depends(get_current_admin_user)):
    return AdminUserRead(
        id=user.id,
        tenant_id=user.tenant_id,
        email=user.email,
        name=user.name,
        role=user.role,
        active=bool(user.active),
    )
