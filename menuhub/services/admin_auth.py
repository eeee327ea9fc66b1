from __future__ import annotations

import time
from typing import Any, Dict, Optional

from fastapi import Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from sqlalchemy import func
from sqlalchemy.orm import Session

from menuhub.core import config
from menuhub.core.database import transaction
from menuhub.core.errors import NotFound, ValidationError
from menuhub.models.admin_user import AdminUser
from menuhub.models.tenant import Tenant
from menuhub.services.passwords import MIN_PASSWORD_LENGTH, hash_password

ADMIN_SESSION_COOKIE = "menuhub_admin_session"
ADMIN_SESSION_SALT = "menuhub-admin-session"


def _serializer() -> URLSafeTimedSerializer:
    if not config.ADMIN_SESSION_SECRET:
        raise RuntimeError("ADMIN_SESSION_SECRET is not configured")
    return URLSafeTimedSerializer(config.ADMIN_SESSION_SECRET, salt=ADMIN_SESSION_SALT)


def create_admin_session(*, user_id: int, tenant_id: int) -> str:
    return _serializer().dumps(
        {
            "user_id": int(user_id),
            "tenant_id": int(tenant_id),
            "exp": int(time.time()) + config.ADMIN_SESSION_MAX_AGE_SECONDS,
        }
    )


def decode_admin_session(token: str) -> Optional[Dict[str, Any]]:
    """Payload of a valid, unexpired session token; ``None`` otherwise."""
    try:
        payload = _serializer().loads(token, max_age=config.ADMIN_SESSION_MAX_AGE_SECONDS)
    except (BadSignature, SignatureExpired, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    try:
        if int(payload.get("exp", 0)) < int(time.time()):
            return None
    except (TypeError, ValueError):
        return None
    return payload


def _cookie_options() -> dict[str, Any]:
    samesite = config.ADMIN_SESSION_COOKIE_SAMESITE
    secure = config.ADMIN_SESSION_COOKIE_SECURE
    # browsers drop SameSite=None cookies that are not Secure
    if samesite == "none" and not secure:
        samesite = "lax"
    return {
        "domain": config.ADMIN_SESSION_COOKIE_DOMAIN,
        "httponly": True,
        "samesite": samesite,
        "secure": secure,
        "path": "/",
    }


def set_admin_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=ADMIN_SESSION_COOKIE,
        value=token,
        max_age=config.ADMIN_SESSION_MAX_AGE_SECONDS,
        **_cookie_options(),
    )


def clear_admin_session_cookie(response: Response) -> None:
    options = _cookie_options()
    response.delete_cookie(
        key=ADMIN_SESSION_COOKIE,
        path=options["path"],
        domain=options["domain"],
        secure=options["secure"],
        httponly=options["httponly"],
        samesite=options["samesite"],
    )


def upsert_admin_user(
    db: Session,
    *,
    tenant_id: int,
    email: str,
    name: str,
    role: str,
    password: Optional[str],
) -> tuple[AdminUser, bool]:
    """Create an admin for the tenant, or refresh name, role and password of an existing one."""
    email = email.strip().lower()
    tenant = db.query(Tenant.id).filter(Tenant.id == tenant_id, Tenant.deleted_at.is_(None)).first()
    if tenant is None:
        raise NotFound("Restaurant", tenant_id)
    if password is not None and len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    existing = (
        db.query(AdminUser)
        .filter(AdminUser.tenant_id == tenant_id, func.lower(AdminUser.email) == email)
        .first()
    )
    if existing is not None:
        with transaction(db):
            existing.name = name
            existing.role = role
            existing.active = True
            if password:
                existing.password_hash = hash_password(password)
        db.refresh(existing)
        return existing, False

    if not password:
        raise ValidationError("A password is required to create an admin")
    with transaction(db):
        admin = AdminUser(
            tenant_id=tenant_id,
            email=email,
            name=name,
            password_hash=hash_password(password),
            role=role,
            active=True,
        )
        db.add(admin)
    db.refresh(admin)
    return admin, True
