"""Identity accounts used by onboarding.

The provider owns its own sessions and commits independently of any caller
transaction, the same way a hosted identity service would. Provisioning
therefore has to undo a created account explicitly when a later step fails.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from menuhub.core.database import SessionLocal
from menuhub.core.errors import ConflictError, ValidationError
from menuhub.models.auth_account import AuthAccount
from menuhub.services.passwords import MIN_PASSWORD_LENGTH, hash_password, verify_password

logger = logging.getLogger(__name__)
AUTH_PREFIX = "[AUTH_PROVIDER]"


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str
    metadata: dict[str, Any] = field(default_factory=dict)


class AuthProvider(Protocol):
    def create_account(self, email: str, password: str, metadata: Optional[dict[str, Any]] = None) -> AuthUser:
        ...

    def delete_account(self, account_id: str) -> None:
        ...

    def list_accounts(self) -> list[AuthUser]:
        ...

    def find_account_by_email(self, email: str) -> Optional[AuthUser]:
        ...

    def verify_credentials(self, email: str, password: str) -> Optional[AuthUser]:
        ...


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _to_user(account: AuthAccount) -> AuthUser:
    metadata = json.loads(account.metadata_json) if account.metadata_json else {}
    return AuthUser(id=account.id, email=account.email, metadata=metadata)


class LocalAuthProvider:
    """Auth accounts kept in the ``auth_accounts`` table."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def create_account(self, email: str, password: str, metadata: Optional[dict[str, Any]] = None) -> AuthUser:
        email = normalize_email(email)
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        db = self._session_factory()
        try:
            account = AuthAccount(
                id=str(uuid.uuid4()),
                email=email,
                password_hash=hash_password(password),
                metadata_json=json.dumps(metadata or {}),
            )
            db.add(account)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise ConflictError("This email is already registered") from exc
            db.refresh(account)
            logger.info("%s account created account_id=%s", AUTH_PREFIX, account.id)
            return _to_user(account)
        finally:
            db.close()

    def delete_account(self, account_id: str) -> None:
        db = self._session_factory()
        try:
            deleted = db.query(AuthAccount).filter(AuthAccount.id == account_id).delete(synchronize_session=False)
            db.commit()
            logger.info("%s account deleted account_id=%s rows=%s", AUTH_PREFIX, account_id, deleted)
        finally:
            db.close()

    def list_accounts(self) -> list[AuthUser]:
        db = self._session_factory()
        try:
            return [_to_user(account) for account in db.query(AuthAccount).order_by(AuthAccount.email.asc()).all()]
        finally:
            db.close()

    def find_account_by_email(self, email: str) -> Optional[AuthUser]:
        db = self._session_factory()
        try:
            account = db.query(AuthAccount).filter(AuthAccount.email == normalize_email(email)).first()
            return _to_user(account) if account is not None else None
        finally:
            db.close()

    def verify_credentials(self, email: str, password: str) -> Optional[AuthUser]:
        db = self._session_factory()
        try:
            account = db.query(AuthAccount).filter(AuthAccount.email == normalize_email(email)).first()
            if account is None or not verify_password(password, account.password_hash):
                return None
            return _to_user(account)
        finally:
            db.close()


def get_auth_provider() -> AuthProvider:
    return LocalAuthProvider()
