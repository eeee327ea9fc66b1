from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from menuhub.models.admin_audit_log import AdminAuditLog


def log_admin_action(
    db: Session,
    *,
    tenant_id: int,
    user_id: Optional[int],
    action: str,
    entity_type: Optional[str] = None,
    entity_id: Any = None,
    meta: Optional[Mapping[str, Any]] = None,
    commit: bool = True,
) -> AdminAuditLog:
    """Record who changed what. Entity ids are stored as text (groups use string ids)."""
    entry = AdminAuditLog(
        tenant_id=tenant_id,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=None if entity_id is None else str(entity_id),
        meta_json=json.dumps(meta, default=str) if meta else None,
    )
    db.add(entry)
    if commit:
        db.commit()
    return entry


def list_admin_actions(db: Session, tenant_id: int, *, limit: int = 100) -> list[AdminAuditLog]:
    return (
        db.query(AdminAuditLog)
        .filter(AdminAuditLog.tenant_id == tenant_id)
        .order_by(AdminAuditLog.created_at.desc(), AdminAuditLog.id.desc())
        .limit(limit)
        .all()
    )
