from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from menuhub.core.database import get_db
from menuhub.deps import get_admin_tenant_id, require_role
from menuhub.models.admin_user import AdminUser
from menuhub.services.admin_audit import list_admin_actions

router = APIRouter(prefix="/api/admin/audit", tags=["admin-audit"])


class AdminAuditRead(BaseModel):
    id: int
    tenant_id: int
    user_id: Optional[int]
    action: str
    entity_type: Optional[str]
    entity_id: Optional[str]
    meta: Optional[Dict[str, Any]]
    created_at: Optional[datetime]


@router.get("", response_model=List[AdminAuditRead])
def list_audit_logs(
    limit: int = Query(100, ge=1, le=500),
    tenant_id: int = Depends(get_admin_tenant_id),
    db: Session = Depends(get_db),
    _user: AdminUser = Depends(require_role(["admin", "owner"])),
):
    return [
        AdminAuditRead(
            id=entry.id,
            tenant_id=entry.tenant_id,
            user_id=entry.user_id,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            meta=json.loads(entry.meta_json) if entry.meta_json else None,
            created_at=entry.created_at,
        )
        for entry in list_admin_actions(db, tenant_id, limit=limit)
    ]
