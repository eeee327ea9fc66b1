from __future__ import annotations

from fastapi import Request

from menuhub.core.errors import NoTenantContext


def get_current_tenant_id(request: Request) -> int:
    """Tenant resolved for this request by the middleware.

    Raises ``NoTenantContext`` when none was resolved; callers never fall back
    to an unscoped query.
    """
    tenant = getattr(request.state, "tenant", None)
    tenant_id = getattr(tenant, "id", None)
    if tenant_id is None:
        raise NoTenantContext()
    try:
        return int(tenant_id)
    except (TypeError, ValueError) as exc:
        raise NoTenantContext() from exc
