from __future__ import annotations

import logging

from starlette.middleware.base import BaseHTTPMiddleware

from menuhub.core import database
from menuhub.core.request_context import set_request_context
from menuhub.services.admin_auth import ADMIN_SESSION_COOKIE, decode_admin_session
from menuhub.services.tenant_resolver import TENANT_PREFIX, TenantResolver

logger = logging.getLogger(__name__)

# X-Tenant-ID is honoured only for customer-facing reads
PUBLIC_PATH_PREFIX = "/api/public/"


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Attach ``request.state.tenant``.

    Order: restaurant subdomain of the host, then the admin session cookie,
    then ``X-Tenant-ID`` on public paths. Inactive or deleted tenants never
    resolve.
    """

    async def dispatch(self, request, call_next):
        request.state.tenant = None

        db = database.SessionLocal()
        try:
            tenant = None
            subdomain = TenantResolver.extract_subdomain_from_request(request)
            if subdomain:
                tenant = TenantResolver.resolve_from_subdomain(db, subdomain)
                if tenant is None:
                    logger.info("%s unknown subdomain=%s", TENANT_PREFIX, subdomain)
            else:
                token = request.cookies.get(ADMIN_SESSION_COOKIE)
                payload = decode_admin_session(token) if token else None
                if payload and payload.get("tenant_id") is not None:
                    tenant = TenantResolver.resolve_by_id(db, payload["tenant_id"])
                if tenant is None and request.url.path.startswith(PUBLIC_PATH_PREFIX):
                    header_tenant = request.headers.get("x-tenant-id")
                    if header_tenant:
                        tenant = TenantResolver.resolve_by_id(db, header_tenant)
            if tenant is not None:
                db.expunge(tenant)
        finally:
            db.close()

        request.state.tenant = tenant
        if tenant is not None:
            set_request_context(tenant_id=tenant.id)
        return await call_next(request)
