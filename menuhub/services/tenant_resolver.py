from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

from fastapi import Request
from sqlalchemy.orm import Session

from menuhub.core import config
from menuhub.models.tenant import Tenant
from menuhub.utils.slug import normalize_subdomain

logger = logging.getLogger(__name__)
TENANT_PREFIX = "[TENANT]"

# Hosts under the base domain that never name a restaurant
NON_TENANT_SUBDOMAINS = frozenset({"www", "admin", "api", "app"})


class TenantResolver:
    """Resolve the restaurant a request belongs to."""

    @staticmethod
    def normalize_host(host: str) -> str:
        normalized = (host or "").split(",")[0].strip().lower()
        if not normalized:
            return ""
        if "://" in normalized:
            return (urlsplit(normalized).hostname or "").lower()
        normalized = normalized.split("/")[0].strip()
        return normalized.split(":")[0].strip()

    @classmethod
    def base_domain(cls) -> str:
        normalized = cls.normalize_host(config.PUBLIC_BASE_DOMAIN)
        if normalized.startswith("*."):
            normalized = normalized[2:]
        return normalized.lstrip(".")

    @classmethod
    def extract_subdomain(cls, host: str) -> Optional[str]:
        """Left-most label of ``<subdomain>.<PUBLIC_BASE_DOMAIN>``; ``None`` for any other host."""
        normalized_host = cls.normalize_host(host)
        base_domain = cls.base_domain()
        if not normalized_host or not base_domain:
            return None
        suffix = f".{base_domain}"
        if not normalized_host.endswith(suffix):
            return None
        label = normalized_host[: -len(suffix)]
        if "." in label:
            return None
        subdomain = normalize_subdomain(label)
        if not subdomain or subdomain in NON_TENANT_SUBDOMAINS:
            return None
        return subdomain

    @classmethod
    def extract_subdomain_from_request(cls, request: Request) -> Optional[str]:
        host = request.headers.get("x-forwarded-host") or request.headers.get("host") or ""
        return cls.extract_subdomain(host)

    @staticmethod
    def active_tenant_query(db: Session):
        return db.query(Tenant).filter(Tenant.is_active.is_(True), Tenant.deleted_at.is_(None))

    @classmethod
    def resolve_from_subdomain(cls, db: Session, subdomain: str) -> Optional[Tenant]:
        normalized = normalize_subdomain(subdomain)
        if not normalized:
            return None
        return cls.active_tenant_query(db).filter(Tenant.subdomain == normalized).first()

    @classmethod
    def resolve_by_id(cls, db: Session, tenant_id: object) -> Optional[Tenant]:
        try:
            parsed = int(tenant_id)
        except (TypeError, ValueError):
            return None
        return cls.active_tenant_query(db).filter(Tenant.id == parsed).first()
