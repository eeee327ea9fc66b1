"""Restaurant onboarding as a small saga.

Steps run in order. A failing critical step stops the flow and the
compensators registered by earlier steps run in reverse order. A failing
non-critical step is logged and skipped. The auth account lives outside the
database transaction, so it is the one resource that needs an explicit undo,
and only when this run created it: an account reused from an earlier,
interrupted signup is never deleted.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from menuhub.core import config
from menuhub.core.errors import ConflictError, MenuHubError, StorageFailure, ValidationError
from menuhub.models.admin_user import AdminUser
from menuhub.models.menu_category import MenuCategory
from menuhub.models.subscription import Subscription
from menuhub.models.tenant import Tenant
from menuhub.models.tenant_settings import TenantSettings
from menuhub.schemas.onboarding import OnboardingRequest
from menuhub.services.auth_provider import AuthProvider, AuthUser, normalize_email
from menuhub.services.email_sender import EmailAttachment, EmailSender, render_welcome_email
from menuhub.services.passwords import hash_password
from menuhub.services.qr_code import QRCodeGenerator
from menuhub.services.tenant_settings import DEFAULT_OPERATING_HOURS
from menuhub.utils.slug import normalize_subdomain

logger = logging.getLogger(__name__)
PROVISIONING_PREFIX = "[PROVISIONING]"

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]*[a-z0-9])?$")
SUBDOMAIN_MIN_LENGTH = 3
SUBDOMAIN_MAX_LENGTH = 63

RESERVED_SUBDOMAINS = frozenset(
    {
        "www", "admin", "api", "app", "dashboard", "mail", "smtp", "ftp", "webmail",
        "support", "help", "blog", "forum", "shop", "store", "cdn", "static", "assets",
        "media", "files", "download", "upload", "test", "staging", "dev", "demo", "beta",
        "alpha", "prod", "production", "localhost", "menuhub", "menu", "order", "checkout",
        "payment", "billing", "account", "settings", "profile", "login", "signup",
        "register", "auth", "oauth", "status", "docs",
    }
)

PRE_ACCOUNT_STEPS = frozenset({"CheckUserExists", "CheckSubdomainAvailable"})

DEFAULT_CATEGORIES = (
    ("Beverages", "Coffee"),
    ("Food", "UtensilsCrossed"),
    ("Desserts", "IceCream"),
    ("Specials", "Star"),
)


# Availability checks


def subdomain_problems(subdomain: str) -> list[str]:
    problems: list[str] = []
    if not SUBDOMAIN_MIN_LENGTH <= len(subdomain) <= SUBDOMAIN_MAX_LENGTH:
        problems.append(
            f"Subdomain must be between {SUBDOMAIN_MIN_LENGTH} and {SUBDOMAIN_MAX_LENGTH} characters"
        )
    if not SUBDOMAIN_PATTERN.match(subdomain):
        problems.append("Subdomain may only contain lowercase letters, numbers and inner hyphens")
    return problems


def subdomain_taken(db: Session, subdomain: str) -> bool:
    # soft-deleted tenants keep their subdomain
    return db.query(Tenant.id).filter(Tenant.subdomain == subdomain).first() is not None


def ensure_subdomain_available(db: Session, raw_subdomain: str) -> str:
    """Normalized subdomain, or a typed error saying why it cannot be used."""
    subdomain = normalize_subdomain(raw_subdomain)
    problems = subdomain_problems(subdomain)
    if problems:
        raise ValidationError(problems=problems)
    if subdomain in RESERVED_SUBDOMAINS:
        raise ConflictError("This subdomain is reserved", subdomain=subdomain)
    if subdomain_taken(db, subdomain):
        raise ConflictError("This subdomain is already taken", subdomain=subdomain)
    return subdomain


def check_subdomain(db: Session, raw_subdomain: str) -> tuple[str, bool, Optional[str]]:
    subdomain = normalize_subdomain(raw_subdomain)
    try:
        ensure_subdomain_available(db, raw_subdomain)
    except MenuHubError as exc:
        return subdomain, False, exc.detail
    return subdomain, True, None


def find_tenant_for_email(db: Session, email: str) -> Optional[Tenant]:
    return (
        db.query(Tenant)
        .filter(Tenant.billing_email == normalize_email(email), Tenant.deleted_at.is_(None))
        .first()
    )


def check_email(db: Session, auth: AuthProvider, email: str) -> tuple[str, Optional[str]]:
    """``available``, ``registered`` (with the tenant's subdomain) or ``incomplete``."""
    tenant = find_tenant_for_email(db, email)
    if tenant is not None:
        return "registered", tenant.subdomain
    if auth.find_account_by_email(email) is not None:
        return "incomplete", None
    return "available", None


def menu_url_for(tenant: Tenant) -> str:
    if config.IS_DEV:
        return config.DEV_MENU_URL_TEMPLATE.format(tenant_id=tenant.id, subdomain=tenant.subdomain)
    return f"https://{tenant.subdomain}.{config.PUBLIC_BASE_DOMAIN}/menu"


# Saga plumbing


@dataclass
class ProvisioningContext:
    db: Session
    request: OnboardingRequest
    auth: AuthProvider
    qr_generator: QRCodeGenerator
    email_sender: EmailSender
    email: str = ""
    subdomain: str = ""
    account: Optional[AuthUser] = None
    account_created: bool = False
    tenant: Optional[Tenant] = None
    admin_user: Optional[AdminUser] = None
    qr_png: Optional[bytes] = None
    qr_data_url: Optional[str] = None


@dataclass(frozen=True)
class ProvisioningStep:
    name: str
    run: Callable[[ProvisioningContext], None]
    critical: bool = True
    compensate: Optional[Callable[[ProvisioningContext], None]] = None
    # whether the compensator applies to what this particular run did
    compensate_when: Callable[[ProvisioningContext], bool] = lambda ctx: True


@dataclass
class ProvisioningResult:
    success: bool
    tenant_id: Optional[int] = None
    user_id: Optional[str] = None
    qr_code_data_url: Optional[str] = None
    error: Optional[str] = None
    failed_step: Optional[str] = None
    compensated_steps: list[str] = field(default_factory=list)
    manual_intervention_required: bool = False
    status_code: int = 201
    completed_steps: list[str] = field(default_factory=list)
    skipped_steps: list[str] = field(default_factory=list)
    subdomain: Optional[str] = None
    menu_url: Optional[str] = None


def _log(level: int, message: str, ctx: ProvisioningContext, step: str, *args) -> None:
    logger.log(
        level,
        f"%s {message}",
        PROVISIONING_PREFIX,
        *args,
        extra={"step": step, "subdomain": ctx.subdomain or None},
    )


def _compensate(
    ctx: ProvisioningContext,
    undo_stack: list[ProvisioningStep],
    result: ProvisioningResult,
) -> None:
    for step in reversed(undo_stack):
        try:
            step.compensate(ctx)
        except Exception:
            logger.exception(
                "%s compensation failed step=%s, manual cleanup needed",
                PROVISIONING_PREFIX,
                step.name,
                extra={"step": step.name, "subdomain": ctx.subdomain or None},
            )
            result.manual_intervention_required = True
            continue
        result.compensated_steps.append(step.name)
        _log(logging.WARNING, "compensated step=%s", ctx, step.name, step.name)


def run_saga(steps: list[ProvisioningStep], ctx: ProvisioningContext) -> ProvisioningResult:
    result = ProvisioningResult(success=False)
    undo_stack: list[ProvisioningStep] = []

    for step in steps:
        try:
            step.run(ctx)
        except Exception as exc:
            if isinstance(exc, MenuHubError):
                detail, status_code = exc.detail, exc.status_code
            elif isinstance(exc, SQLAlchemyError):
                detail, status_code = StorageFailure.default_detail, StorageFailure.status_code
            else:
                detail, status_code = "Restaurant setup failed, please retry", 500

            if not step.critical:
                logger.warning(
                    "%s non-critical step failed step=%s error=%s",
                    PROVISIONING_PREFIX,
                    step.name,
                    exc,
                    exc_info=not isinstance(exc, MenuHubError),
                    extra={"step": step.name, "subdomain": ctx.subdomain or None},
                )
                ctx.db.rollback()
                result.skipped_steps.append(step.name)
                continue

            logger.error(
                "%s critical step failed step=%s error=%s",
                PROVISIONING_PREFIX,
                step.name,
                exc,
                exc_info=not isinstance(exc, MenuHubError),
                extra={"step": step.name, "subdomain": ctx.subdomain or None},
            )
            ctx.db.rollback()
            result.error = detail
            result.status_code = status_code
            result.failed_step = step.name
            _compensate(ctx, undo_stack, result)
            account_removed = ctx.account_created and "CreateOrReuseAuthAccount" in result.compensated_steps
            if ctx.account is not None and not account_removed:
                result.user_id = ctx.account.id
                if not ctx.account_created and step.name not in PRE_ACCOUNT_STEPS:
                    # reused account from an earlier signup stays behind without a tenant
                    result.manual_intervention_required = True
            _log(
                logging.ERROR,
                "aborted failed_step=%s compensated=%s manual_intervention=%s",
                ctx,
                step.name,
                step.name,
                result.compensated_steps,
                result.manual_intervention_required,
            )
            return result

        result.completed_steps.append(step.name)
        if step.compensate is not None and step.compensate_when(ctx):
            undo_stack.append(step)
        _log(logging.INFO, "step completed step=%s", ctx, step.name, step.name)

    result.success = True
    result.status_code = 201
    result.tenant_id = ctx.tenant.id if ctx.tenant is not None else None
    result.user_id = ctx.account.id if ctx.account is not None else None
    result.qr_code_data_url = ctx.qr_data_url
    result.subdomain = ctx.subdomain
    result.menu_url = menu_url_for(ctx.tenant) if ctx.tenant is not None else None
    return result


# Steps


def _check_user_exists(ctx: ProvisioningContext) -> None:
    ctx.email = normalize_email(ctx.request.email)
    if find_tenant_for_email(ctx.db, ctx.email) is not None:
        raise ConflictError("This email is already registered")
    existing = ctx.auth.find_account_by_email(ctx.email)
    if existing is None:
        return
    if ctx.auth.verify_credentials(ctx.email, ctx.request.password) is None:
        raise ConflictError("This email is already registered")
    ctx.account = existing
    _log(logging.INFO, "resuming signup for existing account account_id=%s", ctx, "CheckUserExists", existing.id)


def _check_subdomain_available(ctx: ProvisioningContext) -> None:
    ctx.subdomain = ensure_subdomain_available(ctx.db, ctx.request.subdomain)


def _create_or_reuse_account(ctx: ProvisioningContext) -> None:
    if ctx.account is not None:
        return
    ctx.account = ctx.auth.create_account(
        ctx.email,
        ctx.request.password,
        metadata={"restaurant_name": ctx.request.restaurant_name, "subdomain": ctx.subdomain},
    )
    ctx.account_created = True


def _delete_created_account(ctx: ProvisioningContext) -> None:
    if ctx.account is None:
        return
    ctx.auth.delete_account(ctx.account.id)


def _requested_hours(request: OnboardingRequest) -> dict:
    if not request.operating_hours:
        return DEFAULT_OPERATING_HOURS
    return {day: hours.model_dump() for day, hours in request.operating_hours.items()}


def _create_tenant_record(ctx: ProvisioningContext) -> None:
    request = ctx.request
    if subdomain_taken(ctx.db, ctx.subdomain):
        raise ConflictError("This subdomain was just taken, please choose another", subdomain=ctx.subdomain)

    tenant = Tenant(
        subdomain=ctx.subdomain,
        restaurant_name=request.restaurant_name.strip(),
        business_name=(request.business_name or request.restaurant_name).strip(),
        billing_email=ctx.email,
        email=ctx.email,
        phone=request.phone,
        address_line1=request.address_line1,
        address_line2=request.address_line2,
        city=request.city,
        state=request.state,
        postal_code=request.postal_code,
        country=request.country,
        cuisine_types=list(dict.fromkeys(request.cuisine_types)),
        operating_hours=_requested_hours(request),
        logo_url=request.logo_url,
        subscription_tier=request.plan,
        subscription_status="trialing" if request.checkout_session_id or request.payment_customer_id else "active",
        is_active=True,
    )
    ctx.db.add(tenant)
    try:
        ctx.db.commit()
    except IntegrityError as exc:
        ctx.db.rollback()
        raise ConflictError("This subdomain was just taken, please choose another", subdomain=ctx.subdomain) from exc
    ctx.db.refresh(tenant)
    ctx.tenant = tenant


def _create_admin_user(ctx: ProvisioningContext) -> None:
    admin = AdminUser(
        tenant_id=ctx.tenant.id,
        auth_account_id=ctx.account.id if ctx.account else None,
        email=ctx.email,
        name=(ctx.request.owner_name or ctx.request.restaurant_name).strip(),
        password_hash=hash_password(ctx.request.password),
        role="owner",
        active=True,
    )
    ctx.db.add(admin)
    ctx.db.commit()
    ctx.db.refresh(admin)
    ctx.admin_user = admin


def _create_settings(ctx: ProvisioningContext) -> None:
    ctx.db.add(
        TenantSettings(
            tenant_id=ctx.tenant.id,
            restaurant_name=ctx.tenant.restaurant_name,
            business_hours=ctx.tenant.operating_hours or DEFAULT_OPERATING_HOURS,
            logo_url=ctx.tenant.logo_url,
            online_ordering_enabled=True,
            currency="USD",
            contact_phone=ctx.tenant.phone,
            contact_email=ctx.email,
        )
    )
    ctx.db.commit()


def _create_subscription(ctx: ProvisioningContext) -> None:
    request = ctx.request
    if not (request.checkout_session_id or request.payment_customer_id):
        _log(logging.INFO, "no checkout session, subscription record skipped", ctx, "CreateSubscriptionRecord")
        return
    ctx.db.add(
        Subscription(
            tenant_id=ctx.tenant.id,
            plan=request.plan,
            billing_cycle=request.billing_cycle,
            status="trialing",
            checkout_session_id=request.checkout_session_id,
            payment_customer_id=request.payment_customer_id,
            payment_subscription_id=request.payment_subscription_id,
            trial_ends_at=datetime.now(timezone.utc) + timedelta(days=config.TRIAL_PERIOD_DAYS),
        )
    )
    ctx.db.commit()


def _create_default_categories(ctx: ProvisioningContext) -> None:
    for position, (name, icon) in enumerate(DEFAULT_CATEGORIES):
        ctx.db.add(MenuCategory(tenant_id=ctx.tenant.id, name=name, icon=icon, position=position, is_active=True))
    ctx.db.commit()


def _generate_qr_code(ctx: ProvisioningContext) -> None:
    png = ctx.qr_generator.generate(menu_url_for(ctx.tenant))
    data_url = ctx.qr_generator.to_data_url(png)
    ctx.tenant.qr_code_data_url = data_url
    ctx.tenant.qr_generated_at = datetime.now(timezone.utc)
    ctx.db.commit()
    ctx.qr_png = png
    ctx.qr_data_url = data_url


def _send_welcome_email(ctx: ProvisioningContext) -> None:
    attachments = []
    if ctx.qr_png:
        attachments.append(
            EmailAttachment(filename=f"{ctx.subdomain}-menu-qr.png", content=ctx.qr_png, content_type="image/png")
        )
    html = render_welcome_email(
        restaurant_name=ctx.tenant.restaurant_name,
        menu_url=menu_url_for(ctx.tenant),
        admin_url=config.ADMIN_PANEL_URL,
        subdomain=ctx.subdomain,
    )
    outcome = ctx.email_sender.send(ctx.email, f"Welcome to MenuHub, {ctx.tenant.restaurant_name}!", html, attachments)
    if not outcome.ok:
        raise RuntimeError(f"welcome email not sent: {outcome.error}")


def build_steps() -> list[ProvisioningStep]:
    return [
        ProvisioningStep("CheckUserExists", _check_user_exists),
        ProvisioningStep("CheckSubdomainAvailable", _check_subdomain_available),
        ProvisioningStep(
            "CreateOrReuseAuthAccount",
            _create_or_reuse_account,
            compensate=_delete_created_account,
            compensate_when=lambda ctx: ctx.account_created,
        ),
        ProvisioningStep("CreateTenantRecord", _create_tenant_record),
        ProvisioningStep("CreateAdminUserRecord", _create_admin_user, critical=False),
        ProvisioningStep("CreateSettingsRecord", _create_settings, critical=False),
        ProvisioningStep("CreateSubscriptionRecord", _create_subscription, critical=False),
        ProvisioningStep("CreateDefaultCategories", _create_default_categories, critical=False),
        ProvisioningStep("GenerateQRCode", _generate_qr_code, critical=False),
        ProvisioningStep("SendWelcomeEmail", _send_welcome_email, critical=False),
    ]


def provision_restaurant(
    db: Session,
    request: OnboardingRequest,
    *,
    auth: AuthProvider,
    qr_generator: QRCodeGenerator,
    email_sender: EmailSender,
    steps: Optional[list[ProvisioningStep]] = None,
) -> ProvisioningResult:
    ctx = ProvisioningContext(
        db=db,
        request=request,
        auth=auth,
        qr_generator=qr_generator,
        email_sender=email_sender,
    )
    logger.info(
        "%s started plan=%s",
        PROVISIONING_PREFIX,
        request.plan,
        extra={"subdomain": normalize_subdomain(request.subdomain)},
    )
    result = run_saga(steps if steps is not None else build_steps(), ctx)
    if result.success:
        logger.info(
            "%s finished tenant_id=%s skipped=%s",
            PROVISIONING_PREFIX,
            result.tenant_id,
            result.skipped_steps,
            extra={"subdomain": ctx.subdomain},
        )
    return result
