from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from menuhub.core import config
from menuhub.core.database import get_db
from menuhub.deps import require_onboarding_token
from menuhub.schemas.onboarding import (
    EmailCheckRequest,
    EmailCheckResponse,
    OnboardingRequest,
    OnboardingResponse,
    SubdomainCheckRequest,
    SubdomainCheckResponse,
)
from menuhub.services.auth_provider import AuthProvider, get_auth_provider
from menuhub.services.email_sender import EmailSender, get_email_sender
from menuhub.services.provisioning import check_email, check_subdomain, provision_restaurant
from menuhub.services.qr_code import QRCodeGenerator

router = APIRouter(
    prefix="/api/onboarding",
    tags=["onboarding"],
    dependencies=[Depends(require_onboarding_token)],
)
logger = logging.getLogger(__name__)


def get_qr_generator() -> QRCodeGenerator:
    return QRCodeGenerator()


@router.post("/check-subdomain", response_model=SubdomainCheckResponse)
def check_subdomain_availability(payload: SubdomainCheckRequest, db: Session = Depends(get_db)):
    subdomain, available, reason = check_subdomain(db, payload.subdomain)
    return SubdomainCheckResponse(subdomain=subdomain, available=available, reason=reason)


@router.post("/check-email", response_model=EmailCheckResponse)
def check_email_status(
    payload: EmailCheckRequest,
    db: Session = Depends(get_db),
    auth: AuthProvider = Depends(get_auth_provider),
):
    email_status, subdomain = check_email(db, auth, payload.email)
    return EmailCheckResponse(status=email_status, subdomain=subdomain)


@router.post(
    "/complete",
    response_model=OnboardingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Email or subdomain already taken"}},
)
def complete_onboarding(
    payload: OnboardingRequest,
    db: Session = Depends(get_db),
    auth: AuthProvider = Depends(get_auth_provider),
    qr_generator: QRCodeGenerator = Depends(get_qr_generator),
    email_sender: EmailSender = Depends(get_email_sender),
):
    result = provision_restaurant(
        db,
        payload,
        auth=auth,
        qr_generator=qr_generator,
        email_sender=email_sender,
    )
    if not result.success:
        return JSONResponse(
            status_code=result.status_code,
            content={
                "detail": result.error,
                "failed_step": result.failed_step,
                "compensated_steps": result.compensated_steps,
                "manual_intervention_required": result.manual_intervention_required,
            },
        )

    return OnboardingResponse(
        success=True,
        tenant_id=result.tenant_id,
        user_id=result.user_id,
        subdomain=result.subdomain,
        menu_url=result.menu_url,
        admin_url=config.ADMIN_PANEL_URL,
        qr_code_data_url=result.qr_code_data_url,
        skipped_steps=result.skipped_steps,
    )
