import pytest

from menuhub.models.tenant import Tenant
from menuhub.models.tenant_settings import TenantSettings
from menuhub.routers.onboarding import get_qr_generator, router as onboarding_router
from menuhub.services.auth_provider import LocalAuthProvider, get_auth_provider
from menuhub.services.email_sender import MockEmailSender, get_email_sender
from menuhub.services.qr_code import QRCodeGenerator
from tests.fixtures_data import ONBOARDING_PAYLOAD


@pytest.fixture
def outbox():
    return MockEmailSender()


@pytest.fixture
def client(make_client, session_factory, outbox):
    client = make_client([onboarding_router], tenant_id=None)
    client.app.dependency_overrides[get_auth_provider] = lambda: LocalAuthProvider(session_factory)
    client.app.dependency_overrides[get_email_sender] = lambda: outbox
    client.app.dependency_overrides[get_qr_generator] = lambda: QRCodeGenerator(scale=2)
    return client


def test_complete_onboarding(client, outbox):
    response = client.post("/api/onboarding/complete", json=ONBOARDING_PAYLOAD)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["subdomain"] == "bluebean"
    assert body["menu_url"] == "https://bluebean.menuhub.app/menu"
    assert body["qr_code_data_url"].startswith("data:image/png;base64,")
    assert body["skipped_steps"] == []
    assert len(outbox.outbox) == 1


def test_second_signup_for_same_subdomain_conflicts(client):
    client.post("/api/onboarding/complete", json=ONBOARDING_PAYLOAD)

    response = client.post(
        "/api/onboarding/complete",
        json={**ONBOARDING_PAYLOAD, "email": "someone@else.example.com"},
    )

    assert response.status_code == 409
    assert response.json() == {
        "detail": "This subdomain is already taken",
        "failed_step": "CheckSubdomainAvailable",
        "compensated_steps": [],
        "manual_intervention_required": False,
    }


def test_payload_is_validated(client):
    response = client.post("/api/onboarding/complete", json={**ONBOARDING_PAYLOAD, "plan": "platinum"})

    assert response.status_code == 422


def test_availability_checks(client):
    before = client.post("/api/onboarding/check-subdomain", json={"subdomain": "Blue Bean"})
    client.post("/api/onboarding/complete", json=ONBOARDING_PAYLOAD)
    after = client.post("/api/onboarding/check-subdomain", json={"subdomain": "bluebean"})
    email = client.post("/api/onboarding/check-email", json={"email": "OWNER@bluebean.example.com"})

    assert before.json() == {"subdomain": "blue-bean", "available": True, "reason": None}
    assert after.json()["available"] is False
    assert email.json() == {"status": "registered", "subdomain": "bluebean"}


def test_raw_subdomain_is_read_the_same_by_check_and_complete(client):
    check = client.post("/api/onboarding/check-subdomain", json={"subdomain": "Blue Café"})
    complete = client.post("/api/onboarding/complete", json={**ONBOARDING_PAYLOAD, "subdomain": "Blue Café"})

    assert check.json() == {"subdomain": "blue-cafe", "available": True, "reason": None}
    assert complete.status_code == 201
    assert complete.json()["subdomain"] == "blue-cafe"


def test_onboarding_stores_hours_and_logo(client, db):
    hours = {"Monday": {"open": "07:00", "close": "15:00"}, "sunday": {"open": "00:00", "close": "00:00", "closed": True}}

    response = client.post(
        "/api/onboarding/complete",
        json={**ONBOARDING_PAYLOAD, "operating_hours": hours, "logo_url": "https://cdn.example.com/logo.png"},
    )

    assert response.status_code == 201
    tenant = db.get(Tenant, response.json()["tenant_id"])
    assert tenant.operating_hours == {
        "monday": {"open": "07:00", "close": "15:00", "closed": False},
        "sunday": {"open": "00:00", "close": "00:00", "closed": True},
    }
    assert tenant.logo_url == "https://cdn.example.com/logo.png"
    settings = db.query(TenantSettings).filter(TenantSettings.tenant_id == tenant.id).one()
    assert settings.business_hours == tenant.operating_hours
    assert settings.logo_url == "https://cdn.example.com/logo.png"


def test_onboarding_rejects_unknown_weekday(client):
    response = client.post(
        "/api/onboarding/complete",
        json={**ONBOARDING_PAYLOAD, "operating_hours": {"funday": {"open": "07:00", "close": "15:00"}}},
    )

    assert response.status_code == 422
