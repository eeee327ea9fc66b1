#!/usr/bin/env python3
"""Onboard a restaurant from the command line with the same steps as the signup API."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from pydantic import ValidationError as PayloadValidationError

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from menuhub.core.database import SessionLocal  # noqa: E402
from menuhub.core.logging_setup import configure_logging  # noqa: E402
from menuhub.schemas.onboarding import OnboardingRequest  # noqa: E402
from menuhub.services.auth_provider import get_auth_provider  # noqa: E402
from menuhub.services.email_sender import get_email_sender  # noqa: E402
from menuhub.services.provisioning import provision_restaurant  # noqa: E402
from menuhub.services.qr_code import QRCodeGenerator  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Provision a restaurant tenant.")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--restaurant-name", required=True)
    parser.add_argument("--subdomain", required=True)
    parser.add_argument("--phone", required=True)
    parser.add_argument("--address", required=True, help="First address line")
    parser.add_argument("--city", required=True)
    parser.add_argument("--state", required=True)
    parser.add_argument("--postal-code", required=True)
    parser.add_argument("--country", default="US")
    parser.add_argument("--owner-name")
    parser.add_argument("--cuisine", action="append", default=[], help="May be repeated")
    parser.add_argument("--plan", default="basic", choices=["basic", "professional", "enterprise"])
    parser.add_argument("--billing-cycle", default="monthly", choices=["monthly", "yearly"])
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()

    try:
        request = OnboardingRequest(
            email=args.email,
            password=args.password,
            owner_name=args.owner_name,
            phone=args.phone,
            restaurant_name=args.restaurant_name,
            cuisine_types=args.cuisine,
            address_line1=args.address,
            city=args.city,
            state=args.state,
            postal_code=args.postal_code,
            country=args.country,
            subdomain=args.subdomain,
            plan=args.plan,
            billing_cycle=args.billing_cycle,
        )
    except PayloadValidationError as exc:
        print(exc)
        return 2

    db = SessionLocal()
    try:
        result = provision_restaurant(
            db,
            request,
            auth=get_auth_provider(),
            qr_generator=QRCodeGenerator(),
            email_sender=get_email_sender(),
        )
    finally:
        db.close()

    if not result.success:
        print(f"Provisioning failed at {result.failed_step}: {result.error}")
        print(f"Compensated: {', '.join(result.compensated_steps) or 'nothing'}")
        if result.manual_intervention_required:
            print(f"Manual cleanup needed for auth account {result.user_id}")
        return 1

    print(f"Tenant {result.tenant_id} ready at {result.menu_url} (subdomain={result.subdomain})")
    if result.skipped_steps:
        print(f"Skipped: {', '.join(result.skipped_steps)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
