#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from menuhub.core.config import IS_DEV  # noqa: E402
from menuhub.core.database import SessionLocal  # noqa: E402
from menuhub.core.errors import MenuHubError  # noqa: E402
from menuhub.services.admin_auth import upsert_admin_user  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or update an admin user for a restaurant.")
    parser.add_argument("--tenant", type=int, required=True, help="Tenant id")
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--password", help="Password (required for a new admin)")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--role", default="admin", help="owner, admin, manager or staff")
    parser.add_argument("--force", action="store_true", help="Allow running outside a dev environment")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if not IS_DEV and not args.force:
        print("Refusing to touch admin users outside dev. Pass --force to continue.")
        return 1

    db = SessionLocal()
    try:
        admin, created = upsert_admin_user(
            db,
            tenant_id=args.tenant,
            email=args.email,
            name=args.name,
            role=args.role.strip().lower(),
            password=args.password,
        )
    except MenuHubError as exc:
        print(exc.detail)
        return 1
    finally:
        db.close()

    action = "created" if created else "updated"
    print(f"Admin {action}: tenant={admin.tenant_id} email={admin.email} role={admin.role}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
