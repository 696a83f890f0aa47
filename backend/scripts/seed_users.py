from __future__ import annotations

import argparse
import sys
from pathlib import Path

from sqlalchemy.orm import Session

# Ensure "cargo_certs" is importable when running as a script (python scripts/seed_users.py)
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cargo_certs import models  # noqa: E402
from cargo_certs.core.security import hash_password  # noqa: E402
from cargo_certs.database import SessionLocal  # noqa: E402


def ensure_profile(
    db: Session,
    *,
    email: str,
    full_name: str,
    role: models.RoleName,
    broker_code: str | None,
    password: str,
) -> tuple[models.Profile, bool]:
    profile = db.query(models.Profile).filter(models.Profile.email == email).first()
    created = False
    if not profile:
        profile = models.Profile(
            email=email,
            full_name=full_name,
            hashed_password=hash_password(password),
            role=role,
            broker_code=broker_code,
            active=True,
        )
        db.add(profile)
        created = True
    else:
        # Update to ensure dev logins work even if the profile existed before.
        profile.full_name = full_name
        profile.role = role
        profile.broker_code = broker_code
        profile.active = True
        profile.hashed_password = hash_password(password)
        db.add(profile)
    db.flush()
    return profile, created


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed initial profiles for dev.")
    parser.add_argument("--password", default="cargo123", help="Password for all seeded profiles")
    parser.add_argument("--domain", default="cargo.local", help="Email domain (default: cargo.local)")
    args = parser.parse_args()

    pwd = str(args.password)
    domain = str(args.domain).strip().lstrip("@") or "cargo.local"

    targets = [
        ("admin", models.RoleName.admin, "Administrator", None),
        ("broker1", models.RoleName.broker, "Broker One", "BRK001"),
        ("broker2", models.RoleName.broker, "Broker Two", "BRK002"),
    ]

    db = SessionLocal()
    try:
        results = []
        for username, role, display, code in targets:
            profile, created = ensure_profile(
                db,
                email=f"{username}@{domain}",
                full_name=display,
                role=role,
                broker_code=code,
                password=pwd,
            )
            results.append((profile.email, role.value, code, "created" if created else "updated"))

        db.commit()

        print("Seed profiles OK:")
        for email, role, code, status in results:
            print(f"- {email} ({role}{', ' + code if code else ''}) [{status}]")
        print("Password:", pwd)
    finally:
        db.close()


if __name__ == "__main__":
    main()
