from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cargo_certs import models
from cargo_certs.core.security import hash_password, verify_password
from cargo_certs.services.authorization import Action, require_access
from cargo_certs.services.errors import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger("cargo_certs.profiles")

_ROLES = {r.value: r for r in models.RoleName}


def normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def get_profile(db: Session, profile_id: str) -> Optional[models.Profile]:
    return db.get(models.Profile, profile_id)


def get_profile_by_email(db: Session, email: str) -> Optional[models.Profile]:
    return db.query(models.Profile).filter(models.Profile.email == normalize_email(email)).first()


def authenticate(db: Session, email: str, password: str) -> Optional[models.Profile]:
    profile = get_profile_by_email(db, email)
    if not profile or not profile.active:
        return None
    if not verify_password(password, profile.hashed_password):
        return None
    return profile


def _save(db: Session, profile: models.Profile, failure_message: str) -> models.Profile:
    db.add(profile)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("profile_write_failed", extra={"profile_id": profile.id})
        raise PersistenceError(failure_message) from exc
    db.refresh(profile)
    return profile


def update_own_profile(db: Session, profile: models.Profile, full_name: Any) -> models.Profile:
    """Only the display name is self-editable."""
    name = str(full_name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    if len(name) > 100:
        raise ValidationError("Name must be 100 characters or less")

    profile.full_name = name
    return _save(db, profile, "Failed to update profile")


def list_profiles(db: Session, actor: models.Profile) -> list[models.Profile]:
    require_access(actor, Action.profile_manage)
    return (
        db.query(models.Profile)
        .order_by(models.Profile.created_at.desc(), models.Profile.email.asc())
        .all()
    )


def list_brokers(db: Session, actor: models.Profile) -> list[models.Profile]:
    """Brokers that can own contracts (a code is assigned), ordered by code."""
    require_access(actor, Action.profile_manage)
    return (
        db.query(models.Profile)
        .filter(
            models.Profile.role == models.RoleName.broker,
            models.Profile.broker_code.isnot(None),
        )
        .order_by(models.Profile.broker_code.asc())
        .all()
    )


def update_profile_role(
    db: Session,
    actor: models.Profile,
    profile_id: str,
    changes: Mapping[str, Any],
) -> models.Profile:
    """Admin edit of role / broker_code / full_name. Absent keys are left alone."""
    require_access(actor, Action.profile_manage)

    fields = {k: changes[k] for k in ("role", "broker_code", "full_name") if k in changes}
    if not fields:
        raise ValidationError("No updates provided")

    role = None
    if "role" in fields:
        raw_role = fields["role"]
        raw_role = getattr(raw_role, "value", raw_role)
        role = _ROLES.get(str(raw_role or "").strip().lower())
        if role is None:
            raise ValidationError("Invalid role")

    broker_code = None
    if "broker_code" in fields and fields["broker_code"] is not None:
        broker_code = str(fields["broker_code"]).strip() or None
        if broker_code and len(broker_code) > 50:
            raise ValidationError("Broker code must be 50 characters or less")

    full_name = None
    if "full_name" in fields and fields["full_name"] is not None:
        full_name = str(fields["full_name"]).strip() or None
        if full_name and len(full_name) > 100:
            raise ValidationError("Name must be 100 characters or less")

    profile = get_profile(db, profile_id)
    if profile is None:
        raise NotFoundError("Profile not found")

    if "role" in fields:
        profile.role = role
    if "broker_code" in fields:
        profile.broker_code = broker_code
    if "full_name" in fields:
        profile.full_name = full_name

    profile = _save(db, profile, "Failed to update user")
    logger.info(
        "profile_updated",
        extra={"profile_id": profile.id, "actor_id": actor.id, "fields": sorted(fields)},
    )
    return profile


def register_profile(
    db: Session, *, email: str, password: str, full_name: Optional[str] = None
) -> models.Profile:
    """Self sign-up: a broker without a code until an admin assigns one."""
    normalized = normalize_email(email)
    if not normalized or "@" not in normalized:
        raise ValidationError("Email is required")
    if len(password or "") < 6:
        raise ValidationError("Password must be at least 6 characters")
    name = str(full_name or "").strip() or None
    if name and len(name) > 100:
        raise ValidationError("Name must be 100 characters or less")

    if get_profile_by_email(db, normalized):
        raise ConflictError("Email already registered")

    profile = models.Profile(
        email=normalized,
        hashed_password=hash_password(password),
        full_name=name,
        role=models.RoleName.broker,
        broker_code=None,
        active=True,
    )
    db.add(profile)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Email already registered") from exc
    db.refresh(profile)
    return profile
