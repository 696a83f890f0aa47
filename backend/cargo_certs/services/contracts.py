from __future__ import annotations

import logging
import math
from datetime import date
from typing import Any, Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cargo_certs import models
from cargo_certs.services.authorization import Action, list_scope, require_access
from cargo_certs.services.errors import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger("cargo_certs.contracts")

_TEXT_FIELDS = (
    ("contract_number", "Contract number", 50),
    ("insured_name", "Insured name", 200),
    ("coverage_type", "Coverage type", 100),
    ("broker_code", "Broker code", 50),
)


def _as_date(value: Any, label: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid {label.lower()}") from exc


def _as_number(value: Any, label: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{label} must be a valid number") from exc
    if not math.isfinite(number):
        raise ValidationError(f"{label} must be a valid number")
    return number


def validate_contract_fields(data: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """Required/length/range checks for contract input; returns cleaned values."""

    def present(key: str) -> bool:
        return not partial or key in data

    clean: dict[str, Any] = {}

    for key, label, limit in _TEXT_FIELDS:
        if not present(key):
            continue
        raw = data.get(key)
        value = str(raw).strip() if raw is not None else ""
        if not value:
            raise ValidationError(f"{label} is required")
        if len(value) > limit:
            raise ValidationError(f"{label} must be {limit} characters or less")
        clean[key] = value

    if present("start_date"):
        if not data.get("start_date"):
            raise ValidationError("Start date is required")
        clean["start_date"] = _as_date(data["start_date"], "Start date")
    if present("end_date"):
        if not data.get("end_date"):
            raise ValidationError("End date is required")
        clean["end_date"] = _as_date(data["end_date"], "End date")

    if "start_date" in clean and "end_date" in clean:
        if clean["end_date"] < clean["start_date"]:
            raise ValidationError("End date must be on or after start date")

    if present("sum_insured"):
        if data.get("sum_insured") is None:
            raise ValidationError("Sum insured is required")
        value = _as_number(data["sum_insured"], "Sum insured")
        if value <= 0:
            raise ValidationError("Sum insured must be greater than 0")
        clean["sum_insured"] = value

    if present("additional_si_percentage"):
        if data.get("additional_si_percentage") is None:
            raise ValidationError("Additional SI percentage is required")
        value = _as_number(data["additional_si_percentage"], "Additional SI percentage")
        if value < 0:
            raise ValidationError("Additional SI percentage cannot be negative")
        clean["additional_si_percentage"] = value

    return clean


def list_contracts(db: Session, actor: models.Profile) -> list[models.Contract]:
    """Admin: every contract, newest first. Broker: own contracts by number."""
    require_access(actor, Action.contract_list)
    scope = list_scope(actor)
    if scope.empty:
        return []

    query = db.query(models.Contract)
    if scope.all_rows:
        return query.order_by(models.Contract.created_at.desc(), models.Contract.id).all()
    return (
        query.filter(models.Contract.broker_code == scope.broker_code)
        .order_by(models.Contract.contract_number.asc())
        .all()
    )


def load_contract(db: Session, contract_id: str) -> models.Contract:
    contract = db.get(models.Contract, contract_id)
    if contract is None:
        raise NotFoundError("Contract not found")
    return contract


def get_contract(db: Session, actor: models.Profile, contract_id: str) -> models.Contract:
    contract = load_contract(db, contract_id)
    require_access(actor, Action.contract_read, contract.broker_code)
    return contract


def _is_duplicate_number(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "contract_number" in message and ("unique" in message or "duplicate" in message)


def _commit(db: Session, failure_message: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if _is_duplicate_number(exc):
            raise ConflictError("Contract number already exists") from exc
        logger.exception("contract_write_failed")
        raise PersistenceError(failure_message) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("contract_write_failed")
        raise PersistenceError(failure_message) from exc


def create_contract(db: Session, actor: models.Profile, data: Mapping[str, Any]) -> models.Contract:
    require_access(actor, Action.contract_manage)
    clean = validate_contract_fields(data)

    exists = (
        db.query(models.Contract.id)
        .filter(models.Contract.contract_number == clean["contract_number"])
        .first()
    )
    if exists:
        raise ConflictError("Contract number already exists")

    contract = models.Contract(**clean)
    db.add(contract)
    _commit(db, "Failed to create contract")
    db.refresh(contract)
    logger.info(
        "contract_created",
        extra={"contract_id": contract.id, "contract_number": contract.contract_number},
    )
    return contract


def update_contract(
    db: Session, actor: models.Profile, contract_id: str, changes: Mapping[str, Any]
) -> models.Contract:
    require_access(actor, Action.contract_manage)
    if not changes:
        raise ValidationError("No updates provided")
    clean = validate_contract_fields(changes, partial=True)

    contract = load_contract(db, contract_id)

    start = clean.get("start_date", contract.start_date)
    end = clean.get("end_date", contract.end_date)
    if end < start:
        raise ValidationError("End date must be on or after start date")

    number = clean.get("contract_number")
    if number and number != contract.contract_number:
        taken = (
            db.query(models.Contract.id)
            .filter(models.Contract.contract_number == number, models.Contract.id != contract.id)
            .first()
        )
        if taken:
            raise ConflictError("Contract number already exists")

    for field, value in clean.items():
        setattr(contract, field, value)
    db.add(contract)
    _commit(db, "Failed to update contract")
    db.refresh(contract)
    return contract


def delete_contract(db: Session, actor: models.Profile, contract_id: str) -> None:
    require_access(actor, Action.contract_manage)
    contract = load_contract(db, contract_id)

    issued = (
        db.query(models.Certificate.id)
        .filter(models.Certificate.contract_id == contract.id)
        .first()
    )
    if issued:
        raise ConflictError("Contract has certificates and cannot be deleted")

    db.delete(contract)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("contract_delete_failed", extra={"contract_id": contract_id})
        raise PersistenceError("Failed to delete contract") from exc
