"""Certificate lifecycle: list, read, issue, amend, delete.

Every entry point takes the acting profile explicitly and runs it through
`authorization.require_access` against the owning contract's broker_code.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from cargo_certs import models
from cargo_certs.services.authorization import Action, list_scope, require_access
from cargo_certs.services.certificate_numbering import next_certificate_number
from cargo_certs.services.certificate_rules import (
    validate_certificate_fields,
    validate_loading_date,
    validate_value_limit,
)
from cargo_certs.services.contracts import load_contract
from cargo_certs.services.currency import Conversion, convert_to_eur
from cargo_certs.services.errors import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger("cargo_certs.certificates")

Converter = Callable[[float, str], Conversion]


def list_certificates(db: Session, actor: models.Profile) -> list[models.Certificate]:
    require_access(actor, Action.certificate_list)
    scope = list_scope(actor)
    if scope.empty:
        return []

    query = db.query(models.Certificate).join(models.Certificate.contract)
    if not scope.all_rows:
        query = query.filter(models.Contract.broker_code == scope.broker_code)
    return query.order_by(
        models.Certificate.created_at.desc(), models.Certificate.certificate_number.desc()
    ).all()


def get_certificate(db: Session, actor: models.Profile, certificate_id: str) -> models.Certificate:
    certificate = db.get(models.Certificate, certificate_id)
    if certificate is None:
        raise NotFoundError("Certificate not found")
    require_access(actor, Action.certificate_read, certificate.contract.broker_code)
    return certificate


def _write_failed(db: Session, exc: Exception, message: str, *, allocating: bool = False) -> None:
    db.rollback()
    if allocating and isinstance(exc, IntegrityError):
        # Two requests allocated the same number; the caller may retry.
        logger.warning("certificate_number_conflict")
        raise ConflictError("Certificate number already allocated, please retry") from exc
    logger.exception("certificate_write_failed")
    raise PersistenceError(message) from exc


def create_certificate(
    db: Session,
    actor: models.Profile,
    payload: Mapping[str, Any],
    *,
    converter: Converter = convert_to_eur,
    now: datetime | None = None,
) -> models.Certificate:
    """Issue a certificate.

    Order matters: field checks, contract + ownership, loading date,
    EUR conversion, value limit, number allocation, insert. A failure at
    any step leaves nothing persisted.
    """

    data = validate_certificate_fields(payload)

    contract = load_contract(db, data["contract_id"])
    require_access(actor, Action.certificate_create, contract.broker_code)

    validate_loading_date(data["loading_date"], contract)

    conversion = converter(data["value_local"], data["currency"])
    validate_value_limit(conversion.value_euro, contract)

    number = next_certificate_number(db, now=now)

    certificate = models.Certificate(
        certificate_number=number.formatted,
        contract_id=contract.id,
        insured_name=data["insured_name"],
        cargo_description=data["cargo_description"],
        departure_country=data["departure_country"],
        arrival_country=data["arrival_country"],
        transport_means=data["transport_means"],
        loading_date=data["loading_date"],
        issue_date=data["issue_date"],
        currency=data["currency"],
        value_local=data["value_local"],
        value_euro=conversion.value_euro,
        exchange_rate=conversion.exchange_rate,
        created_by=actor.id,
    )
    db.add(certificate)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        _write_failed(db, exc, "Failed to create certificate", allocating=True)
    db.refresh(certificate)

    logger.info(
        "certificate_created",
        extra={
            "certificate_id": certificate.id,
            "certificate_number": certificate.certificate_number,
            "contract_id": contract.id,
            "profile_id": actor.id,
        },
    )
    return certificate


def update_certificate(
    db: Session,
    actor: models.Profile,
    certificate_id: str,
    changes: Mapping[str, Any],
    *,
    converter: Converter = convert_to_eur,
) -> models.Certificate:
    """Amend a certificate. The number never changes.

    A new `contract_id` is authorized on its own; the loading date and EUR
    value are re-checked against the merged record. Changing `currency` or
    `value_local` re-converts at the current rate.
    """

    if not changes:
        raise ValidationError("No updates provided")
    changes = {k: v for k, v in changes.items() if k != "certificate_number"}
    if not changes:
        raise ValidationError("Certificate number cannot be changed")

    certificate = db.get(models.Certificate, certificate_id)
    if certificate is None:
        raise NotFoundError("Certificate not found")
    clean = validate_certificate_fields(changes, partial=True)
    require_access(actor, Action.certificate_update, certificate.contract.broker_code)

    contract = certificate.contract
    new_contract_id = clean.get("contract_id")
    if new_contract_id and new_contract_id != certificate.contract_id:
        contract = load_contract(db, new_contract_id)
        require_access(actor, Action.certificate_update, contract.broker_code)

    loading_date = clean.get("loading_date", certificate.loading_date)
    validate_loading_date(loading_date, contract)

    value_euro = certificate.value_euro
    if "currency" in clean or "value_local" in clean:
        conversion = converter(
            clean.get("value_local", certificate.value_local),
            clean.get("currency", certificate.currency),
        )
        value_euro = conversion.value_euro
        clean["value_euro"] = conversion.value_euro
        clean["exchange_rate"] = conversion.exchange_rate
    validate_value_limit(value_euro, contract)

    for field, value in clean.items():
        setattr(certificate, field, value)
    if new_contract_id:
        certificate.contract = contract
    db.add(certificate)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        _write_failed(db, exc, "Failed to update certificate")
    db.refresh(certificate)
    return certificate


def delete_certificate(db: Session, actor: models.Profile, certificate_id: str) -> None:
    certificate = db.get(models.Certificate, certificate_id)
    if certificate is None:
        raise NotFoundError("Certificate not found")
    require_access(actor, Action.certificate_delete, certificate.contract.broker_code)

    db.delete(certificate)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("certificate_delete_failed", extra={"certificate_id": certificate_id})
        raise PersistenceError("Failed to delete certificate") from exc
