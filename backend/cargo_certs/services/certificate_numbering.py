from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cargo_certs import models
from cargo_certs.services.errors import PersistenceError

logger = logging.getLogger("cargo_certs.numbering")


@dataclass(frozen=True)
class CertificateNumber:
    year: int
    seq: int
    formatted: str


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_certificate_number(year: int, seq: int) -> str:
    """Format: CERT-2025-0001 (sequence resets each calendar year)."""

    return f"CERT-{int(year)}-{int(seq):04d}"


def _parse_seq(number: str, prefix: str) -> int | None:
    suffix = str(number or "")[len(prefix):]
    try:
        return int(suffix)
    except ValueError:
        return None


def next_certificate_number(db: Session, *, now: datetime | None = None) -> CertificateNumber:
    """Next number for the current year: max existing + 1, or 1.

    Not atomic: two concurrent callers can read the same max. The unique
    constraint on certificates.certificate_number rejects the second insert.
    """

    now = now or _utc_now()
    year = now.year
    prefix = f"CERT-{year}-"

    try:
        last = (
            db.query(models.Certificate.certificate_number)
            .filter(models.Certificate.certificate_number.like(f"{prefix}%"))
            .order_by(models.Certificate.certificate_number.desc())
            .limit(1)
            .scalar()
        )
    except SQLAlchemyError as exc:
        logger.exception("certificate_number_read_failed", extra={"year": year})
        raise PersistenceError("Failed to generate certificate number") from exc

    seq = 1
    if last:
        parsed = _parse_seq(last, prefix)
        if parsed is not None:
            seq = parsed + 1

    return CertificateNumber(year=year, seq=seq, formatted=format_certificate_number(year, seq))
