"""Certificate business rules.

Pure functions: no DB access, no I/O. Every failure is a `ValidationError`
carrying a message that is shown to the user as-is.
"""

from __future__ import annotations

import math
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

from cargo_certs import models
from cargo_certs.services.errors import ValidationError, ValueLimitExceededError

UUID_V4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MAX_VALUE_LOCAL = 999_999_999_999.99
_CENT = Decimal("0.01")

# (field, label, max length)
_TEXT_FIELDS = (
    ("insured_name", "Insured name", 200),
    ("cargo_description", "Cargo description", 2000),
    ("departure_country", "Departure country", 100),
    ("arrival_country", "Arrival country", 100),
    ("transport_means", "Transport means", 100),
)
_DATE_FIELDS = (
    ("loading_date", "Loading date"),
    ("issue_date", "Issue date"),
)


def is_uuid_v4(value: Any) -> bool:
    return isinstance(value, str) and bool(UUID_V4_RE.match(value))


def validate_loading_date(loading_date: date, contract: models.Contract) -> None:
    """Loading date must fall inside the contract window, both ends inclusive."""
    if loading_date < contract.start_date or loading_date > contract.end_date:
        raise ValidationError(
            f"Loading date must be between {contract.start_date.isoformat()} "
            f"and {contract.end_date.isoformat()}"
        )


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def max_insured_value(contract: models.Contract) -> float:
    """sum_insured * (1 + pct/100), in decimal and rounded to cents."""
    pct = _decimal(contract.additional_si_percentage or 0)
    maximum = _decimal(contract.sum_insured) * (1 + pct / 100)
    return float(maximum.quantize(_CENT, rounding=ROUND_HALF_UP))


def validate_value_limit(value_euro: float, contract: models.Contract) -> None:
    # Equality is allowed.
    maximum = max_insured_value(contract)
    if _decimal(value_euro) > _decimal(maximum):
        raise ValueLimitExceededError(float(value_euro), maximum)


def _parse_date(value: Any, label: str) -> date:
    if isinstance(value, date):
        return value
    raw = str(value)
    if not _DATE_RE.match(raw):
        raise ValidationError(f"Invalid {label.lower()} format")
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid {label.lower()}") from exc


def validate_certificate_fields(data: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """Check and normalize certificate input.

    With `partial=True` only the keys present in `data` are checked (updates);
    otherwise every field is required. Returns the cleaned values: strings
    trimmed, currency upper-cased, dates parsed. Stops at the first problem.
    """

    def present(key: str) -> bool:
        return not partial or key in data

    clean: dict[str, Any] = {}

    if present("contract_id"):
        contract_id = str(data.get("contract_id") or "").strip()
        if not contract_id:
            raise ValidationError("Contract is required")
        if not is_uuid_v4(contract_id):
            raise ValidationError("Invalid contract ID format")
        clean["contract_id"] = contract_id

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

    for key, label in _DATE_FIELDS:
        if not present(key):
            continue
        raw = data.get(key)
        if raw is None or raw == "":
            raise ValidationError(f"{label} is required")
        clean[key] = _parse_date(raw, label)

    if present("currency"):
        currency = str(data.get("currency") or "").strip().upper()
        if not currency:
            raise ValidationError("Currency is required")
        if not _CURRENCY_RE.match(currency):
            raise ValidationError("Invalid currency code")
        clean["currency"] = currency

    if present("value_local"):
        raw = data.get("value_local")
        if raw is None:
            raise ValidationError("Value is required")
        if isinstance(raw, bool):
            raise ValidationError("Value must be a valid number")
        try:
            value = float(raw)
        except (TypeError, ValueError) as exc:
            raise ValidationError("Value must be a valid number") from exc
        if math.isnan(value):
            raise ValidationError("Value must be a valid number")
        if value < 0:
            raise ValidationError("Value cannot be negative")
        if value > MAX_VALUE_LOCAL:
            raise ValidationError("Value exceeds maximum allowed")
        clean["value_local"] = value

    return clean
