from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from cargo_certs.config import settings
from cargo_certs.services.errors import CurrencyApiError

logger = logging.getLogger("cargo_certs.currency")

_USER_AGENT = "Cargo-Certs/1.0 (exchange rates)"


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    name: str


@dataclass(frozen=True)
class ExchangeRate:
    rate: float
    date: str  # YYYY-MM-DD, as published by the rate API


@dataclass(frozen=True)
class Conversion:
    value_euro: float
    exchange_rate: float
    rate_date: str


def _get_json(path: str, params: dict[str, str] | None = None) -> Any:
    url = settings.exchange_rate_api_base.rstrip("/") + path
    if params:
        url = f"{url}?{urlencode(params)}"
    req = Request(
        url,
        headers={"User-Agent": _USER_AGENT, "Accept": "application/json"},
        method="GET",
    )
    with urlopen(req, timeout=settings.exchange_rate_timeout_seconds) as resp:
        return json.loads(resp.read().decode("utf-8"))


def round_half_up(value: float | Decimal, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def get_available_currencies() -> list[CurrencyInfo]:
    """List the currencies the rate API can convert (code -> display name)."""
    try:
        data = _get_json("/currencies")
    except HTTPError as exc:
        logger.warning("currency_list_failed", extra={"status_code": exc.code})
        raise CurrencyApiError("Currency API unavailable") from exc
    except (URLError, TimeoutError, OSError, ValueError) as exc:
        logger.warning("currency_list_failed", extra={"error": type(exc).__name__})
        raise CurrencyApiError("Failed to fetch currencies: Network error") from exc

    if not isinstance(data, dict):
        raise CurrencyApiError("Failed to fetch currencies: Network error")
    return [CurrencyInfo(code=str(code), name=str(name)) for code, name in data.items()]


def get_exchange_rate_to_eur(currency: str) -> ExchangeRate:
    code = str(currency or "").strip().upper()

    # EUR -> EUR needs no lookup.
    if code == "EUR":
        return ExchangeRate(rate=1.0, date=date.today().isoformat())

    try:
        data = _get_json("/latest", {"base": code, "symbols": "EUR"})
    except HTTPError as exc:
        logger.warning(
            "exchange_rate_failed", extra={"currency": code, "status_code": exc.code}
        )
        if exc.code == 404:
            raise CurrencyApiError(f"Currency {code} not supported") from exc
        raise CurrencyApiError("Currency API unavailable") from exc
    except (URLError, TimeoutError, OSError, ValueError) as exc:
        logger.warning(
            "exchange_rate_failed", extra={"currency": code, "error": type(exc).__name__}
        )
        raise CurrencyApiError("Failed to fetch exchange rate: Network error") from exc

    rates = data.get("rates") if isinstance(data, dict) else None
    rate = rates.get("EUR") if isinstance(rates, dict) else None
    if not rate:
        raise CurrencyApiError(f"No EUR rate available for {code}")

    return ExchangeRate(rate=float(rate), date=str(data.get("date") or ""))


def convert_to_eur(amount: float, currency: str) -> Conversion:
    quote = get_exchange_rate_to_eur(currency)
    value_euro = round_half_up(Decimal(str(amount)) * Decimal(str(quote.rate)), 2)
    return Conversion(value_euro=value_euro, exchange_rate=quote.rate, rate_date=quote.date)
