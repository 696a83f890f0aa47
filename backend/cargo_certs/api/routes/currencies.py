from typing import List

from fastapi import APIRouter, Depends, Query

from cargo_certs import models
from cargo_certs.api.deps import get_current_profile
from cargo_certs.schemas import ConversionRead, CurrencyRead
from cargo_certs.services import currency as currency_service
from cargo_certs.services.certificate_rules import validate_certificate_fields

router = APIRouter(prefix="/currencies", tags=["currencies"])


@router.get("", response_model=List[CurrencyRead])
def list_currencies(current_profile: models.Profile = Depends(get_current_profile)):
    return [
        CurrencyRead(code=c.code, name=c.name)
        for c in currency_service.get_available_currencies()
    ]


@router.get("/convert", response_model=ConversionRead)
def convert(
    amount: float = Query(..., description="Amount in the source currency."),
    currency: str = Query(..., description="ISO 4217 code, e.g. USD."),
    current_profile: models.Profile = Depends(get_current_profile),
):
    """Preview the EUR value a certificate would be issued with."""
    clean = validate_certificate_fields({"currency": currency, "value_local": amount}, partial=True)
    conversion = currency_service.convert_to_eur(clean["value_local"], clean["currency"])
    return ConversionRead(
        amount=clean["value_local"],
        currency=clean["currency"],
        value_euro=conversion.value_euro,
        exchange_rate=conversion.exchange_rate,
        rate_date=conversion.rate_date,
    )
