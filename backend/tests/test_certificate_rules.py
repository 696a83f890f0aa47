from datetime import date

import pytest

from cargo_certs import models
from cargo_certs.services.certificate_rules import (
    is_uuid_v4,
    max_insured_value,
    validate_certificate_fields,
    validate_loading_date,
    validate_value_limit,
)
from cargo_certs.services.errors import ValidationError, ValueLimitExceededError

CONTRACT_ID = "3f2b8c1e-9a4d-4c7b-8e21-5d6f7a8b9c0d"


def _contract(**overrides) -> models.Contract:
    data = dict(
        contract_number="CT-1",
        insured_name="Acme",
        coverage_type="All Risks",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 12, 31),
        broker_code="BRK001",
        sum_insured=100_000.0,
        additional_si_percentage=10.0,
    )
    data.update(overrides)
    return models.Contract(**data)


def _fields(**overrides) -> dict:
    data = {
        "contract_id": CONTRACT_ID,
        "insured_name": "Acme",
        "cargo_description": "Steel coils",
        "departure_country": "Brazil",
        "arrival_country": "Portugal",
        "transport_means": "Sea",
        "loading_date": "2025-03-01",
        "issue_date": "2025-02-27",
        "currency": "usd",
        "value_local": 10.5,
    }
    data.update(overrides)
    return data


@pytest.mark.parametrize("day", [date(2025, 1, 1), date(2025, 6, 30), date(2025, 12, 31)])
def test_loading_date_inside_window_including_both_ends(day):
    validate_loading_date(day, _contract())


@pytest.mark.parametrize("day", [date(2024, 12, 31), date(2026, 1, 1)])
def test_loading_date_outside_window_is_rejected(day):
    with pytest.raises(ValidationError) as exc:
        validate_loading_date(day, _contract())
    assert exc.value.message == "Loading date must be between 2025-01-01 and 2025-12-31"


def test_max_insured_value_adds_percentage():
    assert max_insured_value(_contract()) == pytest.approx(110_000.0)
    assert max_insured_value(_contract(additional_si_percentage=0)) == pytest.approx(100_000.0)


def test_value_equal_to_limit_is_accepted():
    contract = _contract(sum_insured=1000.0, additional_si_percentage=0.0)
    validate_value_limit(1000.0, contract)


def test_value_over_limit_carries_attempted_and_maximum():
    contract = _contract(sum_insured=1000.0, additional_si_percentage=10.0)
    with pytest.raises(ValueLimitExceededError) as exc:
        validate_value_limit(1100.01, contract)
    assert exc.value.attempted == pytest.approx(1100.01)
    assert exc.value.maximum == pytest.approx(1100.0)
    assert exc.value.message == "Value (1100.01 EUR) exceeds contract limit (1100.00 EUR)"
    assert exc.value.status_code == 400


def test_fields_are_trimmed_and_currency_uppercased():
    clean = validate_certificate_fields(_fields(insured_name="  Acme  ", currency=" gbp "))
    assert clean["insured_name"] == "Acme"
    assert clean["currency"] == "GBP"
    assert clean["loading_date"] == date(2025, 3, 1)
    assert clean["value_local"] == 10.5


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"contract_id": ""}, "Contract is required"),
        ({"contract_id": "not-a-uuid"}, "Invalid contract ID format"),
        ({"insured_name": "   "}, "Insured name is required"),
        ({"insured_name": "x" * 201}, "Insured name must be 200 characters or less"),
        ({"cargo_description": "x" * 2001}, "Cargo description must be 2000 characters or less"),
        ({"departure_country": None}, "Departure country is required"),
        ({"arrival_country": "x" * 101}, "Arrival country must be 100 characters or less"),
        ({"transport_means": ""}, "Transport means is required"),
        ({"loading_date": None}, "Loading date is required"),
        ({"loading_date": "01/03/2025"}, "Invalid loading date format"),
        ({"issue_date": "2025-02-30"}, "Invalid issue date"),
        ({"currency": ""}, "Currency is required"),
        ({"currency": "US"}, "Invalid currency code"),
        ({"currency": "US1"}, "Invalid currency code"),
        ({"value_local": None}, "Value is required"),
        ({"value_local": "abc"}, "Value must be a valid number"),
        ({"value_local": float("nan")}, "Value must be a valid number"),
        ({"value_local": -0.01}, "Value cannot be negative"),
        ({"value_local": 1_000_000_000_000}, "Value exceeds maximum allowed"),
    ],
)
def test_field_errors_use_user_facing_messages(overrides, message):
    with pytest.raises(ValidationError) as exc:
        validate_certificate_fields(_fields(**overrides))
    assert exc.value.message == message


def test_value_bounds_are_inclusive():
    assert validate_certificate_fields(_fields(value_local=0))["value_local"] == 0
    top = validate_certificate_fields(_fields(value_local=999_999_999_999.99))
    assert top["value_local"] == 999_999_999_999.99


def test_partial_validation_only_checks_present_keys():
    assert validate_certificate_fields({"currency": "eur"}, partial=True) == {"currency": "EUR"}
    with pytest.raises(ValidationError):
        validate_certificate_fields({"insured_name": ""}, partial=True)


def test_uuid_v4_check_is_case_insensitive():
    assert is_uuid_v4(CONTRACT_ID.upper())
    # version nibble must be 4
    assert not is_uuid_v4("3f2b8c1e-9a4d-1c7b-8e21-5d6f7a8b9c0d")
    assert not is_uuid_v4(None)


def test_limit_is_exact_in_decimal():
    # 100 * 1.15 is 114.99999999999999 in binary float.
    contract = _contract(sum_insured=100.0, additional_si_percentage=15.0)
    assert max_insured_value(contract) == 115.0
    validate_value_limit(115.00, contract)
    with pytest.raises(ValueLimitExceededError):
        validate_value_limit(115.01, contract)
