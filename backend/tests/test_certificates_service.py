from datetime import date, datetime, timezone

import pytest

from cargo_certs import models
from cargo_certs.services import certificates as service
from cargo_certs.services.currency import Conversion
from cargo_certs.services.errors import (
    CurrencyApiError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
    ValueLimitExceededError,
)
from factories import (
    certificate_payload,
    make_certificate,
    make_contract,
    stub_admin,
    stub_broker,
)

NOW = datetime(2025, 6, 10, tzinfo=timezone.utc)


def fixed_rate(rate: float):
    calls = []

    def converter(amount, currency):
        calls.append((amount, currency))
        return Conversion(value_euro=round(amount * rate, 2), exchange_rate=rate, rate_date="2025-06-09")

    converter.calls = calls
    return converter


def failing_converter(amount, currency):
    raise CurrencyApiError("Currency API unavailable")


def _count(db) -> int:
    return db.query(models.Certificate).count()


def test_broker_creates_certificate_on_own_contract(db_session):
    contract = make_contract(db_session, broker_code="BRK001")
    broker = stub_broker("BRK001")

    cert = service.create_certificate(
        db_session,
        broker,
        certificate_payload(contract.id, currency="usd", value_local=1000),
        converter=fixed_rate(0.92),
        now=NOW,
    )

    assert cert.certificate_number == "CERT-2025-0001"
    assert cert.currency == "USD"
    assert cert.value_euro == 920.0
    assert cert.exchange_rate == 0.92
    assert cert.created_by == broker.id


def test_numbers_increase_per_creation(db_session):
    contract = make_contract(db_session)
    admin = stub_admin()
    first = service.create_certificate(
        db_session, admin, certificate_payload(contract.id), converter=fixed_rate(1.0), now=NOW
    )
    second = service.create_certificate(
        db_session, admin, certificate_payload(contract.id), converter=fixed_rate(1.0), now=NOW
    )
    assert (first.certificate_number, second.certificate_number) == (
        "CERT-2025-0001",
        "CERT-2025-0002",
    )


def test_other_brokers_contract_is_unauthorized_not_missing(db_session):
    contract = make_contract(db_session, broker_code="BRK002")
    converter = fixed_rate(0.92)

    with pytest.raises(UnauthorizedError):
        service.create_certificate(
            db_session, stub_broker("BRK001"), certificate_payload(contract.id), converter=converter
        )
    assert converter.calls == []
    assert _count(db_session) == 0


def test_missing_contract_is_not_found(db_session):
    with pytest.raises(NotFoundError) as exc:
        service.create_certificate(
            db_session,
            stub_admin(),
            certificate_payload("3f2b8c1e-9a4d-4c7b-8e21-5d6f7a8b9c0d"),
            converter=fixed_rate(1.0),
        )
    assert exc.value.message == "Contract not found"


def test_loading_date_checked_before_conversion(db_session):
    contract = make_contract(db_session)
    converter = fixed_rate(1.0)
    with pytest.raises(ValidationError) as exc:
        service.create_certificate(
            db_session,
            stub_admin(),
            certificate_payload(contract.id, loading_date="2026-01-01"),
            converter=converter,
        )
    assert "Loading date must be between" in exc.value.message
    assert converter.calls == []


def test_value_limit_uses_converted_euro_value(db_session):
    contract = make_contract(db_session, sum_insured=1000.0, additional_si_percentage=10.0)

    ok = service.create_certificate(
        db_session,
        stub_admin(),
        certificate_payload(contract.id, value_local=1100),
        converter=fixed_rate(1.0),
        now=NOW,
    )
    assert ok.value_euro == 1100.0

    with pytest.raises(ValueLimitExceededError):
        service.create_certificate(
            db_session,
            stub_admin(),
            certificate_payload(contract.id, value_local=1000),
            converter=fixed_rate(1.2),
        )
    assert _count(db_session) == 1


def test_conversion_failure_persists_nothing(db_session):
    contract = make_contract(db_session)
    with pytest.raises(CurrencyApiError):
        service.create_certificate(
            db_session, stub_admin(), certificate_payload(contract.id), converter=failing_converter
        )
    assert _count(db_session) == 0


def test_list_scoped_to_broker_code(db_session):
    own = make_contract(db_session, contract_number="CT-1", broker_code="BRK001")
    other = make_contract(db_session, contract_number="CT-2", broker_code="BRK002")
    make_certificate(db_session, own, certificate_number="CERT-2025-0001")
    make_certificate(db_session, other, certificate_number="CERT-2025-0002")

    numbers = [c.certificate_number for c in service.list_certificates(db_session, stub_broker("BRK001"))]
    assert numbers == ["CERT-2025-0001"]

    assert len(service.list_certificates(db_session, stub_admin())) == 2
    assert service.list_certificates(db_session, stub_broker(None)) == []


def test_get_certificate_of_other_broker_is_unauthorized(db_session):
    other = make_contract(db_session, broker_code="BRK002")
    cert = make_certificate(db_session, other)

    with pytest.raises(UnauthorizedError) as exc:
        service.get_certificate(db_session, stub_broker("BRK001"), cert.id)
    assert exc.value.message == "Unauthorized: Cannot access this certificate"

    with pytest.raises(NotFoundError):
        service.get_certificate(db_session, stub_admin(), "3f2b8c1e-9a4d-4c7b-8e21-5d6f7a8b9c0d")


def test_update_reconverts_when_value_changes(db_session):
    contract = make_contract(db_session)
    cert = make_certificate(db_session, contract, value_local=1000, currency="USD", exchange_rate=0.92)
    converter = fixed_rate(0.9)

    updated = service.update_certificate(
        db_session, stub_admin(), cert.id, {"value_local": 2000}, converter=converter
    )

    assert converter.calls == [(2000.0, "USD")]
    assert updated.value_euro == 1800.0
    assert updated.exchange_rate == 0.9
    assert updated.certificate_number == "CERT-2025-0001"


def test_update_without_money_fields_keeps_rate(db_session):
    contract = make_contract(db_session)
    cert = make_certificate(db_session, contract)
    converter = fixed_rate(5.0)

    updated = service.update_certificate(
        db_session, stub_admin(), cert.id, {"transport_means": "Air"}, converter=converter
    )
    assert updated.transport_means == "Air"
    assert updated.exchange_rate == 0.92
    assert converter.calls == []


def test_update_revalidates_loading_date(db_session):
    contract = make_contract(db_session)
    cert = make_certificate(db_session, contract)
    with pytest.raises(ValidationError):
        service.update_certificate(db_session, stub_admin(), cert.id, {"loading_date": date(2024, 5, 1)})


def test_update_moving_to_other_brokers_contract_is_unauthorized(db_session):
    own = make_contract(db_session, contract_number="CT-1", broker_code="BRK001")
    other = make_contract(db_session, contract_number="CT-2", broker_code="BRK002")
    cert = make_certificate(db_session, own)

    with pytest.raises(UnauthorizedError):
        service.update_certificate(
            db_session, stub_broker("BRK001"), cert.id, {"contract_id": other.id}
        )


def test_update_rejects_empty_changes(db_session):
    contract = make_contract(db_session)
    cert = make_certificate(db_session, contract)
    with pytest.raises(ValidationError) as exc:
        service.update_certificate(db_session, stub_admin(), cert.id, {})
    assert exc.value.message == "No updates provided"


def test_delete_requires_ownership(db_session):
    own = make_contract(db_session, broker_code="BRK001")
    cert = make_certificate(db_session, own)

    with pytest.raises(UnauthorizedError):
        service.delete_certificate(db_session, stub_broker("BRK002"), cert.id)

    service.delete_certificate(db_session, stub_broker("BRK001"), cert.id)
    assert _count(db_session) == 0


def test_update_of_unknown_certificate_is_not_found_before_field_checks(db_session):
    with pytest.raises(NotFoundError):
        service.update_certificate(
            db_session,
            stub_admin(),
            "3f2b8c1e-9a4d-4c7b-8e21-5d6f7a8b9c0d",
            {"currency": "not-a-code", "value_local": -1},
        )
