from datetime import datetime

from cargo_certs import models
from cargo_certs.api import deps
from cargo_certs.main import app
from factories import (
    certificate_payload,
    make_certificate,
    make_contract,
    stub_admin,
    stub_broker,
)


def _as(profile):
    app.dependency_overrides[deps.get_current_profile] = lambda: profile


def test_broker_issues_certificate_with_server_side_conversion(client, db_session, rate_api):
    contract = make_contract(db_session, broker_code="BRK001")
    _as(stub_broker("BRK001"))

    body = certificate_payload(contract.id, currency="usd", value_local=1000)
    body["value_euro"] = 1.0  # ignored: computed from the rate API
    r = client.post("/api/certificates", json=body)

    assert r.status_code == 201, r.text
    cert = r.json()
    year = datetime.now().year
    assert cert["certificate_number"] == f"CERT-{year}-0001"
    assert cert["currency"] == "USD"
    assert cert["value_euro"] == 920.0
    assert cert["exchange_rate"] == 0.92
    assert cert["contract"]["contract_number"] == contract.contract_number
    assert rate_api["urls"] == ["https://api.frankfurter.dev/v1/latest?base=USD&symbols=EUR"]


def test_eur_certificate_needs_no_rate_lookup(client, db_session, rate_api):
    contract = make_contract(db_session)
    _as(stub_admin())

    r = client.post("/api/certificates", json=certificate_payload(contract.id, currency="EUR"))

    assert r.status_code == 201
    assert r.json()["exchange_rate"] == 1.0
    assert rate_api["urls"] == []


def test_value_over_limit_is_rejected(client, db_session, rate_api):
    contract = make_contract(db_session, sum_insured=1000, additional_si_percentage=0)
    _as(stub_admin())

    r = client.post(
        "/api/certificates", json=certificate_payload(contract.id, currency="GBP", value_local=1000)
    )

    assert r.status_code == 400
    assert r.json() == {
        "detail": "Value (1170.00 EUR) exceeds contract limit (1000.00 EUR)",
        "code": "VALUE_LIMIT_EXCEEDED",
    }
    assert db_session.query(models.Certificate).count() == 0


def test_rate_api_outage_maps_to_bad_gateway(client, db_session, monkeypatch):
    from urllib.error import URLError

    from cargo_certs.services import currency

    def down(req, timeout=None):
        raise URLError("unreachable")

    monkeypatch.setattr(currency, "urlopen", down)
    contract = make_contract(db_session)
    _as(stub_admin())

    r = client.post("/api/certificates", json=certificate_payload(contract.id))
    assert r.status_code == 502
    assert r.json()["detail"] == "Failed to fetch exchange rate: Network error"


def test_missing_fields_report_first_problem(client, db_session):
    _as(stub_admin())
    r = client.post("/api/certificates", json={})
    assert r.status_code == 400
    assert r.json()["detail"] == "Contract is required"


def test_broker_sees_only_own_certificates(client, db_session):
    own = make_contract(db_session, contract_number="CT-1", broker_code="BRK001")
    other = make_contract(db_session, contract_number="CT-2", broker_code="BRK002")
    mine = make_certificate(db_session, own, certificate_number="CERT-2025-0001")
    theirs = make_certificate(db_session, other, certificate_number="CERT-2025-0002")

    _as(stub_broker("BRK001"))
    listed = client.get("/api/certificates").json()
    assert [c["id"] for c in listed] == [mine.id]
    assert client.get(f"/api/certificates/{theirs.id}").status_code == 403

    _as(stub_broker(None))
    assert client.get("/api/certificates").json() == []


def test_update_certificate_reconverts(client, db_session, rate_api):
    contract = make_contract(db_session)
    cert = make_certificate(db_session, contract, currency="USD", value_local=1000)
    _as(stub_admin())

    r = client.patch(f"/api/certificates/{cert.id}", json={"currency": "gbp"})

    assert r.status_code == 200, r.text
    assert r.json()["currency"] == "GBP"
    assert r.json()["value_euro"] == 1170.0
    assert r.json()["certificate_number"] == cert.certificate_number


def test_delete_certificate(client, db_session):
    contract = make_contract(db_session, broker_code="BRK001")
    cert = make_certificate(db_session, contract)

    _as(stub_broker("BRK002"))
    assert client.delete(f"/api/certificates/{cert.id}").status_code == 403

    _as(stub_broker("BRK001"))
    assert client.delete(f"/api/certificates/{cert.id}").status_code == 204
    assert client.get(f"/api/certificates/{cert.id}").status_code == 404
