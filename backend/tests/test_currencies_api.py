from cargo_certs.api import deps
from cargo_certs.main import app
from factories import stub_broker


def _as_broker():
    app.dependency_overrides[deps.get_current_profile] = lambda: stub_broker()


def test_list_currencies(client, rate_api):
    _as_broker()
    resp = client.get("/api/currencies")
    assert resp.status_code == 200
    codes = {c["code"] for c in resp.json()}
    assert codes == {"EUR", "USD"}


def test_convert_preview(client, rate_api):
    _as_broker()
    resp = client.get("/api/currencies/convert", params={"amount": 1000, "currency": "usd"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["currency"] == "USD"
    assert body["value_euro"] == 920.0
    assert body["exchange_rate"] == 0.92
    assert body["rate_date"] == "2025-06-13"


def test_convert_rejects_bad_input_without_calling_rate_api(client, rate_api):
    _as_broker()
    resp = client.get("/api/currencies/convert", params={"amount": -5, "currency": "USD"})
    assert resp.status_code == 400
    assert rate_api["urls"] == []


def test_currencies_require_authentication(client):
    assert client.get("/api/currencies").status_code == 401
