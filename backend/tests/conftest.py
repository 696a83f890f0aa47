import os
import tempfile

# Environment must be set before cargo_certs.config.settings is loaded.
_TEST_DB_PATH = os.path.join(tempfile.gettempdir(), "test_cargo_certs.db")
os.environ["SECRET_KEY"] = "test-secret-key-1234567890"
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{_TEST_DB_PATH}"
os.environ["ENVIRONMENT"] = "test"
os.environ["API_V1_STR"] = "/api"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from cargo_certs.database import Base, get_db  # noqa: E402
from cargo_certs.database import engine as app_engine  # noqa: E402
from cargo_certs.main import app  # noqa: E402
from factories import FakeRateResponse  # noqa: E402

TEST_ENGINE = app_engine

TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=TEST_ENGINE, future=True
)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function", autouse=True)
def setup_test_database():
    """Fresh schema per test; dependency overrides restored afterwards."""
    original_overrides = dict(app.dependency_overrides)

    Base.metadata.drop_all(bind=TEST_ENGINE)
    Base.metadata.create_all(bind=TEST_ENGINE)

    yield

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def rate_api(monkeypatch):
    """Serve fixed EUR rates to the exchange-rate client; records requested URLs."""
    from cargo_certs.services import currency

    state = {"rates": {"USD": 0.92, "GBP": 1.17}, "urls": []}

    def fake_urlopen(req, timeout=None):
        url = req.full_url
        state["urls"].append(url)
        if url.endswith("/currencies"):
            return FakeRateResponse({"EUR": "Euro", "USD": "United States Dollar"})
        base = url.split("base=", 1)[1].split("&", 1)[0]
        return FakeRateResponse(
            {"amount": 1.0, "base": base, "date": "2025-06-13", "rates": {"EUR": state["rates"][base]}}
        )

    monkeypatch.setattr(currency, "urlopen", fake_urlopen)
    return state
