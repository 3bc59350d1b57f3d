import os

# Force the in-memory SQLite engine before anything imports the database module.
os.environ.setdefault("PYTEST_RUNNING", "1")
os.environ.setdefault("JWT_SECRET", "test-secret")

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

import moneygoal.db.database as db_module
from moneygoal.db import models
from moneygoal.db.database import SessionLocal, engine
from moneygoal.api import deps
from moneygoal.api.main import app
from moneygoal.services.currency_service import ExchangeRateConfig, ExchangeRateService
from moneygoal.utils.feature_flags import refresh_feature_flag_cache


@pytest.fixture(scope="session", autouse=True)
def create_schema_once():
    """Create all tables once per test session (SQLite in-memory resets per process)."""
    try:
        models.Base.metadata.create_all(bind=engine)
    except OperationalError as e:
        pytest.exit(f"Failed to create test schema: {e}")
    yield
    try:
        models.Base.metadata.drop_all(bind=engine)
    except OperationalError:
        pass


@pytest.fixture(autouse=True)
def clean_data():
    """Delete all rows between tests without dropping metadata."""
    connection = engine.connect()
    trans = connection.begin()
    for table in reversed(models.Base.metadata.sorted_tables):
        connection.execute(table.delete())
    trans.commit()
    connection.close()
    yield


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Auth and feature flags start from a known state in every test."""
    for name in (
        "DEV_MODE",
        "LLM_FEATURES_ENABLED",
        "WISE_SYNC_ENABLED",
        "PLAID_ENABLED",
        "WHATSAPP_ENABLED",
        "RECURRING_SCHEDULER_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


_GLOBAL_SESSION = None


@pytest.fixture
def db_session():
    global _GLOBAL_SESSION
    session = SessionLocal()
    _GLOBAL_SESSION = session
    try:
        yield session
    finally:
        _GLOBAL_SESSION = None
        session.close()


def _override_get_db():
    # Share the test's session with the request so tests see committed state
    if _GLOBAL_SESSION is not None:
        yield _GLOBAL_SESSION
        return
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


app.dependency_overrides[db_module.get_db] = _override_get_db


# Fakes for external services

class FakeLLM:
    """Records prompts and answers from canned replies."""

    def __init__(self) -> None:
        self.reply = "Here is some advice."
        self.json_reply: Dict[str, Any] = {"error": "invalid"}
        self.error: Optional[Exception] = None
        self.calls: List[List[Dict[str, str]]] = []

    @property
    def is_configured(self) -> bool:
        return True

    def invoke(self, messages, max_tokens=2048, *, json_response=False):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.reply

    def invoke_json(self, messages, max_tokens=2048):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.json_reply


class FakeRates(ExchangeRateService):
    """Exchange rates from a fixed table instead of the network."""

    TABLE = {
        "USD": {"USD": 1.0, "BRL": 5.0, "EUR": 0.5, "GBP": 0.8},
        "BRL": {"BRL": 1.0, "USD": 0.2, "EUR": 0.1},
        "EUR": {"EUR": 1.0, "USD": 2.0, "BRL": 10.0},
        "GBP": {"GBP": 1.0, "USD": 1.25},
    }

    def __init__(self) -> None:
        super().__init__(ExchangeRateConfig(api_base="http://rates.test", cache_ttl_seconds=3600))

    def _fetch(self, base):
        if base not in self.TABLE:
            raise ValueError(f"no rates for {base}")
        return dict(self.TABLE[base])


class FakeWiseClient:
    """In-memory stand-in for `WiseClient`; class attributes are the canned data."""

    profiles: List[Dict[str, Any]] = [{"id": 101, "type": "personal"}]
    balances: List[Dict[str, Any]] = []
    statements: Dict[str, Dict[str, Any]] = {}
    error: Optional[Exception] = None
    tokens_seen: List[str] = []

    def __init__(self, api_token: str) -> None:
        self.api_token = api_token
        FakeWiseClient.tokens_seen.append(api_token)

    def _check(self):
        if FakeWiseClient.error is not None:
            raise FakeWiseClient.error

    def get_profiles(self):
        self._check()
        return list(FakeWiseClient.profiles)

    def get_balances(self, profile_id):
        self._check()
        return list(FakeWiseClient.balances)

    def get_balance_statement(self, profile_id, currency, interval_start, interval_end):
        self._check()
        return FakeWiseClient.statements.get(currency, {"transactions": []})


class FakeSender:
    def __init__(self) -> None:
        self.sent: List[tuple] = []

    def send(self, to, body):
        self.sent.append((to, body))
        return "SM-test"


class FakePlaid:
    def __init__(self) -> None:
        self.transactions: List[Dict[str, Any]] = []
        self.removed: List[str] = []

    def create_link_token(self, client_user_id):
        return f"link-sandbox-{client_user_id}"

    def exchange_public_token(self, public_token):
        return "access-sandbox-1", "item-1", ["acc-1", "acc-2"]

    def get_transactions(self, access_token, start_date, end_date):
        return list(self.transactions)

    def remove_item(self, access_token):
        self.removed.append(access_token)


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def fake_rates():
    return FakeRates()


@pytest.fixture
def fake_wise():
    FakeWiseClient.profiles = [{"id": 101, "type": "personal"}]
    FakeWiseClient.balances = []
    FakeWiseClient.statements = {}
    FakeWiseClient.error = None
    FakeWiseClient.tokens_seen = []
    return FakeWiseClient


@pytest.fixture
def fake_sender():
    return FakeSender()


@pytest.fixture
def fake_plaid():
    return FakePlaid()


@pytest.fixture
def client(db_session, fake_llm, fake_rates, fake_wise, fake_sender, fake_plaid):
    app.dependency_overrides[deps.get_llm] = lambda: fake_llm
    app.dependency_overrides[deps.get_rates] = lambda: fake_rates
    app.dependency_overrides[deps.get_wise_client_factory] = lambda: fake_wise
    app.dependency_overrides[deps.get_sender] = lambda: fake_sender
    app.dependency_overrides[deps.get_plaid] = lambda: fake_plaid
    try:
        yield TestClient(app)
    finally:
        for provider in (deps.get_llm, deps.get_rates, deps.get_wise_client_factory, deps.get_sender, deps.get_plaid):
            app.dependency_overrides.pop(provider, None)


def _h(email):
    return {"x-auth-request-user": email.split("@")[0], "x-auth-request-email": email}


@pytest.fixture
def auth_headers():
    return _h("alice@example.com")


@pytest.fixture
def user(db_session):
    """The account behind `auth_headers`."""
    from moneygoal.db.repositories import users as user_repo

    return user_repo.get_or_create_user(db_session, email="alice@example.com", name="alice")


@pytest.fixture
def goal(db_session, user):
    from moneygoal.db.repositories import goals as goal_repo

    return goal_repo.create_goal(db_session, user_id=user.id, name="Trip to Japan", target_amount=500000)
