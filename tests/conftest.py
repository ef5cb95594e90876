from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from credentials import get_secret_provider
from errors import Internal
from main import app, get_clock
from sql_db_processor import SqlRepository, get_repository, metadata

API_KEY = 'test-api-key'
FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeSecretProvider:

    def __init__(self, secrets: dict[str, str] | None = None, fail: bool = False):
        self.secrets = {'APIKEY': API_KEY} if secrets is None else secrets
        self.fail = fail
        self.calls = []

    def get_secret(self, name: str) -> str:
        self.calls.append(name)
        if self.fail:
            raise Internal('vault unreachable')
        return self.secrets[name]


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def repository():
    engine = create_engine('sqlite://', connect_args={'check_same_thread': False}, poolclass=StaticPool)
    metadata.create_all(engine)
    yield SqlRepository(engine)
    engine.dispose()


@pytest.fixture
def secret_provider():
    return FakeSecretProvider()


@pytest.fixture
def client(repository, secret_provider, fixed_now):
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_secret_provider] = lambda: secret_provider
    app.dependency_overrides[get_clock] = lambda: (lambda: fixed_now)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {'x-api-key': API_KEY}
