# Configure the environment before any storefront module reads settings
import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["USE_HTTP_ADAPTERS"] = "false"
os.environ["GATEWAY_RETRY_BACKOFF_BASE"] = "0"
os.environ["PAYSTACK_SECRET_KEY"] = "sk_test_do_not_leak"
os.environ["PAYSTACK_PUBLIC_KEY"] = "pk_test_public"

import pytest
from fastapi.testclient import TestClient

from storefront import db, settings


@pytest.fixture(autouse=True)
def use_stubs_for_tests(monkeypatch):
    monkeypatch.setattr(settings, "USE_HTTP_ADAPTERS", False)


@pytest.fixture(autouse=True)
def fresh_db():
    db.init_db()
    yield
    db.Base.metadata.drop_all(db.engine)


@pytest.fixture
def app():
    from storefront.main import app as fastapi_app

    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
