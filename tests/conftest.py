"""
Shared fixtures.

Storage tests run against SQLite in memory: one shared connection
(StaticPool), fresh schema per test. Nothing here talks to a real
server or reads the developer's .env secrets.
"""

import asyncio
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from budget_tracker.api import create_app
from budget_tracker.audit import AuditLogger
from budget_tracker.config import AppSettings, AuthSettings
from budget_tracker.orchestrator import create_app_components
from budget_tracker.plans import PlanActivationManager
from budget_tracker.services.auth import AuthProvider
from budget_tracker.services.storage import SqlStore
from budget_tracker.models.budget import User


TEST_SECRET = "test-secret-key-for-budget-tracker"


def run(coro):
    """Drive one coroutine to completion."""
    return asyncio.run(coro)


@pytest.fixture
def app_settings():
    return AppSettings(
        app_environment="test",
        percentage_tolerance=Decimal("0.01"),
        password_min_length=6,
        password_max_length=100,
    )


@pytest.fixture
def jwt_secret():
    return TEST_SECRET


@pytest.fixture
def auth_provider(jwt_secret):
    return AuthProvider(AuthSettings(secret=jwt_secret))


@pytest.fixture
def audit_logger():
    return AuditLogger("budget_tracker.tests")


@pytest.fixture
def store():
    store = SqlStore.from_url("sqlite://")
    store.create_schema()
    yield store
    store.drop_schema()
    store.dispose()


@pytest.fixture
def user(store):
    return run(store.add_user(User(email="alice@example.com", password_hash="x")))


@pytest.fixture
def other_user(store):
    return run(store.add_user(User(email="bob@example.com", password_hash="x")))


@pytest.fixture
def manager(store, audit_logger, app_settings):
    return PlanActivationManager(store, audit_logger=audit_logger, settings=app_settings)


@pytest.fixture
def components(store, auth_provider, audit_logger, app_settings):
    return create_app_components(
        store=store, auth=auth_provider, audit_logger=audit_logger, settings=app_settings
    )


@pytest.fixture
def client(components, app_settings):
    return TestClient(create_app(components, settings=app_settings))
