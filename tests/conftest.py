import os
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before settings are first loaded
os.environ.setdefault("INTEGRITY_ENFORCEMENT", "strict")
os.environ.setdefault("ENVIRONMENT", "development")

from flow_integrity.api.deps import get_enforcer  # noqa: E402
from flow_integrity.config import Settings, get_settings  # noqa: E402
from flow_integrity.core.enforcement import IntegrityEnforcer  # noqa: E402
from flow_integrity.main import create_application  # noqa: E402

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def enforcer() -> IntegrityEnforcer:
    """Fresh strict enforcer, isolated from the process-wide instance."""
    return IntegrityEnforcer("strict")


@pytest.fixture
def test_settings() -> Settings:
    return Settings(integrity_admin_token=ADMIN_TOKEN)


@pytest.fixture
def client(enforcer, test_settings):
    app = create_application()
    app.dependency_overrides[get_enforcer] = lambda: enforcer
    app.dependency_overrides[get_settings] = lambda: test_settings
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


@pytest.fixture
def ready_context() -> dict:
    """Context under which a video call may start."""
    return {"paymentState": "confirmed", "sessionState": "ready", "formsComplete": True}
