import os
import sys
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from backend.app.dependencies import get_cache  # noqa: E402
from backend.app.main import create_app  # noqa: E402


@pytest.fixture
def client(test_db, cache) -> Iterator[TestClient]:
    """App client on the test database, sharing the per-test result cache."""
    app = create_app()
    app.dependency_overrides[get_cache] = lambda: cache

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def onboarded(client) -> str:
    response = client.put(
        "/api/profiles/user-1",
        json={"primary_cluster": "frontend", "tech_stack": ["React"], "goals": ["learning-new-tech"]},
    )
    assert response.status_code == 200
    return "user-1"
