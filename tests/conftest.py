from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from dmat_service.config import Settings
from dmat_service.main import create_app


@pytest.fixture
def settings() -> Settings:
    return Settings(log_file="", docs_enabled=True, https_redirect=False)


@pytest.fixture
def api_client(settings: Settings):
    """Provide a FastAPI test client with isolated state."""
    app = create_app(settings)
    with TestClient(app) as client:
        yield client
