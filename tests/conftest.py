from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_application
from app.services.auth_service import AuthService


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        standup_data_store="memory",
        auth_secret_key="test-secret",
        log_level="WARNING",
    )


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    with TestClient(create_application(settings)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[[str], dict[str, str]]:
    auth_service = AuthService(settings)

    def _headers(email: str) -> dict[str, str]:
        issued = auth_service.issue_access_token(email)
        return {"Authorization": f"Bearer {issued.token}"}

    return _headers
