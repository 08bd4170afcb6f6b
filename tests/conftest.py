"""Pytest configuration and fixtures for oidc-console tests."""

import pytest

from oidc_console.config import Settings
from oidc_console.lifetime import ApplicationLifetime


@pytest.fixture
def settings() -> Settings:
    """Settings with both providers registered and no .env file."""
    return Settings(
        _env_file=None,
        callback_port=18739,
        github={"client_id": "github_client", "client_secret": "github_secret"},
    )


@pytest.fixture
def lifetime() -> ApplicationLifetime:
    """Application lifetime that has already started."""
    lifetime = ApplicationLifetime()
    lifetime.notify_started()
    return lifetime
