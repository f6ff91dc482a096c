"""Pytest fixtures."""

import pytest

from svc_config.settings import Settings
from svc_env import describe


@pytest.fixture
def write_env(tmp_path):
    """Write an override file and return its path."""

    def _write(content: str, name: str = ".env"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def clean_settings_env(monkeypatch):
    """Remove every Settings key from the process environment."""
    for descriptor in describe(Settings):
        monkeypatch.delenv(descriptor.key, raising=False)
    return monkeypatch


@pytest.fixture
def settings_source():
    """Minimal source mapping that satisfies every required Settings key."""
    return {
        "DATABASE_NAME": "appdb",
        "DATABASE_USER_NAME": "app",
        "DATABASE_USER_PASSWORD": "s3cret",
    }
