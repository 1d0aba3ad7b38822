"""Shared fixtures for the secretsync test suite."""
from pathlib import Path

import pytest

from secretsync.sync.domains import preferences
from secretsync.sync.domains.errors import SecretStoreError


class FakeStore:
    """In-memory secret store that records every call in order."""

    def __init__(self, existing=None, fail_create=(), fail_update=()):
        self.data = dict(existing or {})
        self.calls = []
        self.fail_create = set(fail_create)
        self.fail_update = set(fail_update)

    def create(self, path, value):
        self.calls.append(("create", path))
        if path in self.fail_create or path in self.data:
            raise SecretStoreError(f"cannot create {path}")
        self.data[path] = value

    def update(self, path, value):
        self.calls.append(("update", path))
        if path in self.fail_update:
            raise SecretStoreError(f"cannot update {path}")
        self.data[path] = value


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Fixture to create a temporary home directory for testing."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)

    fake_config_dir = fake_home / ".config" / "secretsync"
    monkeypatch.setattr(preferences, "PREFERENCES_DIR", fake_config_dir)
    monkeypatch.setattr(preferences, "PREFERENCES_FILE", fake_config_dir / "preferences.json")

    return fake_home


@pytest.fixture
def clean_env(monkeypatch):
    """Remove CI and cloud environment variables that would leak into tests."""
    for name in (
        "AWS_REGION", "AWS_DEFAULT_REGION", "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY",
        "AWS_SESSION_TOKEN", "GCP_PROJECT", "SECRETSYNC_BACKEND", "DISTRIBUTION_ID",
        "GITHUB_SECRETS_JSON", "CALLER_VARIABLES_JSON", "GITHUB_REPOSITORY",
        "GITHUB_EVENT_NAME", "GITHUB_HEAD_REF", "GITHUB_REF",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_store():
    """Factory for FakeStore instances with preset failures."""
    return FakeStore
