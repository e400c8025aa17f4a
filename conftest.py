import pytest

from hunt_admin.content import MemoryStore

ENV_VARS = (
    "GITHUB_TOKEN",
    "REPO_OWNER",
    "GITHUB_OWNER",
    "REPO_NAME",
    "GITHUB_REPO",
    "GITHUB_BRANCH",
    "GITHUB_BASE_DIR",
    "GITHUB_API",
    "REF_CACHE_TTL",
    "CONTENT_STORE",
    "BASIC_AUTH_USER",
    "BASIC_AUTH_PASS",
    "AUTH_DISABLE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Strip content-store and auth variables (including any loaded from .env)."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def store():
    return MemoryStore()
