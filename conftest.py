"""Root conftest — runs before any test module imports."""

import os

import pytest

# CI runners often set FORCE_COLOR=1, which makes Rich inject ANSI escape
# codes into CLI output and breaks plain-substring assertions.
os.environ.pop("FORCE_COLOR", None)
os.environ["NO_COLOR"] = "1"

GHOSTDRAFT_ENV_VARS = [
    "GHOST_URL",
    "GHOST_ADMIN_API_KEY",
    "GHOST_API_VERSION",
    "INPUT_GHOST_API_URL",
    "INPUT_GHOST_ADMIN_API_KEY",
    "GHOSTDRAFT_REPO_ROOT",
    "GHOSTDRAFT_LOG_LEVEL",
    "GHOSTDRAFT_DEDUPE_UPLOADS",
]


@pytest.fixture(autouse=True)
def _isolate_ghost_env(monkeypatch):
    """Keep a real CI workflow's Ghost credentials out of the tests."""
    for var in GHOSTDRAFT_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
