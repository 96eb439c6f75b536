"""Root conftest: shared fixtures for all unit tests.

Provides:
- anyio backend selection (asyncio only)
- Settings isolated from the developer's environment and .env file
"""

from __future__ import annotations

import pytest

from ghtranscript.config import Settings
from tests.helpers.factories import TOKEN


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings with a test token, a per-test scratch root and tiny backoffs."""
    return Settings(
        _env_file=None,
        github_token=TOKEN,
        github_api_url="https://api.github.com",
        scratch_root=str(tmp_path),
        max_attempts=3,
        retry_backoff_min=0.01,
        retry_backoff_max=0.02,
    )
