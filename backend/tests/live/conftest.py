"""Production pages are slow and ad-laden; use the full default timeouts."""

import pytest
from navcheck.core.config import Settings

@pytest.fixture
def browser_settings():
    return Settings()
