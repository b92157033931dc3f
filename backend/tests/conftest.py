"""Pytest configuration and fixtures."""

import os

# Set test environment variables
os.environ.setdefault("LOG_LEVEL", "ERROR")  # Reduce log noise during tests
os.environ["HEADLESS"] = "true"  # Always run headless in tests

import pytest
import pytest_asyncio
from navcheck.core.config import Settings
from navcheck.services.browser_session import BrowserSession

@pytest.fixture
def browser_settings():
    return Settings(
        headless=True,
        nav_timeout_ms=5000,
        visible_timeout_ms=3000,
        new_page_ready_timeout_ms=5000,
        disambiguation_grace_ms=300,
        scroll_settle_timeout_ms=3000,
    )

@pytest_asyncio.fixture
async def session(browser_settings):
    """A started BrowserSession; skips when Chromium is not installed."""
    browser_session = BrowserSession(browser_settings)
    try:
        await browser_session.start()
    except Exception as e:
        pytest.skip(f"Chromium could not be launched: {e}")
    try:
        yield browser_session
    finally:
        await browser_session.close()
