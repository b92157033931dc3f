"""Fixtures for verifier unit tests."""

import pytest
from navcheck.core.config import Settings
from fakes import FakePage, FakeContext

@pytest.fixture
def fast_settings():
    return Settings(
        nav_timeout_ms=400,
        visible_timeout_ms=100,
        new_page_ready_timeout_ms=100,
        disambiguation_grace_ms=50,
        click_timeout_ms=100,
    )

@pytest.fixture
def page():
    return FakePage("https://site/a/")

@pytest.fixture
def context():
    return FakeContext()
