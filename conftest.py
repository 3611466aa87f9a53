"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before both testpaths (tests/ and consentgate/),
making its fixtures available to centralized tests AND colocated tests.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Register pytest-asyncio plugin at the root level
pytest_plugins = ("pytest_asyncio",)

# ---------------------------------------------------------------------------
# Environment variables: must be set before any consentgate module import.
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")


# ---------------------------------------------------------------------------
# Shared fake fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_provider():
    """Fake AnalyticsProvider that records every call it receives."""
    from consentgate.adapters.analytics.fake import FakeAnalyticsProvider

    return FakeAnalyticsProvider()


@pytest.fixture
def consent_store():
    """In-memory ConsentStore with failure injection."""
    from consentgate.adapters.consent_store.in_memory import InMemoryConsentStore

    return InMemoryConsentStore()


@pytest.fixture
def fixed_clock():
    """Deterministic clock advancing one second per call."""
    start = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    ticks = iter(range(10_000))

    def _clock() -> datetime:
        return start + timedelta(seconds=next(ticks))

    return _clock


@pytest.fixture
def consent_manager(consent_store, fixed_clock):
    """ConsentManager over the in-memory store."""
    from consentgate.domains.consent.manager import ConsentManager

    return ConsentManager(consent_store, clock=fixed_clock)


@pytest.fixture
def analytics_config():
    """AnalyticsConfig with a measurement id, so a real provider would be chosen."""
    from consentgate.domains.analytics.types import AnalyticsConfig

    return AnalyticsConfig(measurement_id="G-TEST123", api_secret="secret", client_id="cid-1")
