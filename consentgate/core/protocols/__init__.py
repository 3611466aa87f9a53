"""Core protocols for dependency injection."""

from consentgate.core.protocols.analytics import AnalyticsProvider
from consentgate.core.protocols.consent_store import ConsentStore

__all__ = [
    "AnalyticsProvider",
    "ConsentStore",
]
