"""AnalyticsProvider protocol for consent-gated event delivery.

Adapter boundary between the dispatcher and an analytics backend
(GA4 today, PostHog as an alternative, a no-op when unconfigured).
The dispatcher always talks to *some* provider, so it never has to
special-case "no backend configured".

Every provider starts consent-denied: no data leaves the process until
``update_consent(True)`` is called.

Implementations:
- NullAnalyticsProvider: adapters/analytics/null.py
- GoogleAnalyticsProvider: adapters/analytics/ga4.py
- PostHogAnalyticsProvider: adapters/analytics/posthog.py
- FakeAnalyticsProvider: adapters/analytics/fake.py (tests)
"""

from typing import Optional, Protocol, runtime_checkable

from consentgate.domains.analytics.types import AnalyticsConfig, EventParams


@runtime_checkable
class AnalyticsProvider(Protocol):
    """Fire-and-forget analytics backend.

    No method may raise. A provider that cannot reach its backend
    degrades to logging-only behavior.
    """

    async def init(self, config: AnalyticsConfig) -> None:
        """Set up the backend with consent denied by default.

        Repeated calls must not register the backend twice. Missing
        optional config fields must not raise. ``is_ready()`` is True
        afterwards on success.
        """
        ...

    def update_consent(self, granted: bool) -> None:
        """Apply the user's analytics consent.

        Takes effect before the next track call returns. Safe to call
        before ``init`` completes.
        """
        ...

    def track_event(self, name: str, params: Optional[EventParams] = None) -> None:
        """Track a custom event. Errors are logged, never raised."""
        ...

    def track_page_view(self, path: str, title: Optional[str] = None) -> None:
        """Track a page view. Errors are logged, never raised."""
        ...

    def is_ready(self) -> bool:
        """Whether ``init`` has completed successfully. No side effects."""
        ...

    async def aclose(self) -> None:
        """Release transport resources and wait for in-flight sends."""
        ...
