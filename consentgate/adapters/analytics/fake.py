"""Fake analytics provider for testing."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from consentgate.domains.analytics.types import AnalyticsConfig, EventParams


@dataclass
class TrackedCall:
    """Single recorded provider call."""

    kind: str  # "event" or "page_view"
    name: str  # event name, or the page path for page views
    params: Dict[str, Any] = field(default_factory=dict)
    title: Optional[str] = None


class FakeAnalyticsProvider:
    """In-memory test double for AnalyticsProvider.

    Records every call that reaches it, regardless of consent, so tests
    can assert exactly what the dispatcher forwarded. Failures can be
    injected to check that they never surface.

    Usage:
        provider = FakeAnalyticsProvider()
        dispatcher = AnalyticsDispatcher(config, consent, provider=provider)
        await dispatcher.start()
        dispatcher.track_event("map_rendered")
        assert not provider.has("map_rendered")
    """

    def __init__(self, *, ready_after_init: bool = True) -> None:
        """Initialize with empty call log."""
        self.calls: list[TrackedCall] = []
        self.consent_updates: list[bool] = []
        self.init_count = 0
        self.closed = False
        self.config: Optional[AnalyticsConfig] = None
        self.fail_on_init = False
        self.fail_on_track = False
        self.fail_on_consent = False
        self._ready_after_init = ready_after_init
        self._ready = False

    async def init(self, config: AnalyticsConfig) -> None:
        """Record the init call."""
        self.init_count += 1
        self.config = config
        if self.fail_on_init:
            raise RuntimeError("Injected init failure")
        self._ready = self._ready_after_init

    def update_consent(self, granted: bool) -> None:
        """Record the consent update."""
        if self.fail_on_consent:
            raise RuntimeError("Injected consent failure")
        self.consent_updates.append(granted)

    def track_event(self, name: str, params: Optional[EventParams] = None) -> None:
        """Record the event."""
        if self.fail_on_track:
            raise RuntimeError("Injected track failure")
        self.calls.append(TrackedCall(kind="event", name=name, params=dict(params or {})))

    def track_page_view(self, path: str, title: Optional[str] = None) -> None:
        """Record the page view."""
        if self.fail_on_track:
            raise RuntimeError("Injected track failure")
        self.calls.append(TrackedCall(kind="page_view", name=path, title=title))

    def is_ready(self) -> bool:
        """Return the simulated ready flag."""
        return self._ready

    async def aclose(self) -> None:
        """Record shutdown."""
        self.closed = True

    # Test helpers

    @property
    def names(self) -> list[str]:
        """Event names (or page paths) in the order they were received."""
        return [c.name for c in self.calls]

    @property
    def consent_granted(self) -> Optional[bool]:
        """Most recent consent value, or None if never updated."""
        return self.consent_updates[-1] if self.consent_updates else None

    def has(self, name: str) -> bool:
        """Return True if an event with the given name was received."""
        return any(c.kind == "event" and c.name == name for c in self.calls)

    def get(self, name: str) -> TrackedCall:
        """Return the first received event matching name, or raise AssertionError."""
        for c in self.calls:
            if c.kind == "event" and c.name == name:
                return c
        raise AssertionError(f"No analytics event '{name}' received. Received: {self.names}")

    def page_views(self) -> list[TrackedCall]:
        """Return all received page views."""
        return [c for c in self.calls if c.kind == "page_view"]

    def clear(self) -> None:
        """Reset recorded calls."""
        self.calls.clear()
        self.consent_updates.clear()
