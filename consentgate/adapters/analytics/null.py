"""Null analytics provider for when no backend is configured.

Satisfies AnalyticsProvider so the dispatcher can always be fully
constructed. Used when:
- no measurement id is configured
- the process runs under test
- an operator disables analytics explicitly

Every tracking operation is a silent no-op: nothing is recorded and
nothing leaves the process, whatever the consent state.
"""

import logging
from typing import Optional

from consentgate.core.protocols.analytics import AnalyticsProvider
from consentgate.domains.analytics.types import AnalyticsConfig, EventParams

logger = logging.getLogger(__name__)


class NullAnalyticsProvider(AnalyticsProvider):
    """No-op analytics provider."""

    def __init__(self) -> None:
        """Start not-ready; ``init`` flips the flag."""
        self._ready = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self, config: AnalyticsConfig) -> None:
        """Mark ready. No backend to register."""
        if self._ready:
            return
        self._ready = True
        logger.debug("NullAnalyticsProvider initialized (no data will be sent)")

    def is_ready(self) -> bool:
        """Return whether ``init`` has run."""
        return self._ready

    async def aclose(self) -> None:
        """No-op: nothing to release."""
        return None

    # ------------------------------------------------------------------
    # Consent and tracking (silent no-ops)
    # ------------------------------------------------------------------

    def update_consent(self, granted: bool) -> None:
        """No-op: there is no backend to unblock."""
        return None

    def track_event(self, name: str, params: Optional[EventParams] = None) -> None:
        """No-op: drop the event."""
        return None

    def track_page_view(self, path: str, title: Optional[str] = None) -> None:
        """No-op: drop the page view."""
        return None
