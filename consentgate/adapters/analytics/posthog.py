"""PostHog analytics provider adapter."""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from posthog import Posthog

from consentgate.core.protocols.analytics import AnalyticsProvider
from consentgate.domains.analytics.types import AnalyticsConfig, EventParams

logger = logging.getLogger(__name__)

DEFAULT_POSTHOG_HOST = "https://us.i.posthog.com"


class PostHogAnalyticsProvider(AnalyticsProvider):
    """Wraps the PostHog SDK behind AnalyticsProvider.

    The configured measurement id is used as the PostHog project API key.
    Starts consent-denied like every provider; captures only happen after
    ``update_consent(True)``. The SDK batches and sends from its own
    worker thread, so captures never block the caller.
    """

    def __init__(self, *, client_factory: Callable[..., Any] = Posthog) -> None:
        """Create an uninitialized provider; tests inject ``client_factory``."""
        self._client_factory = client_factory
        self._client: Any = None
        self._config: Optional[AnalyticsConfig] = None
        self._distinct_id: Optional[str] = None
        self._ready = False
        self._granted = False
        self._held_page_view: Optional[str] = None

    async def init(self, config: AnalyticsConfig) -> None:
        """Configure the PostHog client with consent denied."""
        if self._ready:
            return
        if not config.has_measurement_id:
            logger.warning("PostHog provider needs a project API key; staying not ready")
            return

        try:
            self._client = self._client_factory(
                config.measurement_id,
                host=config.host or DEFAULT_POSTHOG_HOST,
                debug=config.debug_mode,
            )
        except Exception as e:
            logger.error(f"PostHog client setup failed: {e}")
            return

        self._config = config
        self._distinct_id = config.client_id or str(uuid4())
        self._granted = False
        if config.auto_send_page_view:
            self._held_page_view = config.initial_page_path
        self._ready = True
        logger.info(f"PostHog analytics provider initialized (env={config.environment.value})")

    def is_ready(self) -> bool:
        """Return whether the SDK client was created."""
        return self._ready

    async def aclose(self) -> None:
        """Flush queued captures and stop the SDK worker."""
        if self._client is None:
            return
        client, self._client = self._client, None
        self._ready = False
        try:
            await asyncio.to_thread(client.shutdown)
        except Exception as e:
            logger.error(f"PostHog shutdown failed: {e}")

    def update_consent(self, granted: bool) -> None:
        """Allow or block captures."""
        if not self._ready:
            logger.warning("Cannot update consent - PostHog provider not ready")
            return
        self._granted = bool(granted)
        if self._config is not None and self._config.debug_mode:
            logger.info(f"[Analytics] Consent updated: {'GRANTED' if self._granted else 'DENIED'}")

        held, self._held_page_view = self._held_page_view, None
        if self._granted and held is not None:
            self.track_page_view(held)

    def track_event(self, name: str, params: Optional[EventParams] = None) -> None:
        """Capture an event, enriched with deployment metadata."""
        if not (self._ready and self._granted):
            return
        try:
            merged = {**dict(params or {}), **self._base_properties()}
            self._client.capture(distinct_id=self._distinct_id, event=name, properties=merged)
        except Exception as e:
            logger.error(f"Failed to track analytics event '{name}': {e}")

    def track_page_view(self, path: str, title: Optional[str] = None) -> None:
        """Capture a ``$pageview``."""
        if not (self._ready and self._granted):
            return
        try:
            properties: Dict[str, Any] = {"$pathname": path, **self._base_properties()}
            if title:
                properties["title"] = title
            self._client.capture(
                distinct_id=self._distinct_id, event="$pageview", properties=properties
            )
        except Exception as e:
            logger.error(f"Failed to track page view '{path}': {e}")

    def _base_properties(self) -> Dict[str, Any]:
        assert self._config is not None
        properties: Dict[str, Any] = {"environment": self._config.environment.label}
        if self._config.anonymize_ip:
            # PostHog drops the request IP when $ip is explicitly null.
            properties["$ip"] = None
        return properties
