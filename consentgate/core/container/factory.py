"""Container Factory.

All construction logic lives here. The factory reads settings and builds
the container with environment-appropriate implementations.

Design principles:
- Single place for all wiring decisions
- Provider routing is a pure function of the analytics config
- Testable: can unit test factory logic with explicit settings
"""

from typing import Optional

from consentgate.adapters.analytics.ga4 import GoogleAnalyticsProvider
from consentgate.adapters.analytics.null import NullAnalyticsProvider
from consentgate.adapters.analytics.posthog import PostHogAnalyticsProvider
from consentgate.adapters.consent_store.file import FileConsentStore
from consentgate.core.config import AnalyticsBackend, Settings
from consentgate.core.container.container import Container
from consentgate.core.logging import LoggerConfigurator, logger
from consentgate.core.protocols import AnalyticsProvider, ConsentStore
from consentgate.domains.analytics.dispatcher import AnalyticsDispatcher
from consentgate.domains.analytics.events import AppEventTracker
from consentgate.domains.analytics.types import AnalyticsConfig
from consentgate.domains.consent.manager import ConsentManager


def create_container(
    settings: Settings,
    *,
    consent_store: Optional[ConsentStore] = None,
    provider: Optional[AnalyticsProvider] = None,
) -> Container:
    """Build the analytics pipeline for this process.

    Args:
        settings: Application settings (from core/config).
        consent_store: Override the file store (tests, embedders).
        provider: Override measurement-id routing with a specific provider.

    Returns:
        Fully constructed Container; call ``await container.start()`` next.

    Example:
        from consentgate.core.config import settings
        from consentgate.core.container import create_container

        container = create_container(settings)
        await container.start()
    """
    LoggerConfigurator.setup(settings.LOG_LEVEL)

    config = settings.analytics_config()

    # -----------------------------------------------------------------
    # Consent (file store unless overridden)
    # -----------------------------------------------------------------
    store = consent_store or _create_consent_store(settings)
    consent = ConsentManager(store)

    # -----------------------------------------------------------------
    # Dispatcher (provider chosen once, here)
    # -----------------------------------------------------------------
    dispatcher = AnalyticsDispatcher(
        config,
        consent,
        provider=provider or select_provider(config),
    )

    return Container(
        consent_store=store,
        consent=consent,
        dispatcher=dispatcher,
        events=AppEventTracker(dispatcher),
    )


def select_provider(config: AnalyticsConfig) -> AnalyticsProvider:
    """Pick the provider for ``config``.

    No measurement id -> NullAnalyticsProvider; otherwise the configured
    real backend (GA4 by default).
    """
    if not config.has_measurement_id:
        logger.info("No analytics measurement id configured, using NullAnalyticsProvider")
        return NullAnalyticsProvider()

    if config.backend == AnalyticsBackend.POSTHOG:
        return PostHogAnalyticsProvider()

    return GoogleAnalyticsProvider()


def _create_consent_store(settings: Settings) -> ConsentStore:
    """Create the file-backed consent store at the configured path."""
    path = settings.consent_store_path
    logger.debug(f"Consent store: {path}")
    return FileConsentStore(path)
