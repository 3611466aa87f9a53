"""Dependency Injection Container.

The container is a simple immutable dataclass holding the live analytics
objects. It has no construction logic; that belongs in the factory.

Design principles:
- Container serves, factory builds
- One container per application; tests build isolated ones with fakes
- Type safety: fields are protocol or domain types
"""

from dataclasses import dataclass

from consentgate.core.protocols import AnalyticsProvider, ConsentStore
from consentgate.domains.analytics.dispatcher import AnalyticsDispatcher
from consentgate.domains.analytics.events import AppEventTracker
from consentgate.domains.consent.manager import ConsentManager


@dataclass(frozen=True)
class Container:
    """Immutable container holding the analytics pipeline.

    Usage:
        container = create_container(settings)
        await container.start()
        container.events.track_map_rendered()

        # Consent banner callbacks
        container.consent.grant()
    """

    consent_store: ConsentStore
    consent: ConsentManager
    dispatcher: AnalyticsDispatcher
    events: AppEventTracker

    @property
    def provider(self) -> AnalyticsProvider:
        """The dispatcher's live provider."""
        return self.dispatcher.provider

    async def start(self) -> None:
        """Run the dispatcher startup protocol."""
        await self.dispatcher.start()

    async def aclose(self) -> None:
        """Close the provider."""
        await self.dispatcher.aclose()
