"""Analytics provider adapters."""

from consentgate.adapters.analytics.fake import FakeAnalyticsProvider
from consentgate.adapters.analytics.ga4 import GoogleAnalyticsProvider
from consentgate.adapters.analytics.null import NullAnalyticsProvider
from consentgate.adapters.analytics.posthog import PostHogAnalyticsProvider

__all__ = [
    "FakeAnalyticsProvider",
    "GoogleAnalyticsProvider",
    "NullAnalyticsProvider",
    "PostHogAnalyticsProvider",
]
