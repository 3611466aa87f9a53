"""Configuration module for consentgate.

Provides centralized configuration management with type-safe enums.

Usage:
    from consentgate.core.config import settings, AnalyticsBackend, Environment

    # Access settings
    if settings.ANALYTICS_BACKEND == AnalyticsBackend.POSTHOG:
        ...

    # Build the analytics config consumed at startup
    config = settings.analytics_config()
"""

from consentgate.core.config.enums import AnalyticsBackend, Environment
from consentgate.core.config.settings import Settings

__all__ = [
    "AnalyticsBackend",
    "Environment",
    "Settings",
    "settings",
]

# Singleton settings instance
settings = Settings()
