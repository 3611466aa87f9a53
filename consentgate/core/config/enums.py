"""Configuration enums for type-safe settings.

These enums provide type safety and IDE autocomplete for configuration values.
They inherit from str to maintain JSON serialization compatibility.
"""

from enum import Enum


class AnalyticsBackend(str, Enum):
    """Real analytics backends.

    Determines which provider a non-empty measurement id selects.
    """

    GA4 = "ga4"
    POSTHOG = "posthog"


class Environment(str, Enum):
    """Deployment environments.

    Attached to every tracked event so reports can filter out
    non-production traffic.
    """

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"

    @property
    def label(self) -> str:
        """Human-readable label sent as the ``environment`` event parameter."""
        if self == Environment.PRD:
            return "production"
        return "development"
