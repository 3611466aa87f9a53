"""Application settings loaded from the environment.

Uses Pydantic Settings for automatic env var loading. All fields are
optional; an empty measurement id routes analytics to the null provider.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from consentgate.core.config.enums import AnalyticsBackend, Environment

if TYPE_CHECKING:
    from consentgate.domains.analytics.types import AnalyticsConfig


class Settings(BaseSettings):
    """Process-wide settings.

    Env vars map one-to-one onto field names:
        ANALYTICS_MEASUREMENT_ID=G-XXXXXXX
        ANALYTICS_DEBUG=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    ENVIRONMENT: Environment = Environment.PRD
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"

    ANALYTICS_ENABLED: bool = True
    ANALYTICS_BACKEND: AnalyticsBackend = AnalyticsBackend.GA4
    ANALYTICS_MEASUREMENT_ID: str = ""
    ANALYTICS_API_SECRET: Optional[str] = None
    ANALYTICS_HOST: Optional[str] = None
    ANALYTICS_DEBUG: bool = False
    ANALYTICS_ANONYMIZE_IP: bool = True
    ANALYTICS_AUTO_SEND_PAGE_VIEW: bool = False
    ANALYTICS_TIMEOUT_SECONDS: float = Field(5.0, gt=0)

    CONSENT_STORE_PATH: Optional[Path] = None

    @property
    def analytics_active(self) -> bool:
        """Whether a real provider may be selected at all."""
        return self.ANALYTICS_ENABLED and not self.TESTING

    @property
    def consent_store_path(self) -> Path:
        """Resolve the consent file location."""
        if self.CONSENT_STORE_PATH is not None:
            return self.CONSENT_STORE_PATH
        return Path.home() / ".consentgate" / "consent.json"

    def analytics_config(self) -> "AnalyticsConfig":
        """Build the immutable analytics config for this process.

        The measurement id is blanked when analytics is disabled or the
        process runs under test, which selects the null provider.
        """
        from consentgate.domains.analytics.types import AnalyticsConfig

        measurement_id = self.ANALYTICS_MEASUREMENT_ID.strip() if self.analytics_active else ""
        return AnalyticsConfig(
            measurement_id=measurement_id,
            backend=self.ANALYTICS_BACKEND,
            api_secret=self.ANALYTICS_API_SECRET or None,
            host=self.ANALYTICS_HOST or None,
            debug_mode=self.ANALYTICS_DEBUG or self.ENVIRONMENT == Environment.LOCAL,
            anonymize_ip=self.ANALYTICS_ANONYMIZE_IP,
            auto_send_page_view=self.ANALYTICS_AUTO_SEND_PAGE_VIEW,
            environment=self.ENVIRONMENT,
            timeout_seconds=self.ANALYTICS_TIMEOUT_SECONDS,
        )
