"""Shared exceptions module.

None of these escape the dispatcher's public methods; they exist so the
layers below it can signal failure precisely and be caught at the seam.
"""

from typing import Optional


class ConsentGateException(Exception):
    """Base exception for consentgate."""

    pass


class ConsentStoreError(ConsentGateException):
    """Raised by a consent store when it cannot read or write a key."""

    def __init__(self, key: str, message: Optional[str] = "Consent store operation failed"):
        """Create a new ConsentStoreError instance.

        Args:
        ----
            key (str): The storage key being accessed.
            message (str, optional): The error message. Has default message.

        """
        self.key = key
        self.message = message
        super().__init__(f"{self.message} (key={key!r})")


class AnalyticsTransportError(ConsentGateException):
    """Raised inside a real provider when the backend rejects a delivery."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        """Create a new AnalyticsTransportError instance.

        Args:
        ----
            status_code (int): HTTP status returned by the backend.
            message (str, optional): The error message.

        """
        self.status_code = status_code
        self.message = message or f"Analytics backend responded with HTTP {status_code}"
        super().__init__(self.message)
