"""Consent store adapters."""

from consentgate.adapters.consent_store.file import FileConsentStore
from consentgate.adapters.consent_store.in_memory import InMemoryConsentStore

__all__ = ["FileConsentStore", "InMemoryConsentStore"]
