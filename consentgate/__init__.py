"""Consent-gated analytics dispatch for client applications."""

__version__ = "0.1.0"
