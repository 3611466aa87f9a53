"""Consent-gated analytics dispatch."""
