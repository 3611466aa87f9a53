"""Dependency injection container and its factory."""

from consentgate.core.container.container import Container
from consentgate.core.container.factory import create_container, select_provider

__all__ = ["Container", "create_container", "select_provider"]
