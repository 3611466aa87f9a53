"""Logging configuration for consentgate.

Core and domain code log through the module-level ``logger`` or a
``ContextualLogger`` carrying key/value dimensions. Adapters use plain
``logging.getLogger(__name__)`` to avoid import cycles with this module.

Usage:
    from consentgate.core.logging import logger

    logger.info("Dispatcher started")
    provider_logger = logger.with_context(provider="ga4")
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that attaches dimensions to every record.

    Dimensions are merged into ``extra`` and rendered as a ``[k=v ...]``
    prefix so plain formatters still show them.
    """

    def __init__(self, logger: logging.Logger, dimensions: Optional[dict[str, Any]] = None):
        """Wrap a stdlib logger with a fixed set of dimensions."""
        super().__init__(logger, dict(dimensions or {}))
        self.dimensions: dict[str, Any] = dict(dimensions or {})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, Any]:
        """Merge dimensions into the record and prefix the message."""
        extra = dict(self.dimensions)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        if self.dimensions:
            prefix = " ".join(f"{k}={v}" for k, v in self.dimensions.items())
            msg = f"[{prefix}] {msg}"
        return msg, kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a new logger with additional dimensions."""
        merged = {**self.dimensions, **dimensions}
        return ContextualLogger(self.logger, merged)


class LoggerConfigurator:
    """Builds configured loggers for the package."""

    _configured = False

    @classmethod
    def setup(cls, level: str = "INFO") -> None:
        """Attach a stream handler to the package root logger once."""
        root = logging.getLogger("consentgate")
        root.setLevel(level.upper())
        if cls._configured:
            return
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        cls._configured = True

    @staticmethod
    def configure_logger(
        name: str, dimensions: Optional[dict[str, Any]] = None
    ) -> ContextualLogger:
        """Create a contextual logger for ``name`` with optional dimensions."""
        return ContextualLogger(logging.getLogger(name), dimensions)


def _initial_level() -> str:
    from consentgate.core.config import settings

    return settings.LOG_LEVEL


LoggerConfigurator.setup(_initial_level())

logger = LoggerConfigurator.configure_logger("consentgate")
