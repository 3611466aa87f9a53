"""Consent-gated analytics dispatcher.

Application code calls ``track_event`` / ``track_page_view`` at will. The
dispatcher asks the consent manager on every call and either forwards the
call to the live provider, drops it, or holds it in a bounded FIFO buffer
until the user decides:

    granted    -> forward immediately
    denied     -> drop; nothing is buffered
    undecided  -> buffer (oldest dropped when full)

On grant the buffer is replayed in enqueue order; on deny it is discarded
without forwarding anything. There is no way to retract a call once it was
forwarded: revoking consent only affects calls made after the revocation.
"""

import itertools
from collections import deque
from typing import Any, Callable, Optional

from consentgate.adapters.analytics.null import NullAnalyticsProvider
from consentgate.core.logging import ContextualLogger
from consentgate.core.logging import logger as default_logger
from consentgate.core.protocols.analytics import AnalyticsProvider
from consentgate.domains.analytics.types import (
    AnalyticsConfig,
    QueuedCall,
    QueuedEvent,
    QueuedPageView,
    normalize_event_name,
    sanitize_params,
)
from consentgate.domains.consent.manager import ConsentManager
from consentgate.domains.consent.types import ConsentDecision

# Pre-decision window is expected to be short; overflow drops the oldest call.
BUFFER_CAPACITY = 32


class AnalyticsDispatcher:
    """Routes tracking calls through the consent gate to one provider.

    No public method raises. Provider failures are logged and ignored.

    Usage:
        dispatcher = AnalyticsDispatcher(config, consent_manager)
        await dispatcher.start()
        dispatcher.track_event(EventName.MAP_RENDERED)
        dispatcher.grant()  # flushes anything buffered so far
    """

    def __init__(
        self,
        config: AnalyticsConfig,
        consent: ConsentManager,
        *,
        provider: Optional[AnalyticsProvider] = None,
        capacity: int = BUFFER_CAPACITY,
        logger: Optional[ContextualLogger] = None,
    ) -> None:
        """Wire the dispatcher; the provider is selected from config unless given.

        Args:
            config: Immutable analytics config.
            consent: The consent manager; the dispatcher subscribes to it.
            provider: Explicit provider, bypassing measurement-id routing.
            capacity: Maximum number of buffered calls.
            logger: Optional contextual logger.
        """
        if provider is None:
            from consentgate.core.container.factory import select_provider

            provider = select_provider(config)

        self._config = config
        self._consent = consent
        self._provider: AnalyticsProvider = provider
        self._buffer: deque[QueuedCall] = deque(maxlen=max(1, capacity))
        self._seq = itertools.count()
        self._started = False
        self._overflow_count = 0
        self._logger = (logger or default_logger).with_context(component="analytics")
        self._unsubscribe = consent.subscribe(self._on_consent_change)

    # ------------------------------------------------------------------
    # Startup / shutdown
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Initialize the provider consent-denied, then apply stored consent.

        If the provider fails to initialize it is replaced by a
        NullAnalyticsProvider. Calling ``start`` twice is a no-op.
        """
        if self._started:
            self._logger.debug("Dispatcher already started")
            return

        await self._init_provider()
        self._started = True

        if self._consent.is_loaded:
            decision = self._consent.current_decision()
        else:
            decision = self._consent.load()

        self._logger.info(
            f"Analytics started with {type(self._provider).__name__} "
            f"(consent: {decision.value}, buffered: {len(self._buffer)})"
        )
        self._apply(decision)

    async def aclose(self) -> None:
        """Stop listening for consent changes and close the provider."""
        try:
            self._unsubscribe()
            await self._provider.aclose()
        except Exception as e:
            self._logger.error(f"Provider shutdown failed: {e}")

    async def _init_provider(self) -> None:
        try:
            await self._provider.init(self._config)
        except Exception as e:
            self._logger.warning(f"{type(self._provider).__name__} init raised: {e}")

        if self._provider_ready():
            return

        self._logger.warning(
            f"{type(self._provider).__name__} not ready after init, "
            "falling back to NullAnalyticsProvider"
        )
        self._provider = NullAnalyticsProvider()
        await self._provider.init(self._config)

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track_event(self, name: Any, params: Any = None) -> None:
        """Track a custom event, subject to consent.

        Args:
            name: An ``EventName`` or any non-empty string.
            params: Scalar event parameters; anything else is sanitized away.
        """
        try:
            event_name = normalize_event_name(name)
            if event_name is None:
                self._logger.warning(f"Dropping event with invalid name: {name!r}")
                return
            self._route(lambda seq: QueuedEvent(seq, event_name, sanitize_params(params)))
        except Exception as e:
            self._logger.error(f"track_event failed for {name!r}: {e}")

    def track_page_view(self, path: Any, title: Any = None) -> None:
        """Track a page view, subject to consent."""
        try:
            if not isinstance(path, str) or not path.strip():
                self._logger.warning(f"Dropping page view with invalid path: {path!r}")
                return
            page_title = title if isinstance(title, str) and title else None
            self._route(lambda seq: QueuedPageView(seq, path, page_title))
        except Exception as e:
            self._logger.error(f"track_page_view failed for {path!r}: {e}")

    # ------------------------------------------------------------------
    # Consent passthrough
    # ------------------------------------------------------------------

    def grant(self) -> None:
        """Record the user's consent; buffered calls are flushed."""
        try:
            self._consent.grant()
        except Exception as e:
            self._logger.error(f"Recording consent grant failed: {e}")

    def deny(self) -> None:
        """Record the user's refusal; buffered calls are discarded."""
        try:
            self._consent.deny()
        except Exception as e:
            self._logger.error(f"Recording consent denial failed: {e}")

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def provider(self) -> AnalyticsProvider:
        """The single live provider."""
        return self._provider

    @property
    def consent(self) -> ConsentManager:
        """The consent manager this dispatcher follows."""
        return self._consent

    @property
    def decision(self) -> ConsentDecision:
        """Current consent decision."""
        return self._consent.current_decision()

    @property
    def is_started(self) -> bool:
        """Whether ``start`` has completed."""
        return self._started

    @property
    def buffered_count(self) -> int:
        """Number of calls waiting for a consent decision."""
        return len(self._buffer)

    @property
    def buffered_calls(self) -> tuple[QueuedCall, ...]:
        """Snapshot of the buffer, oldest first."""
        return tuple(self._buffer)

    @property
    def overflow_count(self) -> int:
        """Calls dropped because the buffer was full."""
        return self._overflow_count

    def is_ready(self) -> bool:
        """Whether the live provider reports ready."""
        return self._provider_ready()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _route(self, build: Callable[[int], QueuedCall]) -> None:
        decision = self._consent.current_decision()
        if decision is ConsentDecision.DENIED:
            return

        call: QueuedCall = build(next(self._seq))
        if decision is ConsentDecision.GRANTED and self._started:
            self._forward(call)
            return

        # Undecided, or granted before start(): hold until the provider is live.
        self._enqueue(call)

    def _enqueue(self, call: QueuedCall) -> None:
        if len(self._buffer) == self._buffer.maxlen:
            dropped = self._buffer[0]
            self._overflow_count += 1
            self._logger.debug(f"Consent buffer full, dropping oldest call #{dropped.seq}")
        self._buffer.append(call)

    def _forward(self, call: QueuedCall) -> None:
        try:
            call.replay(self._provider)
        except Exception as e:
            self._logger.error(f"{type(self._provider).__name__} failed on call #{call.seq}: {e}")

    def _flush(self) -> None:
        pending = list(self._buffer)
        self._buffer.clear()
        if pending:
            self._logger.debug(f"Flushing {len(pending)} buffered analytics calls")
        for call in pending:
            self._forward(call)

    def _purge(self) -> None:
        if self._buffer:
            self._logger.debug(f"Discarding {len(self._buffer)} buffered analytics calls")
        self._buffer.clear()

    def _apply(self, decision: ConsentDecision) -> None:
        if decision is ConsentDecision.GRANTED:
            self._update_provider_consent(True)
            self._flush()
        elif decision is ConsentDecision.DENIED:
            self._update_provider_consent(False)
            self._purge()

    def _on_consent_change(self, decision: ConsentDecision) -> None:
        if not self._started:
            # start() applies the decision once the provider is initialized.
            if decision is ConsentDecision.DENIED:
                self._purge()
            return
        self._apply(decision)

    def _update_provider_consent(self, granted: bool) -> None:
        try:
            self._provider.update_consent(granted)
        except Exception as e:
            self._logger.error(f"{type(self._provider).__name__} rejected consent update: {e}")

    def _provider_ready(self) -> bool:
        try:
            return bool(self._provider.is_ready())
        except Exception as e:
            self._logger.error(f"{type(self._provider).__name__}.is_ready() raised: {e}")
            return False

