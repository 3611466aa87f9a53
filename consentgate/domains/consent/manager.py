"""Consent manager: sole owner of the user's consent record.

Loads the persisted record, validates it against the current policy
version, records grant/deny decisions, persists them, and notifies
subscribers synchronously. Store failures are never fatal: a failed read
means "undecided", a failed write is logged and the in-memory decision
still applies.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from consentgate.core.logging import ContextualLogger
from consentgate.core.logging import logger as default_logger
from consentgate.core.protocols.consent_store import ConsentStore
from consentgate.domains.consent.types import (
    CONSENT_POLICY_VERSION,
    CONSENT_STORAGE_KEY,
    ConsentDecision,
    ConsentState,
)

ConsentListener = Callable[[ConsentDecision], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConsentManager:
    """Owns the consent record's lifecycle.

    Usage:
        manager = ConsentManager(FileConsentStore(path))
        manager.load()
        if manager.needs_prompt:
            ...  # show the consent banner
        manager.grant()
    """

    def __init__(
        self,
        store: ConsentStore,
        *,
        policy_version: int = CONSENT_POLICY_VERSION,
        storage_key: str = CONSENT_STORAGE_KEY,
        clock: Callable[[], datetime] = _utcnow,
        logger: Optional[ContextualLogger] = None,
    ) -> None:
        """Initialize an undecided manager over ``store``."""
        self._store = store
        self._policy_version = policy_version
        self._storage_key = storage_key
        self._clock = clock
        self._logger = (logger or default_logger).with_context(component="consent")
        self._state: Optional[ConsentState] = None
        self._loaded = False
        self._listeners: list[ConsentListener] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def state(self) -> Optional[ConsentState]:
        """The current valid record, or None while undecided."""
        return self._state

    @property
    def policy_version(self) -> int:
        """Policy version decisions are recorded and validated under."""
        return self._policy_version

    @property
    def is_loaded(self) -> bool:
        """Whether ``load()`` has run."""
        return self._loaded

    @property
    def needs_prompt(self) -> bool:
        """Whether the user must be asked (no valid decision on record)."""
        return self.current_decision() is ConsentDecision.UNDECIDED

    def current_decision(self) -> ConsentDecision:
        """Return the current decision. Pure read."""
        if self._state is None:
            return ConsentDecision.UNDECIDED
        return self._state.decision

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> ConsentDecision:
        """Read and validate the persisted record.

        Absent, unreadable, malformed, or outdated records all leave the
        manager undecided. Never raises.
        """
        self._loaded = True
        self._state = None

        try:
            raw = self._store.get(self._storage_key)
        except Exception as e:
            self._logger.warning(f"Could not read consent record, treating as undecided: {e}")
            return ConsentDecision.UNDECIDED

        if not raw:
            self._logger.debug("No consent record stored")
            return ConsentDecision.UNDECIDED

        try:
            stored = ConsentState.model_validate_json(raw)
        except ValidationError as e:
            self._logger.warning(
                f"Invalid consent record, treating as undecided ({e.error_count()} errors)"
            )
            return ConsentDecision.UNDECIDED

        if not stored.is_current(self._policy_version):
            self._logger.info(
                f"Consent record is for policy v{stored.policy_version}, "
                f"current is v{self._policy_version}; re-consent required"
            )
            return ConsentDecision.UNDECIDED

        self._state = stored
        self._logger.debug(f"Loaded consent decision: {stored.decision.value}")
        return stored.decision

    def grant(self) -> ConsentState:
        """Record that the user accepted analytics."""
        return self._decide(True)

    def deny(self) -> ConsentState:
        """Record that the user declined analytics."""
        return self._decide(False)

    def subscribe(self, listener: ConsentListener) -> Callable[[], None]:
        """Register a listener for decision changes.

        Listeners run synchronously inside ``grant()``/``deny()``.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _decide(self, granted: bool) -> ConsentState:
        state = ConsentState(
            analytics_granted=granted,
            decided_at=self._clock(),
            policy_version=self._policy_version,
        )
        self._state = state
        self._loaded = True
        self._persist(state)
        self._logger.info(f"Consent {state.decision.value} (policy v{self._policy_version})")
        self._notify(state.decision)
        return state

    def _persist(self, state: ConsentState) -> None:
        try:
            self._store.set(self._storage_key, state.to_json())
        except Exception as e:
            # Best effort: the decision still applies for this process.
            self._logger.warning(f"Could not persist consent record: {e}")

    def _notify(self, decision: ConsentDecision) -> None:
        for listener in list(self._listeners):
            try:
                listener(decision)
            except Exception as e:
                self._logger.error(f"Consent listener failed for '{decision.value}': {e}")
