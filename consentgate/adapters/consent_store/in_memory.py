"""In-memory consent store.

Used by tests and by embedders that keep consent elsewhere and only need
the manager's validation and notification logic.
"""

from typing import Optional

from consentgate.core.exceptions import ConsentStoreError


class InMemoryConsentStore:
    """Dict-backed implementation of the ConsentStore protocol.

    Failures can be injected to exercise the manager's recovery paths.

    Usage:
        store = InMemoryConsentStore()
        store.fail_reads = True
        manager = ConsentManager(store)
        assert manager.load() is ConsentDecision.UNDECIDED
    """

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        """Initialize with optional pre-seeded values."""
        self.data: dict[str, str] = dict(initial or {})
        self.fail_reads = False
        self.fail_writes = False
        self.writes: list[tuple[str, str]] = []  # ordered log of successful set() calls

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or raise if reads are failing."""
        if self.fail_reads:
            raise ConsentStoreError(key, "Injected read failure")
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        """Store the value, or raise if writes are failing."""
        if self.fail_writes:
            raise ConsentStoreError(key, "Injected write failure")
        self.data[key] = value
        self.writes.append((key, value))

    def clear(self) -> None:
        """Reset stored values and the write log."""
        self.data.clear()
        self.writes.clear()
