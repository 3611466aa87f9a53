"""ConsentStore protocol for persisting the consent record.

A minimal key-value interface, the server-side rendering of browser
localStorage. The consent manager owns exactly one key in it.

Implementations:
- FileConsentStore: adapters/consent_store/file.py
- InMemoryConsentStore: adapters/consent_store/in_memory.py (tests)
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class ConsentStore(Protocol):
    """Key-value persistence for serialized consent records."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value for ``key``, or None if absent.

        Raises:
            ConsentStoreError: If the store cannot be read.
        """
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value.

        The write is atomic with respect to other keys in the store.

        Raises:
            ConsentStoreError: If the store cannot be written.
        """
        ...
