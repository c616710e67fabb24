"""Store contract: cached document fetching and single-use nonces.

A Store is shared by every Client configured with it, possibly across
concurrently running tasks, and does its own synchronization. Custom
implementations (for example one backed by a shared database, needed when
running several worker processes) can reuse ``simple_fetch`` and
``generate_nonce`` from ``portier.store.memory``.
"""

from abc import ABC, abstractmethod


class Store(ABC):
    """Backing storage used by Client."""

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Fetch a document using HTTP GET, with caching.

        Implementations should honor Cache-Control with a sensible minimum
        lifetime, and must not issue a second request for a URL while one
        is already in flight. Raises FetchError.
        """

    @abstractmethod
    async def new_nonce(self, email: str) -> str:
        """Generate a random URL-safe nonce and record the pair (nonce, email).

        No limit is applied to the number of outstanding nonces; that is
        left to the application. Raises StoreError on backend failure.
        """

    @abstractmethod
    async def consume_nonce(self, nonce: str, email: str) -> bool:
        """Atomically remove the pair (nonce, email).

        Returns whether the pair existed. Raises StoreError only for
        problems with the store itself.
        """
