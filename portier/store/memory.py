"""In-memory Store with an HTTP document cache and a nonce set."""

import asyncio
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import NamedTuple, Self

import httpx

from portier.core.settings import StoreSettings
from portier.crypto.encoding import base64url_encode
from portier.errors import FetchError, FetchStatusError
from portier.store.base import Store

NONCE_BYTES = 16


class FetchResult(NamedTuple):
    """Outcome of a single GET and how long it may be cached, in seconds."""

    body: bytes
    error: Exception | None
    max_age: float


@dataclass
class _CacheEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    body: bytes = b""
    error: Exception | None = None
    expires: float = float("-inf")


def parse_max_age(cache_control: str | None) -> int | None:
    """Extract max-age from a Cache-Control header value."""
    if not cache_control:
        return None
    for directive in cache_control.split(","):
        name, sep, value = directive.strip().partition("=")
        if sep and name == "max-age":
            try:
                return int(value)
            except ValueError:
                return None
    return None


async def simple_fetch(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float,
    error_ttl: float = 3,
    min_ttl: float = 60,
) -> FetchResult:
    """GET a document and work out its cache lifetime.

    ``timeout`` bounds the whole exchange, body included. Failures (transport
    errors, timeouts, non-200 status) are returned rather than raised, with a
    short ``error_ttl`` lifetime. Successes live for ``max(min_ttl, max-age)``.
    """
    try:
        async with asyncio.timeout(timeout):
            response = await client.get(url, timeout=timeout)
    except (httpx.HTTPError, httpx.InvalidURL, TimeoutError) as err:
        return FetchResult(b"", err, error_ttl)
    if response.status_code != httpx.codes.OK:
        return FetchResult(b"", FetchStatusError(response.status_code), error_ttl)

    max_age = parse_max_age(response.headers.get("cache-control"))
    ttl = max(min_ttl, max_age) if max_age is not None else min_ttl
    return FetchResult(response.content, None, ttl)


def generate_nonce() -> str:
    """Return 128 bits of secure random data, base64url encoded.

    RNG failures propagate; they are never turned into a weaker nonce.
    """
    return base64url_encode(secrets.token_bytes(NONCE_BYTES))


class MemoryStore(Store):
    """A Store that keeps everything in process memory.

    The cache only grows, which is fine when talking to a trusted broker:
    only the discovery and keys documents are fetched. Sessions are lost on
    restart and are not shared between worker processes; applications with
    several workers need a shared Store implementation.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        settings: StoreSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or StoreSettings()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient()
        self._clock = clock
        self._cache: dict[str, _CacheEntry] = {}
        self._cache_lock = threading.Lock()
        self._nonces: set[tuple[str, str]] = set()
        self._nonces_lock = threading.Lock()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client, if this store created it."""
        if self._owns_client:
            await self._client.aclose()

    def _entry(self, url: str) -> _CacheEntry:
        with self._cache_lock:
            entry = self._cache.get(url)
            if entry is None:
                entry = self._cache[url] = _CacheEntry()
            return entry

    async def fetch(self, url: str) -> bytes:
        entry = self._entry(url)
        async with entry.lock:
            if self._clock() >= entry.expires:
                result = await simple_fetch(
                    self._client,
                    url,
                    timeout=self._settings.fetch_timeout,
                    error_ttl=self._settings.error_ttl,
                    min_ttl=self._settings.min_ttl,
                )
                entry.body = result.body
                entry.error = result.error
                entry.expires = self._clock() + result.max_age
            body, error = entry.body, entry.error
        if error is not None:
            raise FetchError(url, error) from error
        return body

    async def new_nonce(self, email: str) -> str:
        nonce = generate_nonce()
        with self._nonces_lock:
            self._nonces.add((nonce, email))
        return nonce

    async def consume_nonce(self, nonce: str, email: str) -> bool:
        with self._nonces_lock:
            try:
                self._nonces.remove((nonce, email))
            except KeyError:
                return False
            return True
