"""Relying-party client: login redirects and id_token verification.

A Client is immutable once built and holds no mutable state of its own, so
one instance can serve any number of concurrent requests. Applications that
serve several domains can build short-lived Clients sharing one Store.
"""

import time
from datetime import timedelta
from typing import Self
from urllib.parse import urlencode, urlsplit

from pydantic import ValidationError

from portier.core.settings import ClientSettings
from portier.crypto import jws
from portier.crypto.types import KeySet
from portier.errors import (
    AudienceInvalidError,
    DiscoveryFetchError,
    DiscoveryParseError,
    FetchError,
    GenerateNonceError,
    InvalidPayloadError,
    InvalidRedirectUriError,
    InvalidServerError,
    InvalidSessionError,
    IssuedInTheFutureError,
    IssuerInvalidError,
    KeysFetchError,
    KeysParseError,
    ServerNotAnOriginError,
    SignatureError,
    StoreError,
    TokenError,
    TokenExpiredError,
    UntrustedServerChangedEmailError,
    VerifySessionError,
)
from portier.oidc.discovery import DISCOVERY_PATH, DiscoveryDocument, parse_discovery
from portier.oidc.origin import is_bare_origin, normalize_url, tuple_origin
from portier.oidc.types import U64_MAX, IdTokenClaims, ResponseMode
from portier.store.base import Store
from portier.store.memory import MemoryStore

AUTH_SCOPE = "openid email"


def _unix_now() -> int:
    return int(time.time())


class ClientBuilder:
    """Collects Client configuration and validates it in ``build``.

    Defaults come from ``ClientSettings``: the public broker (trusted),
    ``form_post`` response mode, and a 180 second leeway.
    """

    def __init__(self, redirect_uri: str, settings: ClientSettings | None = None) -> None:
        settings = settings or ClientSettings()
        self._store: Store | None = None
        self._server = settings.broker
        self._trusted = True
        self._redirect_uri = redirect_uri
        self._response_mode = settings.response_mode
        self._leeway = settings.leeway_seconds

    def store(self, store: Store) -> "ClientBuilder":
        """Use ``store`` instead of a new MemoryStore."""
        self._store = store
        return self

    def broker(self, url: str) -> "ClientBuilder":
        """Use a trusted broker at ``url``, which must be an origin only."""
        self._server = url
        self._trusted = True
        return self

    def idp(self, url: str) -> "ClientBuilder":
        """Use an untrusted identity provider; normally only done by brokers."""
        self._server = url
        self._trusted = False
        return self

    def response_mode(self, mode: ResponseMode | str) -> "ClientBuilder":
        self._response_mode = ResponseMode(mode)
        return self

    def leeway(self, leeway: timedelta | int) -> "ClientBuilder":
        """Clock skew allowed when checking token timestamps."""
        if isinstance(leeway, timedelta):
            leeway = int(leeway.total_seconds())
        if leeway < 0:
            raise ValueError("leeway must not be negative")
        self._leeway = leeway
        return self

    def build(self) -> "Client":
        """Validate the configuration. Raises a BuildError subclass."""
        server_id = tuple_origin(self._server)
        if server_id is None:
            raise InvalidServerError()
        client_id = tuple_origin(self._redirect_uri)
        if client_id is None:
            raise InvalidRedirectUriError()
        if not is_bare_origin(self._server):
            raise ServerNotAnOriginError()

        return Client(
            store=self._store or MemoryStore(),
            owns_store=self._store is None,
            server_id=server_id,
            discovery_url=server_id + DISCOVERY_PATH,
            trusted=self._trusted,
            redirect_uri=normalize_url(self._redirect_uri),
            client_id=client_id,
            response_mode=self._response_mode,
            leeway=self._leeway,
        )


class Client:
    """Performs Portier authentication for one relying party.

    Build with ``Client.builder(redirect_uri).build()``. ``copy.copy``
    duplicates the settings but keeps sharing the Store.

    When the builder created the Store, the Client owns it: close it with
    ``aclose()`` or use the Client as an async context manager. A Store
    passed to the builder is left for its owner to close.
    """

    def __init__(
        self,
        *,
        store: Store,
        server_id: str,
        discovery_url: str,
        trusted: bool,
        redirect_uri: str,
        client_id: str,
        response_mode: ResponseMode,
        leeway: int,
        owns_store: bool = False,
    ) -> None:
        self.store = store
        self.owns_store = owns_store
        self.server_id = server_id
        self.discovery_url = discovery_url
        self.trusted = trusted
        self.redirect_uri = redirect_uri
        self.client_id = client_id
        self.response_mode = response_mode
        self.leeway = leeway

    @classmethod
    def builder(
        cls, redirect_uri: str, settings: ClientSettings | None = None
    ) -> ClientBuilder:
        return ClientBuilder(redirect_uri, settings)

    @classmethod
    def default(cls, redirect_uri: str) -> "Client":
        """Build a Client with default settings and a MemoryStore."""
        return ClientBuilder(redirect_uri).build()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the Store, if the builder created it."""
        if self.owns_store and isinstance(self.store, MemoryStore):
            await self.store.aclose()

    async def _discovery(self) -> DiscoveryDocument:
        try:
            data = await self.store.fetch(self.discovery_url)
        except FetchError as err:
            raise DiscoveryFetchError(err) from err
        try:
            return parse_discovery(data)
        except ValidationError as err:
            raise DiscoveryParseError(err) from err

    async def start_auth(self, email: str) -> str:
        """Create a login session for ``email`` and return the URL to redirect to.

        Redirect the user agent with a 303 and this URL in ``Location``. A
        ``state`` query parameter may be appended; the server passes it back
        verbatim to the redirect URI.
        """
        discovery = await self._discovery()
        try:
            nonce = await self.store.new_nonce(email)
        except StoreError as err:
            raise GenerateNonceError(err) from err

        query = urlencode(
            [
                ("login_hint", email),
                ("scope", AUTH_SCOPE),
                ("nonce", nonce),
                ("response_type", "id_token"),
                ("response_mode", self.response_mode.value),
                ("client_id", self.client_id),
                ("redirect_uri", self.redirect_uri),
            ]
        )
        parts = urlsplit(str(discovery.authorization_endpoint))
        if parts.query:
            query = f"{parts.query}&{query}"
        return parts._replace(query=query).geturl()

    async def verify(self, token: str) -> str:
        """Verify ``token`` and return the confirmed email address.

        The token arrives at the redirect URI according to the configured
        response mode. Raises a VerifyError subclass.
        """
        discovery = await self._discovery()
        try:
            data = await self.store.fetch(str(discovery.jwks_uri))
        except FetchError as err:
            raise KeysFetchError(err) from err
        try:
            key_set = KeySet.model_validate_json(data)
        except ValidationError as err:
            raise KeysParseError(err) from err

        try:
            payload = jws.verify(token, key_set.keys)
        except TokenError as err:
            raise SignatureError(err) from err
        try:
            claims = IdTokenClaims.model_validate_json(payload)
        except ValidationError as err:
            raise InvalidPayloadError(err) from err

        self._check_claims(claims)

        # The nonce was bound to the address as typed, before normalization.
        session_email = claims.email
        if claims.email_original is not None:
            session_email = claims.email_original
        try:
            consumed = await self.store.consume_nonce(claims.nonce, session_email)
        except StoreError as err:
            raise VerifySessionError(err) from err
        if not consumed:
            raise InvalidSessionError()

        return claims.email

    def _check_claims(self, claims: IdTokenClaims) -> None:
        if claims.iss != self.server_id:
            raise IssuerInvalidError()
        if claims.aud != self.client_id:
            raise AudienceInvalidError()

        now = _unix_now()
        exp_stretched = claims.exp + self.leeway
        if exp_stretched > U64_MAX:
            exp_stretched = 0
        if exp_stretched < now:
            raise TokenExpiredError()

        iat_stretched = claims.iat - self.leeway
        if iat_stretched < 0:
            iat_stretched = U64_MAX
        if now < iat_stretched:
            raise IssuedInTheFutureError()

        # An identity provider may not normalize the address; only a broker may.
        if (
            not self.trusted
            and claims.email_original is not None
            and claims.email_original != claims.email
        ):
            raise UntrustedServerChangedEmailError()
