"""Client for the Portier passwordless email authentication protocol."""

from portier.core.settings import ClientSettings, StoreSettings
from portier.errors import (
    AudienceInvalidError,
    BuildError,
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
    PortierError,
    ServerNotAnOriginError,
    SignatureError,
    StartAuthError,
    StoreError,
    TokenError,
    TokenExpiredError,
    UntrustedServerChangedEmailError,
    VerifyError,
    VerifySessionError,
)
from portier.oidc.client import Client, ClientBuilder
from portier.oidc.types import ResponseMode
from portier.store.base import Store
from portier.store.memory import MemoryStore, generate_nonce, simple_fetch

__all__ = [
    "AudienceInvalidError",
    "BuildError",
    "Client",
    "ClientBuilder",
    "ClientSettings",
    "DiscoveryFetchError",
    "DiscoveryParseError",
    "FetchError",
    "GenerateNonceError",
    "InvalidPayloadError",
    "InvalidRedirectUriError",
    "InvalidServerError",
    "InvalidSessionError",
    "IssuedInTheFutureError",
    "IssuerInvalidError",
    "KeysFetchError",
    "KeysParseError",
    "MemoryStore",
    "PortierError",
    "ResponseMode",
    "ServerNotAnOriginError",
    "SignatureError",
    "StartAuthError",
    "Store",
    "StoreError",
    "StoreSettings",
    "TokenError",
    "TokenExpiredError",
    "UntrustedServerChangedEmailError",
    "VerifyError",
    "VerifySessionError",
    "generate_nonce",
    "simple_fetch",
]
