"""Shared test fixtures: signing keys, a fake broker, and stores."""

import json
import time
from collections import Counter
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ed25519, padding, rsa
from fastapi import FastAPI, Request, Response
from httpx import ASGITransport, AsyncClient

from portier.crypto.encoding import base64url_encode
from portier.store.memory import MemoryStore

BROKER = "https://broker.example"
REDIRECT_URI = "https://rp.example/verify"
CLIENT_ID = "https://rp.example"
DISCOVERY_URL = f"{BROKER}/.well-known/openid-configuration"
JWKS_URL = f"{BROKER}/keys.json"
AUTH_ENDPOINT = f"{BROKER}/auth"
USER_EMAIL = "alice@example.com"
SIGNING_KID = "ed-key-1"

SigningKey = ed25519.Ed25519PrivateKey | rsa.RSAPrivateKey


def _int_to_base64url(value: int) -> str:
    byte_length = (value.bit_length() + 7) // 8
    return base64url_encode(value.to_bytes(byte_length, byteorder="big"))


def public_jwk(private_key: SigningKey, kid: str) -> dict[str, str]:
    """Convert a private key's public half to a JWK entry."""
    if isinstance(private_key, rsa.RSAPrivateKey):
        numbers = private_key.public_key().public_numbers()
        return {
            "kty": "RSA",
            "alg": "RS256",
            "use": "sig",
            "kid": kid,
            "n": _int_to_base64url(numbers.n),
            "e": _int_to_base64url(numbers.e),
        }
    raw = private_key.public_key().public_bytes_raw()
    return {
        "kty": "OKP",
        "alg": "EdDSA",
        "crv": "Ed25519",
        "use": "sig",
        "kid": kid,
        "x": base64url_encode(raw),
    }


class IdTokenIssuer:
    """Mints id_tokens the way a broker does."""

    def __init__(self, private_key: SigningKey, kid: str, issuer: str = BROKER) -> None:
        self.private_key = private_key
        self.kid = kid
        self.issuer = issuer

    @property
    def algorithm(self) -> str:
        return "RS256" if isinstance(self.private_key, rsa.RSAPrivateKey) else "EdDSA"

    def create_id_token(self, nonce: str, **overrides: Any) -> str:
        """Create a signed id_token; ``overrides`` replace or drop (None) claims."""
        now = int(time.time())
        payload: dict[str, Any] = {
            "iss": self.issuer,
            "aud": CLIENT_ID,
            "sub": USER_EMAIL,
            "email": USER_EMAIL,
            "email_verified": True,
            "iat": now,
            "exp": now + 600,
            "nonce": nonce,
        }
        payload.update(overrides)
        payload = {k: v for k, v in payload.items() if v is not None}
        return jwt.encode(
            payload,
            self.private_key,
            algorithm=self.algorithm,
            headers={"kid": self.kid},
        )

    def sign_raw(self, header: dict[str, Any], payload: bytes) -> str:
        """Sign arbitrary header and payload bytes, bypassing claim encoding."""
        signing_input = (
            base64url_encode(json.dumps(header).encode())
            + "."
            + base64url_encode(payload)
        )
        if isinstance(self.private_key, rsa.RSAPrivateKey):
            signature = self.private_key.sign(
                signing_input.encode(), padding.PKCS1v15(), hashes.SHA256()
            )
        else:
            signature = self.private_key.sign(signing_input.encode())
        return f"{signing_input}.{base64url_encode(signature)}"


def create_broker_app(jwks: dict[str, Any], cache_control: str) -> FastAPI:
    """A broker serving discovery and keys documents, counting requests."""
    app = FastAPI()
    app.state.hits = Counter()
    app.state.jwks = jwks

    @app.middleware("http")
    async def count_hits(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        app.state.hits[request.url.path] += 1
        return await call_next(request)

    @app.get("/.well-known/openid-configuration")
    async def openid_configuration(response: Response) -> dict[str, str]:
        response.headers["Cache-Control"] = cache_control
        return {
            "issuer": BROKER,
            "authorization_endpoint": AUTH_ENDPOINT,
            "jwks_uri": JWKS_URL,
        }

    @app.get("/keys.json")
    async def keys(response: Response) -> dict[str, Any]:
        response.headers["Cache-Control"] = cache_control
        return app.state.jwks

    return app


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Point the default broker at the fake broker."""
    monkeypatch.setenv("PORTIER_BROKER", BROKER)


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def ed_key() -> ed25519.Ed25519PrivateKey:
    return ed25519.Ed25519PrivateKey.generate()


@pytest.fixture
def issuer(ed_key: ed25519.Ed25519PrivateKey) -> IdTokenIssuer:
    return IdTokenIssuer(ed_key, SIGNING_KID)


@pytest.fixture
def rsa_issuer(rsa_key: rsa.RSAPrivateKey) -> IdTokenIssuer:
    return IdTokenIssuer(rsa_key, "rsa-key-1")


@pytest.fixture
def jwks(issuer: IdTokenIssuer, rsa_issuer: IdTokenIssuer) -> dict[str, Any]:
    return {
        "keys": [
            public_jwk(issuer.private_key, issuer.kid),
            public_jwk(rsa_issuer.private_key, rsa_issuer.kid),
        ]
    }


@pytest.fixture
def make_jwk() -> Callable[[SigningKey, str], dict[str, str]]:
    return public_jwk


@pytest.fixture
def broker_app(jwks: dict[str, Any]) -> FastAPI:
    return create_broker_app(jwks, "public, max-age=3600")


@pytest.fixture
async def broker_http(broker_app: FastAPI) -> AsyncIterator[AsyncClient]:
    """An httpx client routed to the fake broker app."""
    transport = ASGITransport(app=broker_app)
    async with AsyncClient(transport=transport) as ac:
        yield ac


@pytest.fixture
async def memory_store(broker_http: AsyncClient) -> AsyncIterator[MemoryStore]:
    async with MemoryStore(http_client=broker_http) as store:
        yield store


@pytest.fixture
def make_issuer() -> type[IdTokenIssuer]:
    return IdTokenIssuer
