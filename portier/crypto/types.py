"""Type definitions for JWK key sets (RFC 7517, RFC 7518 §6.3, RFC 8037 §2).

Parsing is forward-compatible: unknown key types, algorithms, and curves
produce explicit ``UNKNOWN`` values instead of failing the whole document.
Such keys parse fine and are only rejected if a token selects them.
"""

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    PlainSerializer,
    Tag,
    model_validator,
)

from portier.crypto.encoding import base64url_decode, base64url_encode


def _decode_binary(value: Any) -> Any:
    if isinstance(value, bytes):
        return value
    if not isinstance(value, str):
        raise ValueError("expected a base64url string")
    return base64url_decode(value)


Binary = Annotated[
    bytes,
    BeforeValidator(_decode_binary),
    PlainSerializer(base64url_encode, when_used="json"),
]


def _open_enum(enum_cls: type[StrEnum]) -> BeforeValidator:
    """Map unrecognized strings onto the enum's UNKNOWN member."""

    def coerce(value: Any) -> Any:
        if isinstance(value, str) and value not in enum_cls._value2member_map_:
            return enum_cls("unknown")
        return value

    return BeforeValidator(coerce)


class RsaAlgorithm(StrEnum):
    """JWS algorithms for RSA keys."""

    RS256 = "RS256"
    UNKNOWN = "unknown"


class OkpAlgorithm(StrEnum):
    """JWS algorithms for octet key pairs."""

    EDDSA = "EdDSA"
    UNKNOWN = "unknown"


class OkpCurve(StrEnum):
    """Named curves for octet key pairs."""

    ED25519 = "Ed25519"
    UNKNOWN = "unknown"


class RsaKey(BaseModel):
    """RSA public key material: raw big-endian modulus and exponent."""

    model_config = ConfigDict(frozen=True)

    kty: Literal["RSA"] = "RSA"
    alg: Annotated[RsaAlgorithm, _open_enum(RsaAlgorithm)]
    n: Binary
    e: Binary


class OkpKey(BaseModel):
    """Octet key pair public key material."""

    model_config = ConfigDict(frozen=True)

    kty: Literal["OKP"] = "OKP"
    alg: Annotated[OkpAlgorithm, _open_enum(OkpAlgorithm)]
    crv: Annotated[OkpCurve, _open_enum(OkpCurve)]
    x: Binary


class UnknownKey(BaseModel):
    """A key of a type this package does not understand."""

    model_config = ConfigDict(frozen=True, extra="allow")

    kty: str


def _key_type(value: Any) -> str:
    kty = value.get("kty") if isinstance(value, dict) else getattr(value, "kty", None)
    if kty in ("RSA", "OKP"):
        return kty
    return "unknown"


KeyData = Annotated[
    Annotated[RsaKey, Tag("RSA")]
    | Annotated[OkpKey, Tag("OKP")]
    | Annotated[UnknownKey, Tag("unknown")],
    Discriminator(_key_type),
]


class Key(BaseModel):
    """Single JWK: a key ID plus typed key data.

    In the wire format the ``kid`` and the key data fields share one flat
    object; the data is split out here for typed dispatch.
    """

    model_config = ConfigDict(frozen=True)

    kid: str
    data: KeyData

    @model_validator(mode="before")
    @classmethod
    def _split_flat_object(cls, value: Any) -> Any:
        if isinstance(value, dict) and "data" not in value:
            return {"kid": value.get("kid"), "data": value}
        return value


class KeySet(BaseModel):
    """JSON Web Key Set document.

    Duplicate key IDs are accepted here; a token whose ``kid`` matches more
    than one key is rejected during verification.
    """

    model_config = ConfigDict(frozen=True)

    keys: list[Key]
