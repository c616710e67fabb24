"""Compact JWS verification using Ed25519 (EdDSA) and RS256 keys."""

from collections.abc import Iterable

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicNumbers
from pydantic import BaseModel, ValidationError

from portier.crypto.encoding import base64url_decode
from portier.crypto.types import (
    Key,
    OkpAlgorithm,
    OkpCurve,
    OkpKey,
    RsaAlgorithm,
    RsaKey,
)
from portier.errors import (
    BadSignatureError,
    IncorrectFormatError,
    InvalidHeaderJsonError,
    InvalidPartBase64Error,
    KidNotMatchedError,
    UnsupportedKeyTypeError,
)

RSA_MIN_MODULUS_BITS = 2048
RSA_MAX_MODULUS_BITS = 8192


class _Header(BaseModel):
    kid: str


def verify(token: str, keys: Iterable[Key]) -> bytes:
    """Verify a compact JWS and return its payload bytes, unparsed.

    Exactly one key in ``keys`` must carry the ``kid`` named in the token
    header. Raises a ``TokenError`` subclass on any failure.
    """
    parts = token.split(".")
    if len(parts) != 3 or not all(parts):
        raise IncorrectFormatError()
    header_b64, payload_b64, _ = parts

    # The signing input is the encoded text, not a re-encoding of the parts.
    message = token[: len(header_b64) + 1 + len(payload_b64)].encode()

    decoded = []
    for index, part in enumerate(parts, start=1):
        try:
            decoded.append(base64url_decode(part))
        except ValueError as err:
            raise InvalidPartBase64Error(index, err) from err
    header_raw, payload, signature = decoded

    try:
        header = _Header.model_validate_json(header_raw)
    except ValidationError as err:
        raise InvalidHeaderJsonError(err) from err

    matched = [key for key in keys if key.kid == header.kid]
    if len(matched) != 1:
        raise KidNotMatchedError(header.kid)

    match matched[0].data:
        case OkpKey(alg=OkpAlgorithm.EDDSA, crv=OkpCurve.ED25519, x=x):
            _verify_ed25519(x, message, signature)
        case RsaKey(alg=RsaAlgorithm.RS256, n=n, e=e):
            _verify_rs256(n, e, message, signature)
        case _:
            raise UnsupportedKeyTypeError()

    return payload


def _verify_ed25519(x: bytes, message: bytes, signature: bytes) -> None:
    try:
        Ed25519PublicKey.from_public_bytes(x).verify(signature, message)
    except (InvalidSignature, ValueError):
        raise BadSignatureError() from None


def _verify_rs256(n: bytes, e: bytes, message: bytes, signature: bytes) -> None:
    modulus = int.from_bytes(n, "big")
    exponent = int.from_bytes(e, "big")
    if not RSA_MIN_MODULUS_BITS <= modulus.bit_length() <= RSA_MAX_MODULUS_BITS:
        raise BadSignatureError()
    try:
        public_key = RSAPublicNumbers(exponent, modulus).public_key()
        public_key.verify(signature, message, padding.PKCS1v15(), hashes.SHA256())
    except (InvalidSignature, ValueError):
        raise BadSignatureError() from None
