"""Type definitions for the authentication request and id_token claims."""

import math
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict

U64_MAX = 2**64 - 1


class ResponseMode(StrEnum):
    """How the server returns the id_token to the redirect URI.

    ``FRAGMENT`` needs client-side script to relay the token, because the
    URL fragment never reaches the server.
    """

    FRAGMENT = "fragment"
    FORM_POST = "form_post"


def parse_timestamp(value: Any) -> int:
    """Parse a Unix timestamp that may be encoded as an integer or a float."""
    if isinstance(value, bool):
        raise ValueError("expected a number")
    if isinstance(value, int):
        if not 0 <= value <= U64_MAX:
            raise ValueError("timestamp out of range")
        return value
    if isinstance(value, float):
        if not math.isfinite(value) or value < 0:
            raise ValueError("timestamp out of range")
        return min(int(value), U64_MAX)
    raise ValueError("expected a number")


Timestamp = Annotated[int, BeforeValidator(parse_timestamp)]


class IdTokenClaims(BaseModel):
    """Claims of an id_token issued by the authentication server.

    ``email_original`` is present when the server normalized the address
    the user typed; the nonce is bound to that original address.
    """

    model_config = ConfigDict(frozen=True)

    iss: str
    aud: str
    email: str
    email_original: str | None = None
    iat: Timestamp
    exp: Timestamp
    nonce: str
