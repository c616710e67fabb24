"""Exception hierarchy for client construction, fetching, and verification."""


class PortierError(Exception):
    """Base class for all errors raised by this package."""


# Build-time


class BuildError(PortierError):
    """The client configuration cannot be used."""


class InvalidServerError(BuildError):
    def __init__(self) -> None:
        super().__init__("the configured server URL cannot be used")


class InvalidRedirectUriError(BuildError):
    def __init__(self) -> None:
        super().__init__("the configured redirect URI cannot be used")


class ServerNotAnOriginError(BuildError):
    def __init__(self) -> None:
        super().__init__(
            "the configured server is not an origin (contains additional components)"
        )


# Store


class StoreError(PortierError):
    """A Store backend failed to perform an operation."""


class FetchStatusError(PortierError):
    """The server answered with a status other than 200."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"unexpected HTTP status code {status_code}")
        self.status_code = status_code


class FetchError(StoreError):
    """A document could not be retrieved.

    ``cause`` may be shared between several waiters of the same cached
    request; it is never raised directly.
    """

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"{url}: {cause}")
        self.url = url
        self.cause = cause


# Signature-time


class TokenError(PortierError):
    """The compact token could not be verified against the key set."""


class IncorrectFormatError(TokenError):
    def __init__(self) -> None:
        super().__init__("the token must consist of three dot-separated parts")


class InvalidPartBase64Error(TokenError):
    def __init__(self, index: int, reason: ValueError) -> None:
        super().__init__(f"token part {index} contained invalid base64: {reason}")
        self.index = index
        self.reason = reason


class InvalidHeaderJsonError(TokenError):
    def __init__(self, reason: Exception) -> None:
        super().__init__(f"the token header contained invalid JSON: {reason}")
        self.reason = reason


class KidNotMatchedError(TokenError):
    def __init__(self, kid: str) -> None:
        super().__init__(
            f"the token 'kid' could not be found in the JWKs document: {kid}"
        )
        self.kid = kid


class UnsupportedKeyTypeError(TokenError):
    def __init__(self) -> None:
        super().__init__("the matching JWK is of an unsupported type")


class BadSignatureError(TokenError):
    def __init__(self) -> None:
        super().__init__("the token signature did not validate using the matching JWK")


# Protocol operations


class StartAuthError(PortierError):
    """Client.start_auth failed."""


class VerifyError(PortierError):
    """Client.verify rejected the token."""


class DiscoveryFetchError(StartAuthError, VerifyError):
    def __init__(self, reason: FetchError) -> None:
        super().__init__(f"could not fetch discovery document: {reason}")
        self.reason = reason


class DiscoveryParseError(StartAuthError, VerifyError):
    def __init__(self, reason: Exception) -> None:
        super().__init__(f"could not parse discovery document: {reason}")
        self.reason = reason


class GenerateNonceError(StartAuthError):
    def __init__(self, reason: StoreError) -> None:
        super().__init__(f"could not generate nonce: {reason}")
        self.reason = reason


class KeysFetchError(VerifyError):
    def __init__(self, reason: FetchError) -> None:
        super().__init__(f"could not fetch keys document: {reason}")
        self.reason = reason


class KeysParseError(VerifyError):
    def __init__(self, reason: Exception) -> None:
        super().__init__(f"could not parse keys document: {reason}")
        self.reason = reason


class SignatureError(VerifyError):
    def __init__(self, reason: TokenError) -> None:
        super().__init__(f"could not verify token signature: {reason}")
        self.reason = reason


class InvalidPayloadError(VerifyError):
    def __init__(self, reason: Exception) -> None:
        super().__init__(f"invalid token payload: {reason}")
        self.reason = reason


class IssuerInvalidError(VerifyError):
    def __init__(self) -> None:
        super().__init__("the token issuer did not match")


class AudienceInvalidError(VerifyError):
    def __init__(self) -> None:
        super().__init__("the token audience did not match")


class TokenExpiredError(VerifyError):
    def __init__(self) -> None:
        super().__init__("the token has expired")


class IssuedInTheFutureError(VerifyError):
    def __init__(self) -> None:
        super().__init__("the token issue time is in the future")


class UntrustedServerChangedEmailError(VerifyError):
    def __init__(self) -> None:
        super().__init__("the server changed the email address, but is not trusted")


class VerifySessionError(VerifyError):
    def __init__(self, reason: StoreError) -> None:
        super().__init__(f"could not verify the session: {reason}")
        self.reason = reason


class InvalidSessionError(VerifyError):
    def __init__(self) -> None:
        super().__init__("the session is invalid or has expired")
