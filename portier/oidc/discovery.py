"""OpenID Connect Discovery document parsing."""

from pydantic import AnyUrl, BaseModel, ConfigDict

DISCOVERY_PATH = "/.well-known/openid-configuration"


class DiscoveryDocument(BaseModel):
    """The parts of .well-known/openid-configuration used by the client."""

    model_config = ConfigDict(frozen=True)

    authorization_endpoint: AnyUrl
    jwks_uri: AnyUrl


def parse_discovery(data: bytes) -> DiscoveryDocument:
    """Parse a discovery document. Raises pydantic.ValidationError."""
    return DiscoveryDocument.model_validate_json(data)
