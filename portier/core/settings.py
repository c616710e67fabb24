"""Client and store settings loaded from environment variables."""

from pydantic import NonNegativeInt, PositiveFloat
from pydantic_settings import BaseSettings, SettingsConfigDict

from portier.oidc.types import ResponseMode

DEFAULT_BROKER = "https://broker.portier.io"
LEEWAY_DEFAULT = 180
FETCH_TIMEOUT_DEFAULT = 30.0
ERROR_TTL_DEFAULT = 3
MIN_TTL_DEFAULT = 60


class ClientSettings(BaseSettings):
    """Defaults used by ClientBuilder."""

    model_config = SettingsConfigDict(env_prefix="PORTIER_")

    broker: str = DEFAULT_BROKER
    response_mode: ResponseMode = ResponseMode.FORM_POST
    leeway_seconds: NonNegativeInt = LEEWAY_DEFAULT


class StoreSettings(BaseSettings):
    """Fetch and cache policy of the in-memory store."""

    model_config = SettingsConfigDict(env_prefix="PORTIER_STORE_")

    fetch_timeout: PositiveFloat = FETCH_TIMEOUT_DEFAULT
    error_ttl: NonNegativeInt = ERROR_TTL_DEFAULT
    min_ttl: NonNegativeInt = MIN_TTL_DEFAULT
