"""
Vapi.ai configuration for outbound friend calls.

Environment variables:
- VAPI_API_KEY: API authentication key
- VAPI_PHONE_NUMBER_ID: Outbound phone number ID
- VAPI_ASSISTANT_ID: Pre-configured assistant that places the call
"""

from functools import lru_cache

from pydantic_settings import BaseSettings

from touchbase.errors import ConfigurationError


class VapiConfig(BaseSettings):
    """Configuration for the Vapi voice calling service."""

    # Credentials and fixed identifiers
    vapi_api_key: str = ""
    vapi_phone_number_id: str = ""
    vapi_assistant_id: str = ""

    # API settings
    vapi_base_url: str = "https://api.vapi.ai"
    vapi_request_timeout_seconds: float = 10.0

    # Provider of the cloned voices bound to the assistant
    vapi_voice_provider: str = "playht"

    class Config:
        env_prefix = ""
        case_sensitive = False
        env_file = ".env"
        extra = "ignore"

    def require(self, *fields: str) -> None:
        """Raise ConfigurationError naming the first blank field."""
        for field in fields:
            if not getattr(self, field):
                raise ConfigurationError(
                    "Calling service is not configured",
                    details=f"Missing {field.upper()}",
                )


@lru_cache(maxsize=1)
def get_vapi_config() -> VapiConfig:
    """Get cached Vapi configuration from environment."""
    return VapiConfig()


def validate_vapi_config() -> bool:
    """Validate that all required Vapi config is present."""
    config = get_vapi_config()
    return bool(
        config.vapi_api_key
        and config.vapi_phone_number_id
        and config.vapi_assistant_id
    )
