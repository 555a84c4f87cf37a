"""
PlayHT configuration for instant voice cloning.

Environment variables:
- PLAYHT_API_KEY: API secret key
- PLAYHT_USER_ID: Account user ID
"""

from functools import lru_cache

from pydantic_settings import BaseSettings

from touchbase.errors import ConfigurationError

MAX_AUDIO_BYTES = 5 * 1024 * 1024


class PlayHTConfig(BaseSettings):
    """Configuration for the PlayHT voice cloning service."""

    playht_api_key: str = ""
    playht_user_id: str = ""

    playht_base_url: str = "https://api.play.ht/api/v2"
    playht_request_timeout_seconds: float = 60.0
    playht_voice_name: str = "User Voice Clone"

    max_audio_bytes: int = MAX_AUDIO_BYTES

    class Config:
        env_prefix = ""
        case_sensitive = False
        env_file = ".env"
        extra = "ignore"

    def require_credentials(self) -> None:
        if not self.playht_api_key or not self.playht_user_id:
            raise ConfigurationError(
                "Voice cloning is temporarily unavailable. Please contact support.",
                details="Missing PlayHT credentials",
            )


@lru_cache(maxsize=1)
def get_playht_config() -> PlayHTConfig:
    return PlayHTConfig()


def validate_playht_config() -> bool:
    config = get_playht_config()
    return bool(config.playht_api_key and config.playht_user_id)
