from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Wizard timings
    poll_interval_seconds: float = 3.0
    voice_cooldown_seconds: int = 180
    max_recording_seconds: int = 30

    # Session cookie set by /clone-voice
    session_cookie_name: str = "voice_session"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
