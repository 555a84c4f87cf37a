"""PlayHT voice cloning module."""

from touchbase.playht.config import (
    MAX_AUDIO_BYTES,
    PlayHTConfig,
    get_playht_config,
    validate_playht_config,
)
from touchbase.playht.service import (
    SUPPORTED_FORMATS,
    VoiceCloneService,
    get_voice_clone_service,
    validate_audio,
)

__all__ = [
    "MAX_AUDIO_BYTES",
    "PlayHTConfig",
    "get_playht_config",
    "validate_playht_config",
    "SUPPORTED_FORMATS",
    "VoiceCloneService",
    "get_voice_clone_service",
    "validate_audio",
]
