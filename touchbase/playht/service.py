"""
PlayHT instant voice cloning.

Uploads a short recording and returns the provider's voice ID. Every
submission creates a new voice; there is no de-duplication.
"""

from typing import Any

import httpx
import structlog

from touchbase.errors import (
    PayloadTooLarge,
    Timeout,
    TouchbaseError,
    TransportError,
    UnsupportedFormat,
    UpstreamError,
    ValidationError,
)
from touchbase.models import AudioBlob, ClonedVoice
from touchbase.playht.config import PlayHTConfig, get_playht_config

logger = structlog.get_logger()

SUPPORTED_FORMATS = frozenset(
    {
        "audio/webm",
        "audio/mp3",
        "audio/wav",
        "audio/mpeg",
        "audio/x-wav",
        "audio/wave",
        "audio/ogg",
        "audio/x-m4a",
        "audio/mp4",
    }
)


def base_content_type(content_type: str | None) -> str:
    """``audio/webm;codecs=opus`` -> ``audio/webm``"""
    return (content_type or "").split(";", 1)[0].strip().lower()


def validate_audio(blob: AudioBlob, max_bytes: int) -> None:
    """
    Check an upload before it leaves the server.

    Raises:
        ValidationError: If the blob is empty
        PayloadTooLarge: If it exceeds ``max_bytes``
        UnsupportedFormat: If its content type is not an allowed audio type
    """
    if blob.size == 0:
        raise ValidationError("Audio file is empty.")

    if blob.size > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise PayloadTooLarge(
            f"Audio file too large. Maximum size is {limit_mb:g}MB.",
            details=f"Received {blob.size} bytes",
        )

    if base_content_type(blob.content_type) not in SUPPORTED_FORMATS:
        raise UnsupportedFormat(
            f"Unsupported audio format: {blob.content_type or 'unknown'}",
            details=f"Supported formats: {', '.join(sorted(SUPPORTED_FORMATS))}",
        )


class VoiceCloneService:
    """Client for PlayHT's instant clone endpoint."""

    def __init__(
        self,
        config: PlayHTConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or get_playht_config()
        self.base_url = self.config.playht_base_url.rstrip("/")
        self._transport = transport

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.playht_api_key}",
            "X-USER-ID": self.config.playht_user_id,
            "accept": "application/json",
        }

    async def clone_voice(self, blob: AudioBlob) -> ClonedVoice:
        """
        Submit a recording and create a new cloned voice.

        Raises:
            ConfigurationError: If PlayHT credentials are missing
            ValidationError: If the audio is empty, too large or of the wrong type
            Timeout / TransportError: On network failure
            UpstreamError: If PlayHT rejects the upload
            TouchbaseError: If PlayHT accepts the upload but returns no ID
        """
        self.config.require_credentials()
        validate_audio(blob, self.config.max_audio_bytes)

        logger.info(
            "Submitting voice clone",
            size=blob.size,
            content_type=blob.content_type,
        )

        files = {"sample_file": (blob.filename, blob.data, base_content_type(blob.content_type))}
        data = {"voice_name": self.config.playht_voice_name}

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/cloned-voices/instant",
                    headers=self.headers,
                    files=files,
                    data=data,
                    timeout=self.config.playht_request_timeout_seconds,
                )
        except httpx.TimeoutException as e:
            logger.error("PlayHT request timed out")
            raise Timeout("Voice cloning timed out", details=str(e)) from e
        except httpx.HTTPError as e:
            logger.error("PlayHT request failed", error=str(e))
            raise TransportError(
                "Voice cloning failed",
                details=f"PlayHT API error: No response received - {e}",
            ) from e

        body: Any
        try:
            body = response.json()
        except ValueError:
            body = response.text

        if response.is_error:
            logger.error("PlayHT returned an error", status=response.status_code, body=body)
            raise UpstreamError(
                "Voice cloning failed",
                upstream_status=response.status_code,
                body=f"PlayHT API error: {response.status_code} - {body}",
            )

        voice_id = body.get("id") if isinstance(body, dict) else None
        if not voice_id:
            logger.error("PlayHT returned no voice ID", body=body)
            raise TouchbaseError(
                "Voice cloning failed",
                details="No voice ID returned from PlayHT",
            )

        logger.info("Voice cloned", voice_id=voice_id)
        return ClonedVoice(voice_id=voice_id)


_voice_clone_service: VoiceCloneService | None = None


def get_voice_clone_service() -> VoiceCloneService:
    global _voice_clone_service
    if _voice_clone_service is None:
        _voice_clone_service = VoiceCloneService()
    return _voice_clone_service
