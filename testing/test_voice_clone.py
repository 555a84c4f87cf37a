"""PlayHT voice cloning: local audio checks and upstream handling."""

import pytest

from testing.helpers import json_response
from touchbase.errors import (
    ConfigurationError,
    PayloadTooLarge,
    TouchbaseError,
    UnsupportedFormat,
    UpstreamError,
    ValidationError,
)
from touchbase.models import AudioBlob
from touchbase.playht.config import MAX_AUDIO_BYTES


def never_called(request):
    raise AssertionError(f"Upstream should not be contacted: {request.url}")


async def test_clone_voice_returns_voice_id(make_playht):
    service, transport = make_playht(json_response(201, {"id": "voice-xyz", "name": "User Voice Clone"}))

    voice = await service.clone_voice(AudioBlob(data=b"RIFF....", content_type="audio/wav"))

    assert voice.voice_id == "voice-xyz"
    request = transport.requests[0]
    assert str(request.url) == "https://playht.test/api/v2/cloned-voices/instant"
    assert request.headers["Authorization"] == "Bearer playht-test-key"
    assert request.headers["X-USER-ID"] == "user-789"
    assert b'name="sample_file"' in request.content
    assert b"User Voice Clone" in request.content


async def test_content_type_parameters_are_ignored(make_playht):
    service, _ = make_playht(json_response(201, {"id": "voice-xyz"}))

    voice = await service.clone_voice(AudioBlob(data=b"\x1aE", content_type="audio/webm;codecs=opus"))

    assert voice.voice_id == "voice-xyz"


async def test_empty_audio_is_rejected_locally(make_playht):
    service, transport = make_playht(never_called)

    with pytest.raises(ValidationError) as exc_info:
        await service.clone_voice(AudioBlob(data=b"", content_type="audio/wav"))

    assert exc_info.value.message == "Audio file is empty."
    assert transport.requests == []


async def test_oversized_audio_is_rejected_locally(make_playht):
    service, transport = make_playht(never_called)

    with pytest.raises(PayloadTooLarge):
        await service.clone_voice(AudioBlob(data=b"\0" * (MAX_AUDIO_BYTES + 1), content_type="audio/wav"))

    assert transport.requests == []


async def test_audio_at_the_ceiling_is_accepted(make_playht):
    service, _ = make_playht(json_response(201, {"id": "voice-xyz"}))

    voice = await service.clone_voice(AudioBlob(data=b"\0" * MAX_AUDIO_BYTES, content_type="audio/mpeg"))

    assert voice.voice_id == "voice-xyz"


async def test_unsupported_format_is_rejected_locally(make_playht):
    service, transport = make_playht(never_called)

    with pytest.raises(UnsupportedFormat):
        await service.clone_voice(AudioBlob(data=b"%PDF", content_type="application/pdf"))

    assert transport.requests == []


async def test_missing_credentials(make_playht, playht_config):
    config = playht_config.model_copy(update={"playht_user_id": ""})
    service, transport = make_playht(never_called, config=config)

    with pytest.raises(ConfigurationError) as exc_info:
        await service.clone_voice(AudioBlob(data=b"RIFF", content_type="audio/wav"))

    assert exc_info.value.details == "Missing PlayHT credentials"
    assert transport.requests == []


async def test_upstream_error_keeps_status_and_body(make_playht):
    service, _ = make_playht(json_response(403, {"error_message": "Plan limit reached"}))

    with pytest.raises(UpstreamError) as exc_info:
        await service.clone_voice(AudioBlob(data=b"RIFF", content_type="audio/wav"))

    assert exc_info.value.upstream_status == 403
    assert exc_info.value.status_code == 502
    assert "Plan limit reached" in exc_info.value.details


async def test_missing_voice_id(make_playht):
    service, _ = make_playht(json_response(201, {"name": "User Voice Clone"}))

    with pytest.raises(TouchbaseError) as exc_info:
        await service.clone_voice(AudioBlob(data=b"RIFF", content_type="audio/wav"))

    assert exc_info.value.status_code == 500
    assert exc_info.value.details == "No voice ID returned from PlayHT"
