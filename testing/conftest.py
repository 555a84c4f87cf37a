"""Shared fixtures: provider configs and stubbed HTTP transports."""

import pytest

from testing.helpers import RecordingTransport
from touchbase.playht.config import PlayHTConfig
from touchbase.playht.service import VoiceCloneService
from touchbase.vapi.config import VapiConfig
from touchbase.vapi.service import VapiService


@pytest.fixture
def vapi_config() -> VapiConfig:
    return VapiConfig(
        vapi_api_key="vapi-test-key",
        vapi_assistant_id="assistant-123",
        vapi_phone_number_id="phone-456",
        vapi_base_url="https://vapi.test",
    )


@pytest.fixture
def playht_config() -> PlayHTConfig:
    return PlayHTConfig(
        playht_api_key="playht-test-key",
        playht_user_id="user-789",
        playht_base_url="https://playht.test/api/v2",
    )


@pytest.fixture
def make_vapi(vapi_config):
    def _make(handler, config: VapiConfig | None = None) -> tuple[VapiService, RecordingTransport]:
        transport = RecordingTransport(handler)
        return VapiService(config or vapi_config, transport=transport), transport

    return _make


@pytest.fixture
def make_playht(playht_config):
    def _make(handler, config: PlayHTConfig | None = None) -> tuple[VoiceCloneService, RecordingTransport]:
        transport = RecordingTransport(handler)
        return VoiceCloneService(config or playht_config, transport=transport), transport

    return _make


@pytest.fixture
def friend_values() -> dict[str, str]:
    return {
        "caller_name": "Sam",
        "friend_name": "Alex",
        "phone_number": "(555) 123-4567",
        "introduction": "Your old roommate from college",
        "last_memory_text": "Road trip to the Grand Canyon in 2015",
    }
