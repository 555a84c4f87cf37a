"""
Value objects for the Touchbase call lifecycle.

Everything here is transient and scoped to one wizard session; nothing is
persisted server-side.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ProviderCallStatus(str, Enum):
    """Call status as reported by the /call-status endpoint."""

    SCHEDULED = "scheduled"
    RINGING = "ringing"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class LocalCallStatus(str, Enum):
    """Call status as tracked by the wizard while polling."""

    LOADING = "loading"
    PREPARING = "preparing"
    CALLING = "calling"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def describe(self, friend_name: str = "your friend") -> str:
        """Human-readable line for the status display."""
        match self:
            case LocalCallStatus.LOADING:
                return "Checking call status..."
            case LocalCallStatus.PREPARING:
                return "Preparing to call..."
            case LocalCallStatus.CALLING:
                return f"Calling {friend_name}..."
            case LocalCallStatus.IN_PROGRESS:
                return f"On the phone with {friend_name}..."
            case LocalCallStatus.COMPLETED:
                return "Call completed!"
            case LocalCallStatus.FAILED:
                return "Call failed. Please try again."
            case LocalCallStatus.UNKNOWN:
                return "Call status unknown."


TERMINAL_STATUSES = frozenset({LocalCallStatus.COMPLETED, LocalCallStatus.FAILED})


class AudioBlob(BaseModel):
    """An opaque recorded audio sample."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    content_type: str = "audio/wav"
    filename: str = "recording.wav"

    @property
    def size(self) -> int:
        return len(self.data)


class ClonedVoice(BaseModel):
    """Provider-issued identifier for a cloned voice."""

    model_config = ConfigDict(frozen=True)

    voice_id: str


class FriendCallRequest(BaseModel):
    """Validated details for one outbound call. Phone is E.164."""

    model_config = ConfigDict(frozen=True)

    caller_name: str = Field(min_length=2, max_length=50)
    friend_name: str = Field(min_length=1, max_length=50)
    phone_number: str = Field(pattern=r"^\+\d{10,15}$")
    introduction: str = Field(min_length=1, max_length=100)
    last_memory_text: str = Field(min_length=1, max_length=300)


class CallRecord(BaseModel):
    """Latest known state of a triggered call. Mutated only by the poller."""

    call_id: str
    status: LocalCallStatus = LocalCallStatus.LOADING
    summary: str | None = None
    recording_url: str | None = None
    error: str | None = None
