"""
The Touchbase wizard as an explicit session state machine.

    record -> clone -> cooldown -> bind -> friend details -> call -> poll -> complete

``WizardSession`` is an immutable snapshot; every ``Wizard`` step takes a
session and returns the next one. A failed step raises and leaves the
session it was given untouched, so the user can retry it.

Cloning can be skipped, in which case the assistant keeps whatever voice it
already has and the wizard goes straight to the friend details.
"""

import asyncio
import secrets
import time
from enum import Enum
from typing import Callable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from touchbase.calendar import CallSchedule, schedule_from_summary
from touchbase.errors import StepOrderError
from touchbase.models import (
    AudioBlob,
    CallRecord,
    ClonedVoice,
    FriendCallRequest,
    LocalCallStatus,
)
from touchbase.playht.service import VoiceCloneService
from touchbase.validation import build_call_request
from touchbase.vapi.service import VapiService

logger = structlog.get_logger()

DEFAULT_VOICE_COOLDOWN_SECONDS = 180


def generate_session_id() -> str:
    return secrets.token_hex(8)


class WizardStep(str, Enum):
    RECORD = "record"
    CLONE = "clone"
    COOLDOWN = "cooldown"
    FRIEND_DETAILS = "friend_details"
    CALL = "call"
    POLL = "poll"
    COMPLETE = "complete"


class WizardSession(BaseModel):
    """Everything the wizard knows about one user's run through it."""

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(default_factory=generate_session_id)
    step: WizardStep = WizardStep.RECORD
    recording: AudioBlob | None = None
    voice: ClonedVoice | None = None
    cloned_at: float | None = None
    voice_bound: bool = False
    friend_request: FriendCallRequest | None = None
    call: CallRecord | None = None
    schedule: CallSchedule | None = None


class Cooldown:
    """
    Countdown before a freshly cloned voice can be bound.

    The provider needs time before a new voice ID is usable. ``wait()`` runs
    until the countdown ends and can be cancelled like any other task.
    """

    def __init__(
        self,
        seconds: float,
        started_at: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.seconds = seconds
        self.clock = clock
        self.started_at = clock() if started_at is None else started_at

    @property
    def remaining(self) -> float:
        return max(0.0, self.seconds - (self.clock() - self.started_at))

    @property
    def is_ready(self) -> bool:
        return self.remaining <= 0

    async def wait(
        self,
        tick: float = 1.0,
        on_tick: Callable[[float], None] | None = None,
    ) -> None:
        while not self.is_ready:
            if on_tick:
                on_tick(self.remaining)
            await asyncio.sleep(min(tick, self.remaining))
        if on_tick:
            on_tick(0.0)


def _require_step(session: WizardSession, *allowed: WizardStep) -> None:
    if session.step not in allowed:
        expected = ", ".join(step.value for step in allowed)
        raise StepOrderError(
            f"Cannot do that from the '{session.step.value}' step",
            details=f"Expected one of: {expected}",
        )


class Wizard:
    """Step handlers for WizardSession."""

    def __init__(
        self,
        clone_service: VoiceCloneService,
        vapi_service: VapiService,
        assistant_id: str,
        cooldown_seconds: float = DEFAULT_VOICE_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.clone_service = clone_service
        self.vapi_service = vapi_service
        self.assistant_id = assistant_id
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock

    def new_session(self) -> WizardSession:
        return WizardSession()

    def record(self, session: WizardSession, blob: AudioBlob) -> WizardSession:
        """Keep a recording, replacing any earlier one and its clone."""
        _require_step(session, WizardStep.RECORD, WizardStep.CLONE, WizardStep.COOLDOWN)
        return session.model_copy(
            update={
                "step": WizardStep.CLONE,
                "recording": blob,
                "voice": None,
                "cloned_at": None,
                "voice_bound": False,
            }
        )

    async def clone(self, session: WizardSession) -> WizardSession:
        _require_step(session, WizardStep.CLONE)
        voice = await self.clone_service.clone_voice(session.recording)
        logger.info("Session voice cloned", session_id=session.session_id, voice_id=voice.voice_id)
        return session.model_copy(
            update={
                "step": WizardStep.COOLDOWN,
                "voice": voice,
                "cloned_at": self.clock(),
            }
        )

    def skip_clone(self, session: WizardSession) -> WizardSession:
        _require_step(session, WizardStep.RECORD, WizardStep.CLONE)
        return session.model_copy(update={"step": WizardStep.FRIEND_DETAILS})

    def cooldown(self, session: WizardSession) -> Cooldown:
        _require_step(session, WizardStep.COOLDOWN)
        return Cooldown(self.cooldown_seconds, started_at=session.cloned_at, clock=self.clock)

    async def bind(self, session: WizardSession) -> WizardSession:
        """Bind the cloned voice to the assistant once the cooldown is over."""
        cooldown = self.cooldown(session)
        if not cooldown.is_ready:
            raise StepOrderError(
                "Your voice is still being prepared",
                details=f"Try again in {int(cooldown.remaining) + 1}s",
            )

        await self.vapi_service.update_assistant_voice(self.assistant_id, session.voice.voice_id)
        return session.model_copy(
            update={"step": WizardStep.FRIEND_DETAILS, "voice_bound": True}
        )

    def submit_details(self, session: WizardSession, values: dict[str, str]) -> WizardSession:
        """Validate the friend form. Raises ValidationError with per-field messages."""
        _require_step(session, WizardStep.FRIEND_DETAILS, WizardStep.CALL)
        request = build_call_request(values)
        return session.model_copy(
            update={"step": WizardStep.CALL, "friend_request": request}
        )

    async def place_call(self, session: WizardSession) -> WizardSession:
        _require_step(session, WizardStep.CALL)
        call_id = await self.vapi_service.trigger_call(session.friend_request)
        return session.model_copy(
            update={
                "step": WizardStep.POLL,
                "call": CallRecord(call_id=call_id, status=LocalCallStatus.LOADING),
                "schedule": None,
            }
        )

    def apply_call_update(self, session: WizardSession, record: CallRecord) -> WizardSession:
        """Fold a poller update into the session; terminal states complete it."""
        _require_step(session, WizardStep.POLL)
        if session.call is None or record.call_id != session.call.call_id:
            logger.debug("Ignoring update for a replaced call", call_id=record.call_id)
            return session

        update: dict = {"call": record}
        if record.status.is_terminal:
            update["step"] = WizardStep.COMPLETE
            if record.summary:
                update["schedule"] = schedule_from_summary(
                    record.summary, session.friend_request.friend_name
                )
        return session.model_copy(update=update)

    def retry_call(self, session: WizardSession) -> WizardSession:
        """Go back to the call step with the same friend details."""
        _require_step(session, WizardStep.POLL, WizardStep.COMPLETE)
        return session.model_copy(
            update={"step": WizardStep.CALL, "call": None, "schedule": None}
        )
