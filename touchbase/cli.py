#!/usr/bin/env python3
"""
Touchbase command line.

Usage:
    touchbase serve [--port 8000]
    touchbase wizard                     # record from the microphone
    touchbase wizard --audio sample.wav  # use an existing recording
    touchbase wizard --skip-clone        # keep the assistant's current voice
"""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

import structlog
from dotenv import load_dotenv

from touchbase.calendar import ScheduleOutcome
from touchbase.config import get_settings
from touchbase.errors import TouchbaseError, ValidationError
from touchbase.log import configure_logging
from touchbase.models import AudioBlob, CallRecord
from touchbase.playht.service import VoiceCloneService
from touchbase.polling import CallStatusPoller
from touchbase.recording import VoiceRecorder
from touchbase.validation import FIELDS, FriendForm
from touchbase.vapi.service import VapiService
from touchbase.wizard import Wizard, WizardSession, WizardStep

logger = structlog.get_logger()

FIELD_PROMPTS = {
    "caller_name": "Your name",
    "friend_name": "Friend's name",
    "phone_number": "Friend's phone number",
    "introduction": "How should the assistant introduce you?",
    "last_memory_text": "Your last memory together",
}


async def ask(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


async def confirm(prompt: str) -> bool:
    answer = await ask(f"{prompt} [Y/n] ")
    return answer.strip().lower() in ("", "y", "yes")


def load_audio_file(path: Path) -> AudioBlob:
    content_type, _ = mimetypes.guess_type(path.name)
    return AudioBlob(
        data=path.read_bytes(),
        content_type=content_type or "application/octet-stream",
        filename=path.name,
    )


async def record_sample(max_seconds: int) -> AudioBlob:
    await ask(f"Press Enter to start recording (up to {max_seconds}s)...")

    with VoiceRecorder(max_duration=max_seconds) as recorder:
        recorder.start()
        stop = asyncio.create_task(ask("Recording... press Enter to stop. "))
        while recorder.is_recording and not stop.done():
            print(f"\r  {int(recorder.seconds_remaining):02d}s left ", end="", flush=True)
            await asyncio.sleep(0.5)
        print()
        blob = recorder.stop()
        if not stop.done():
            print("Maximum duration reached; press Enter to continue.")
            await stop

    print(f"Captured {blob.size} bytes.")
    return blob


async def collect_friend_details(wizard: Wizard, session: WizardSession) -> WizardSession:
    form = FriendForm()
    while True:
        for field in FIELDS:
            if field in form.touched and field not in form.errors:
                continue
            while True:
                value = await ask(f"{FIELD_PROMPTS[field]}: ")
                error = form.update(field, value)
                if not error:
                    break
                print(f"  {error}")
        try:
            return wizard.submit_details(session, form.values)
        except ValidationError as e:
            for field, message in e.field_errors.items():
                print(f"  {FIELD_PROMPTS[field]}: {message}")


async def run_wizard(args: argparse.Namespace) -> int:
    settings = get_settings()
    vapi_service = VapiService()
    wizard = Wizard(
        clone_service=VoiceCloneService(),
        vapi_service=vapi_service,
        assistant_id=vapi_service.config.vapi_assistant_id,
        cooldown_seconds=settings.voice_cooldown_seconds,
    )
    session = wizard.new_session()

    # 1. Voice
    if args.skip_clone:
        session = wizard.skip_clone(session)
    else:
        while session.step in (WizardStep.RECORD, WizardStep.CLONE):
            blob = (
                load_audio_file(args.audio)
                if args.audio
                else await record_sample(settings.max_recording_seconds)
            )
            session = wizard.record(session, blob)
            try:
                session = await wizard.clone(session)
            except TouchbaseError as e:
                print(f"Voice cloning failed: {e.message}")
                if args.audio or not await confirm("Record again?"):
                    return 1

        print(f"Voice cloned ({session.voice.voice_id}). Letting it propagate...")
        await wizard.cooldown(session).wait(
            on_tick=lambda left: print(f"\r  {int(left):3d}s ", end="", flush=True)
        )
        print()

        while session.step is WizardStep.COOLDOWN:
            try:
                session = await wizard.bind(session)
            except TouchbaseError as e:
                print(f"Could not attach your voice to the assistant: {e.message}")
                if not await confirm("Try again?"):
                    return 1

    # 2. Friend
    session = await collect_friend_details(wizard, session)

    # 3. Call
    while True:
        try:
            session = await wizard.place_call(session)
        except TouchbaseError as e:
            print(f"Call failed: {e.message}")
            if not await confirm("Try again?"):
                return 1
            continue

        friend = session.friend_request.friend_name

        def show(record: CallRecord) -> None:
            line = record.status.describe(friend)
            if record.error:
                line = f"{line} ({record.error})"
            print(f"  {line}")

        poller = CallStatusPoller(
            fetch_status=vapi_service.get_call_status,
            interval=settings.poll_interval_seconds,
            on_update=show,
        )
        poller.start(session.call.call_id)
        try:
            record = await poller.wait()
        finally:
            await poller.stop()

        session = wizard.apply_call_update(session, record)
        if session.step is WizardStep.COMPLETE and session.call.summary:
            break
        if not await confirm("The call did not complete. Call again?"):
            return 1
        session = wizard.retry_call(session)

    # 4. Follow-up
    print("\nSummary:\n" + session.call.summary)
    if session.call.recording_url:
        print(f"Recording: {session.call.recording_url}")

    schedule = session.schedule
    if schedule.outcome is ScheduleOutcome.SCHEDULED:
        print(f"\nFollow-up chat on {schedule.start:%A %d %B %Y at %H:%M}")
        print(f"Add it to your calendar: {schedule.calendar_url}")
    elif schedule.outcome is ScheduleOutcome.NO_CALL_SCHEDULED:
        print(f"\n{friend} didn't schedule a follow-up call this time.")
    else:
        print("\nCouldn't find a follow-up time in the summary.")
    return 0


def serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "touchbase.main:app",
        host=args.host,
        port=args.port or settings.port,
        reload=settings.debug,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Touchbase: reconnect with old friends")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=None)

    wizard_parser = subparsers.add_parser("wizard", help="Run the call wizard in this terminal")
    wizard_parser.add_argument("--audio", type=Path, help="Use this recording instead of the microphone")
    wizard_parser.add_argument("--skip-clone", action="store_true", help="Keep the assistant's current voice")

    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    if args.command == "serve":
        return serve(args)

    try:
        return asyncio.run(run_wizard(args))
    except TouchbaseError as e:
        logger.error("Wizard stopped", error=e.message, details=e.details)
        print(f"Error: {e.message}")
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
