"""
API routes for voice cloning and assistant voice binding.

POST /clone-voice             upload a recording to PlayHT
POST /update-assistant-voice  bind a voice ID to a Vapi assistant
POST /update-vapi-voice       same binding, legacy response shape
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from touchbase.api.responses import error_response, failure
from touchbase.config import Settings, get_settings
from touchbase.errors import UpstreamError
from touchbase.models import AudioBlob
from touchbase.playht.service import VoiceCloneService, get_voice_clone_service
from touchbase.vapi.service import VapiService, get_vapi_service
from touchbase.wizard import generate_session_id

logger = structlog.get_logger()

router = APIRouter(tags=["voice"])


class UpdateVoiceRequest(BaseModel):
    assistantId: str | None = None
    voiceId: str | None = None


@router.post("/clone-voice")
async def clone_voice(
    request: Request,
    audio: UploadFile | None = File(default=None),
    sessionId: str | None = Form(default=None),
    clone_service: VoiceCloneService = Depends(get_voice_clone_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Clone the caller's voice from a short recording.

    Expects multipart form data with an ``audio`` file and an optional
    ``sessionId``. Sets the session cookie on success.
    """
    clone_service.config.require_credentials()

    if "multipart/form-data" not in request.headers.get("content-type", ""):
        return failure("Content-Type must be multipart/form-data", 400)

    if audio is None:
        return failure("No audio file uploaded.", 400)

    # Read one byte past the ceiling so oversized uploads are still detected
    max_bytes = clone_service.config.max_audio_bytes
    data = await audio.read(max_bytes + 1)
    blob = AudioBlob(
        data=data,
        content_type=audio.content_type or "",
        filename=audio.filename or "recording.webm",
    )

    voice = await clone_service.clone_voice(blob)

    session_id = sessionId or generate_session_id()
    logger.info("Voice clone stored for session", session_id=session_id, voice_id=voice.voice_id)

    response = JSONResponse(
        {
            "success": True,
            "voiceId": voice.voice_id,
            "sessionId": session_id,
            "message": "Voice cloned successfully",
        }
    )
    response.set_cookie(
        settings.session_cookie_name,
        session_id,
        path="/",
        httponly=True,
        samesite="lax",
    )
    return response


@router.post("/update-assistant-voice")
async def update_assistant_voice(
    body: UpdateVoiceRequest,
    vapi_service: VapiService = Depends(get_vapi_service),
) -> Any:
    if not body.assistantId or not body.voiceId:
        return failure("Missing required fields: assistantId or voiceId", 400)

    try:
        data = await vapi_service.update_assistant_voice(body.assistantId, body.voiceId)
    except UpstreamError as e:
        return error_response(e, 500)

    return {"success": True, "data": data}


@router.post("/update-vapi-voice")
async def update_vapi_voice(
    body: UpdateVoiceRequest,
    vapi_service: VapiService = Depends(get_vapi_service),
) -> Any:
    if not body.assistantId or not body.voiceId:
        return failure("Missing voiceId or assistantId in request body", 400)

    try:
        await vapi_service.update_assistant_voice(body.assistantId, body.voiceId)
    except UpstreamError as e:
        return failure("Failed to update VAPI assistant voice", 502, e.message)

    return {"success": True, "message": "VAPI assistant voice updated successfully"}
