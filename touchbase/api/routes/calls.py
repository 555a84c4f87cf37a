"""
API routes for friend calls.

POST /trigger-call       place the AI call
GET  /call-status        one-shot status query (polled by the front end)
GET  /call-status/stream server-side polling streamed as Server-Sent Events
"""

import asyncio
import json
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sse_starlette.sse import EventSourceResponse

from touchbase.api.responses import error_response, failure
from touchbase.calendar import schedule_from_summary
from touchbase.config import Settings, get_settings
from touchbase.errors import UpstreamError
from touchbase.models import CallRecord
from touchbase.polling import CallStatusPoller
from touchbase.validation import build_call_request
from touchbase.vapi.service import VapiService, get_vapi_service

logger = structlog.get_logger()

router = APIRouter(tags=["calls"])

DEFAULT_FRIEND_NAME = "your friend"


# ══════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════


class TriggerCallRequest(BaseModel):
    """Friend details as submitted by the form."""

    userName: str
    friendName: str
    phone: str
    introduction: str
    lastMemory: str

    def form_values(self) -> dict[str, str]:
        return {
            "caller_name": self.userName,
            "friend_name": self.friendName,
            "phone_number": self.phone,
            "introduction": self.introduction,
            "last_memory_text": self.lastMemory,
        }


# ══════════════════════════════════════════════════════════
# Endpoints
# ══════════════════════════════════════════════════════════


@router.post("/trigger-call")
async def trigger_call(
    body: TriggerCallRequest,
    vapi_service: VapiService = Depends(get_vapi_service),
) -> Any:
    """Validate the friend details and ask Vapi to place the call."""
    request = build_call_request(body.form_values())

    try:
        call_id = await vapi_service.trigger_call(request)
    except UpstreamError as e:
        return error_response(e, e.passthrough_status)

    return {
        "success": True,
        "callId": call_id,
        "message": f"Calling {request.friend_name} now",
    }


@router.get("/call-status")
async def get_call_status(
    callId: str | None = Query(default=None),
    friendName: str | None = Query(default=None),
    vapi_service: VapiService = Depends(get_vapi_service),
) -> Any:
    if not callId:
        return failure("Missing callId", 400)

    try:
        report = await vapi_service.get_call_status(callId)
    except UpstreamError as e:
        return error_response(e, e.passthrough_status)

    response: dict[str, Any] = {
        "success": True,
        "callData": report.call_data,
        "status": report.status,
        "summary": report.summary,
        "recordingUrl": report.recording_url,
    }
    if report.summary:
        schedule = schedule_from_summary(report.summary, friendName or DEFAULT_FRIEND_NAME)
        response["schedule"] = schedule.model_dump(mode="json")
    return response


@router.get("/call-status/stream", response_model=None)
async def stream_call_status(
    callId: str | None = Query(default=None),
    friendName: str | None = Query(default=None),
    vapi_service: VapiService = Depends(get_vapi_service),
    settings: Settings = Depends(get_settings),
) -> EventSourceResponse | JSONResponse:
    """
    Poll a call on the server and stream its progress.

    Events:
    - status: the CallRecord after every query
    - complete: final record plus the derived follow-up schedule
    """
    if not callId:
        return failure("Missing callId", 400)

    async def event_generator():
        updates: asyncio.Queue[CallRecord] = asyncio.Queue()
        poller = CallStatusPoller(
            fetch_status=vapi_service.get_call_status,
            interval=settings.poll_interval_seconds,
            on_update=updates.put_nowait,
        )
        poller.start(callId)
        logger.info("Client subscribed to call status", call_id=callId)

        try:
            while True:
                record = await updates.get()
                yield {"event": "status", "data": record.model_dump_json()}
                if record.status.is_terminal:
                    break

            schedule = None
            if record.summary:
                schedule = schedule_from_summary(
                    record.summary, friendName or DEFAULT_FRIEND_NAME
                ).model_dump(mode="json")
            yield {
                "event": "complete",
                "data": json.dumps(
                    {"call": record.model_dump(mode="json"), "schedule": schedule}
                ),
            }
        finally:
            await poller.stop()
            logger.info("Call status stream closed", call_id=callId)

    return EventSourceResponse(event_generator())
