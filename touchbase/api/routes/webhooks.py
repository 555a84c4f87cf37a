"""
Webhook receivers.

The calendar webhook is a placeholder for calendar-provider callbacks once
a follow-up chat is booked; it acknowledges everything.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Request

logger = structlog.get_logger()

router = APIRouter(tags=["webhooks"])


@router.post("/calendar-webhook")
async def calendar_webhook(request: Request) -> dict[str, Any]:
    body = await request.body()
    logger.info("Received calendar webhook", size=len(body))
    return {"status": "ok"}
