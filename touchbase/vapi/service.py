"""
Vapi service for friend calls.

Thin client over the Vapi REST API: place a call, read its status, and bind
a cloned voice to the calling assistant. No retries are performed; failures
surface as TouchbaseError subclasses for the caller to report.
"""

from typing import Any

import httpx
import structlog
from pydantic import BaseModel

from touchbase.errors import Timeout, TransportError, UpstreamError
from touchbase.log import mask_phone
from touchbase.models import FriendCallRequest
from touchbase.vapi.call_context import FriendCallContext
from touchbase.vapi.config import VapiConfig, get_vapi_config

logger = structlog.get_logger()

# Vapi statuses that differ from the wizard's vocabulary
_STATUS_ALIASES = {
    "queued": "scheduled",
    "ended": "completed",
}


class CallStatusReport(BaseModel):
    """Status of one call, normalized from the raw Vapi call object."""

    call_data: dict[str, Any]
    status: str | None = None
    summary: str | None = None
    recording_url: str | None = None


def normalize_vapi_status(call_data: dict[str, Any]) -> str | None:
    """
    Translate Vapi's call status into the wizard's provider vocabulary.

    ``ended`` becomes ``failed`` when the ended reason reports an error,
    otherwise ``completed``. Unrecognized statuses pass through unchanged.
    """
    status = call_data.get("status")
    if status is None:
        return None

    if status == "ended":
        reason = str(call_data.get("endedReason") or "").lower()
        if "error" in reason or "failed" in reason:
            return "failed"

    return _STATUS_ALIASES.get(status, status)


def parse_call_status(call_data: dict[str, Any]) -> CallStatusReport:
    analysis = call_data.get("analysis") or {}
    artifact = call_data.get("artifact") or {}

    return CallStatusReport(
        call_data=call_data,
        status=normalize_vapi_status(call_data),
        summary=analysis.get("summary") or call_data.get("summary"),
        recording_url=call_data.get("recordingUrl") or artifact.get("recordingUrl"),
    )


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _expect_object(data: Any) -> dict[str, Any]:
    """Reject a success response whose body is not a JSON object."""
    if not isinstance(data, dict):
        logger.error("Unexpected Vapi response body", body=data)
        raise UpstreamError("Unexpected response from the calling service", body=data)
    return data


class VapiService:
    """Service for managing Vapi voice calls."""

    def __init__(
        self,
        config: VapiConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or get_vapi_config()
        self.base_url = self.config.vapi_base_url.rstrip("/")
        self.timeout = self.config.vapi_request_timeout_seconds
        self.headers = {
            "Authorization": f"Bearer {self.config.vapi_api_key}",
            "Content-Type": "application/json",
        }
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send one request and return the decoded JSON body."""
        self.config.require("vapi_api_key")

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers=self.headers,
                    timeout=self.timeout,
                    **kwargs,
                )
        except httpx.TimeoutException as e:
            logger.error("Vapi request timed out", method=method, path=path)
            raise Timeout(
                "Request to the calling service timed out",
                details=f"No response within {self.timeout:g}s",
            ) from e
        except httpx.HTTPError as e:
            logger.error("Vapi request failed", method=method, path=path, error=str(e))
            raise TransportError(
                "Could not reach the calling service", details=str(e)
            ) from e

        if response.is_error:
            body = _response_body(response)
            logger.error(
                "Vapi returned an error",
                method=method,
                path=path,
                status=response.status_code,
                body=body,
            )
            message = body.get("message") if isinstance(body, dict) else None
            raise UpstreamError(
                f"Calling service error: {message or response.status_code}",
                upstream_status=response.status_code,
                body=body,
            )

        return _response_body(response)

    async def trigger_call(self, request: FriendCallRequest) -> str:
        """
        Place an outbound call to a friend.

        Args:
            request: Validated call details

        Returns:
            The Vapi call ID

        Raises:
            ConfigurationError: If credentials or fixed identifiers are missing
            Timeout: If Vapi does not answer within the request timeout
            UpstreamError: If Vapi rejects the call
            TransportError: On network failure
        """
        self.config.require("vapi_api_key", "vapi_assistant_id", "vapi_phone_number_id")

        payload = FriendCallContext(request).to_vapi_call_payload(
            phone_number_id=self.config.vapi_phone_number_id,
            assistant_id=self.config.vapi_assistant_id,
        )

        logger.info(
            "Triggering Vapi call",
            friend=request.friend_name,
            phone=mask_phone(request.phone_number),
        )

        data = _expect_object(await self._request("POST", "/call", json=payload))
        call_id = data.get("id")
        if not call_id:
            raise UpstreamError("No call ID returned from the calling service", body=data)

        logger.info("Vapi call initiated", call_id=call_id)
        return call_id

    async def get_call_status(self, call_id: str) -> CallStatusReport:
        """
        Read the current status of a call. Read-only.

        Raises:
            UpstreamError: On a non-success response or a body that is not a
                JSON object (treated as a hard failure)
            TransportError: On network failure (transient for pollers)
        """
        data = _expect_object(await self._request("GET", f"/call/{call_id}"))
        report = parse_call_status(data)
        logger.debug("Vapi call status", call_id=call_id, status=report.status)
        return report

    async def update_assistant_voice(self, assistant_id: str, voice_id: str) -> dict[str, Any]:
        """
        Bind a cloned voice to an assistant.

        Vapi may reject a voice that was cloned moments ago; callers wait out
        a cooldown first and retry manually on failure.
        """
        logger.info("Updating assistant voice", assistant_id=assistant_id, voice_id=voice_id)

        data = await self._request(
            "PATCH",
            f"/assistant/{assistant_id}",
            json={
                "voice": {
                    "provider": self.config.vapi_voice_provider,
                    "voiceId": voice_id,
                },
            },
        )

        logger.info("Assistant voice updated", assistant_id=assistant_id)
        return data


# Singleton instance
_vapi_service: VapiService | None = None


def get_vapi_service() -> VapiService:
    """Get or create the VapiService singleton."""
    global _vapi_service
    if _vapi_service is None:
        _vapi_service = VapiService()
    return _vapi_service
