"""
Call context builder for Vapi friend calls.

The assistant's system prompt references ``{{caller_name}}``,
``{{friend_name}}``, ``{{introduction}}`` and ``{{last_memory}}``; these are
filled per call through ``assistantOverrides.variableValues``.
"""

from dataclasses import dataclass
from typing import Any

from touchbase.models import FriendCallRequest


@dataclass
class FriendCallContext:
    """Complete context for a single outbound call."""

    request: FriendCallRequest

    def build_assistant_variables(self) -> dict[str, str]:
        return {
            "caller_name": self.request.caller_name,
            "friend_name": self.request.friend_name,
            "introduction": self.request.introduction,
            "last_memory": self.request.last_memory_text,
        }

    def to_vapi_call_payload(
        self,
        phone_number_id: str,
        assistant_id: str,
    ) -> dict[str, Any]:
        """
        Build the payload for Vapi's create call API.

        Args:
            phone_number_id: The Vapi phone number ID to call from
            assistant_id: The Vapi assistant ID to use

        Returns:
            Dict ready to be sent to POST /call
        """
        return {
            "phoneNumberId": phone_number_id,
            "assistantId": assistant_id,
            "customer": {
                "number": self.request.phone_number,
                "name": self.request.friend_name,
            },
            "assistantOverrides": {
                "variableValues": self.build_assistant_variables(),
            },
            "metadata": {
                "caller_name": self.request.caller_name,
                "friend_name": self.request.friend_name,
            },
        }
