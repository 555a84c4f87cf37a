"""
Vapi voice calling module.

Places the AI friend call, reports its status, and binds cloned voices to
the calling assistant.
"""

from touchbase.vapi.call_context import FriendCallContext
from touchbase.vapi.config import VapiConfig, get_vapi_config, validate_vapi_config
from touchbase.vapi.service import (
    CallStatusReport,
    VapiService,
    get_vapi_service,
    normalize_vapi_status,
    parse_call_status,
)

__all__ = [
    # Config
    "VapiConfig",
    "get_vapi_config",
    "validate_vapi_config",
    # Context
    "FriendCallContext",
    # Service
    "CallStatusReport",
    "VapiService",
    "get_vapi_service",
    "normalize_vapi_status",
    "parse_call_status",
]
