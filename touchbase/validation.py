"""
Friend-detail intake rules.

Validation is local and synchronous. ``FriendForm`` mirrors the wizard form:
a field's error becomes visible once it has been touched, and submission is
blocked while any field is invalid.
"""

import re
from typing import Callable

from touchbase.errors import InvalidPhoneFormat, ValidationError
from touchbase.models import FriendCallRequest

E164_PATTERN = re.compile(r"^\+\d{10,15}$")

CALLER_NAME_MIN = 2
NAME_MAX = 50
INTRODUCTION_MAX = 100
LAST_MEMORY_MAX = 300

FIELDS = (
    "caller_name",
    "friend_name",
    "phone_number",
    "introduction",
    "last_memory_text",
)


def normalize_phone_number(raw: str) -> str:
    """
    Normalize a user-entered phone number to E.164.

    - already ``+``-prefixed and 10-15 digits: kept (separators removed)
    - 10 digits: assumed North American, ``+1`` prepended
    - 11 digits starting with 1: ``+`` prepended

    Raises:
        InvalidPhoneFormat: for anything else
    """
    value = (raw or "").strip()
    digits = re.sub(r"\D", "", value)

    if value.startswith("+"):
        candidate = f"+{digits}"
        if E164_PATTERN.match(candidate):
            return candidate
    elif len(digits) == 10:
        return f"+1{digits}"
    elif len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"

    raise InvalidPhoneFormat(
        "Please enter a valid phone number",
        field_errors={"phone_number": "Please enter a valid phone number"},
    )


def is_valid_phone_number(raw: str) -> bool:
    try:
        normalize_phone_number(raw)
    except InvalidPhoneFormat:
        return False
    return True


def _check_caller_name(value: str) -> str | None:
    if not value:
        return "Your name is required"
    if len(value) < CALLER_NAME_MIN:
        return f"Name must be at least {CALLER_NAME_MIN} characters"
    if len(value) > NAME_MAX:
        return f"Name must be {NAME_MAX} characters or less"
    return None


def _check_friend_name(value: str) -> str | None:
    if not value:
        return "Friend's name is required"
    if len(value) > NAME_MAX:
        return f"Name must be {NAME_MAX} characters or less"
    return None


def _check_phone_number(value: str) -> str | None:
    if not value:
        return "Phone number is required"
    if not is_valid_phone_number(value):
        return "Please enter a valid phone number"
    return None


def _check_introduction(value: str) -> str | None:
    if not value:
        return "Introduction is required"
    if len(value) > INTRODUCTION_MAX:
        return f"Introduction must be {INTRODUCTION_MAX} characters or less"
    return None


def _check_last_memory(value: str) -> str | None:
    if not value:
        return "Please share a memory"
    if len(value) > LAST_MEMORY_MAX:
        return f"Memory must be {LAST_MEMORY_MAX} characters or less"
    return None


_RULES: dict[str, Callable[[str], str | None]] = {
    "caller_name": _check_caller_name,
    "friend_name": _check_friend_name,
    "phone_number": _check_phone_number,
    "introduction": _check_introduction,
    "last_memory_text": _check_last_memory,
}


def validate_field(field: str, value: str | None) -> str | None:
    """Return the error message for one field, or None when it is valid."""
    if field not in _RULES:
        raise KeyError(f"Unknown form field: {field}")
    return _RULES[field]((value or "").strip())


def validate_friend_details(data: dict[str, str | None]) -> dict[str, str]:
    """Validate every field; returns a field -> message map (empty when valid)."""
    errors = {}
    for field in FIELDS:
        message = validate_field(field, data.get(field))
        if message:
            errors[field] = message
    return errors


def build_call_request(data: dict[str, str | None]) -> FriendCallRequest:
    """
    Validate raw form values and build a FriendCallRequest.

    Raises:
        ValidationError: listing every invalid field in ``field_errors``
    """
    errors = validate_friend_details(data)
    if errors:
        raise ValidationError(
            "Invalid call details",
            details=errors,
            field_errors=errors,
        )

    values = {field: (data.get(field) or "").strip() for field in FIELDS}
    values["phone_number"] = normalize_phone_number(values["phone_number"])
    return FriendCallRequest(**values)


class FriendForm:
    """Form state with touched-field tracking."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.values: dict[str, str] = {field: "" for field in FIELDS}
        if initial:
            for field, value in initial.items():
                self._require_field(field)
                self.values[field] = value
        self.touched: set[str] = set()
        self.errors: dict[str, str] = validate_friend_details(self.values)

    @staticmethod
    def _require_field(field: str) -> None:
        if field not in FIELDS:
            raise KeyError(f"Unknown form field: {field}")

    def update(self, field: str, value: str) -> str | None:
        """Set a field, mark it touched, and re-run validation."""
        self._require_field(field)
        self.values[field] = value
        self.touched.add(field)
        self.errors = validate_friend_details(self.values)
        return self.errors.get(field)

    def touch(self, field: str) -> None:
        self._require_field(field)
        self.touched.add(field)

    @property
    def visible_errors(self) -> dict[str, str]:
        return {f: msg for f, msg in self.errors.items() if f in self.touched}

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def submit(self) -> FriendCallRequest:
        """Touch every field and build the request, or raise ValidationError."""
        self.touched.update(FIELDS)
        return build_call_request(self.values)
