"""Friend form rules and phone normalization."""

import pytest

from touchbase.errors import InvalidPhoneFormat, ValidationError
from touchbase.validation import (
    FriendForm,
    build_call_request,
    normalize_phone_number,
    validate_field,
    validate_friend_details,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("5551234567", "+15551234567"),
        ("15551234567", "+15551234567"),
        ("+442071234567", "+442071234567"),
        ("(555) 123-4567", "+15551234567"),
        ("1-555-123-4567", "+15551234567"),
        ("+1 555 123 4567", "+15551234567"),
        ("+123456789012345", "+123456789012345"),
    ],
)
def test_normalize_phone_number(raw, expected):
    assert normalize_phone_number(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["abc", "", "555123456", "25551234567", "+12345", "+1234567890123456", "555-1234"],
)
def test_normalize_phone_number_rejects(raw):
    with pytest.raises(InvalidPhoneFormat):
        normalize_phone_number(raw)


def test_valid_details_have_no_errors(friend_values):
    assert validate_friend_details(friend_values) == {}


@pytest.mark.parametrize(
    "field, value",
    [
        ("caller_name", "ab"),
        ("caller_name", "a" * 50),
        ("friend_name", "J"),
        ("friend_name", "j" * 50),
        ("introduction", "i" * 100),
        ("last_memory_text", "m" * 300),
    ],
)
def test_boundary_lengths_are_accepted(field, value):
    assert validate_field(field, value) is None


@pytest.mark.parametrize(
    "field, value",
    [
        ("caller_name", "a"),
        ("caller_name", "a" * 51),
        ("friend_name", "f" * 51),
        ("introduction", "i" * 101),
        ("last_memory_text", "m" * 301),
    ],
)
def test_over_length_is_rejected(field, value):
    assert validate_field(field, value)


@pytest.mark.parametrize(
    "field", ["caller_name", "friend_name", "phone_number", "introduction", "last_memory_text"]
)
def test_empty_fields_are_rejected(field):
    assert validate_field(field, "")
    assert validate_field(field, "   ")
    assert validate_field(field, None)


def test_build_call_request_normalizes_phone(friend_values):
    request = build_call_request(friend_values)

    assert request.phone_number == "+15551234567"
    assert request.caller_name == "Sam"
    assert request.last_memory_text == friend_values["last_memory_text"]


def test_build_call_request_lists_every_bad_field(friend_values):
    friend_values["phone_number"] = "abc"
    friend_values["introduction"] = ""

    with pytest.raises(ValidationError) as exc_info:
        build_call_request(friend_values)

    assert set(exc_info.value.field_errors) == {"phone_number", "introduction"}


def test_form_only_shows_errors_for_touched_fields():
    form = FriendForm()

    assert not form.is_valid
    assert form.visible_errors == {}

    error = form.update("phone_number", "12")
    assert error == "Please enter a valid phone number"
    assert form.visible_errors == {"phone_number": error}

    form.update("phone_number", "5551234567")
    assert form.visible_errors == {}
    assert "caller_name" in form.errors


def test_form_submit_blocked_until_valid(friend_values):
    form = FriendForm()
    form.update("caller_name", "Sam")

    with pytest.raises(ValidationError):
        form.submit()
    assert form.touched == set(friend_values)

    for field, value in friend_values.items():
        form.update(field, value)

    assert form.is_valid
    assert form.submit().friend_name == "Alex"


def test_form_rejects_unknown_fields():
    with pytest.raises(KeyError):
        FriendForm().update("nickname", "Al")
