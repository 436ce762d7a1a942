"""Validates raw report, search and access-request input before anything is written."""

import re
from collections.abc import Mapping
from typing import Any

from app.registry.exceptions import ValidationError
from app.registry.identifiers import IDENTIFIER_FIELDS, IdentifierRecord
from app.registry.models import ACCESS_STATUSES, ReportInput

_MIN_RATING = 0
_MAX_RATING = 10
_MAX_DESCRIPTION_LENGTH = 1000
_MIN_MESSAGE_LENGTH = 10
_MAX_MESSAGE_LENGTH = 1000

_MAX_FIELD_LENGTHS: dict[str, int] = {
    "name": 100,
    "instagram_id": 100,
    "facebook_id": 100,
    "phone_number": 20,
}

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Keys accepted from callers that still speak the camelCase API.
_FIELD_ALIASES: dict[str, str] = {
    "instagramId": "instagram_id",
    "facebookId": "facebook_id",
    "phoneNumber": "phone_number",
}


def validate_report_input(data: Mapping[str, Any]) -> ReportInput:
    """Validate a report create/update payload.

    Raises:
        ValidationError: on any rule violation.
    """
    if not isinstance(data, Mapping):
        raise ValidationError("Report input must be an object")
    data = _canonical_keys(data)
    identifiers = _build_identifiers(data)
    rating = _build_rating(data.get("rating"))
    description = _build_description(data.get("description"))
    return ReportInput(identifiers=identifiers, rating=rating, description=description)


def validate_search_input(data: Mapping[str, Any]) -> IdentifierRecord:
    """Validate a search payload. Only identifier fields are read.

    Raises:
        ValidationError: on any rule violation.
    """
    if not isinstance(data, Mapping):
        raise ValidationError("Search input must be an object")
    return _build_identifiers(_canonical_keys(data))


def validate_access_message(raw: Any) -> str:
    """Validate the message attached to an access request.

    Accepts the message itself or a mapping with a 'message' key.
    """
    if isinstance(raw, Mapping):
        raw = raw.get("message")
    if not isinstance(raw, str):
        raise ValidationError("'message' must be a string")
    _reject_nul("message", raw)
    if len(raw) < _MIN_MESSAGE_LENGTH:
        raise ValidationError(
            f"'message' must be at least {_MIN_MESSAGE_LENGTH} characters, got {len(raw)}"
        )
    if len(raw) > _MAX_MESSAGE_LENGTH:
        raise ValidationError(
            f"'message' must be at most {_MAX_MESSAGE_LENGTH} characters, got {len(raw)}"
        )
    return raw


def validate_access_status(raw: Any) -> str | None:
    """Validate an optional access request status filter."""
    if raw is None:
        return None
    if not isinstance(raw, str) or raw.upper() not in ACCESS_STATUSES:
        raise ValidationError(
            f"'status' must be one of {sorted(ACCESS_STATUSES)}, got {raw!r}"
        )
    return raw.upper()


def _canonical_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    canonical: dict[str, Any] = {}
    for key, value in data.items():
        canonical[_FIELD_ALIASES.get(key, key)] = value
    return canonical


def _build_identifiers(data: dict[str, Any]) -> IdentifierRecord:
    values: dict[str, str | None] = {}
    for field in IDENTIFIER_FIELDS:
        values[field] = _build_identifier_field(field, data.get(field))
    identifiers = IdentifierRecord(**values)
    if identifiers.is_empty():
        raise ValidationError(
            "At least one identifier (name, Instagram, Facebook, email, or phone) is required."
        )
    return identifiers


def _build_identifier_field(field: str, raw: Any) -> str | None:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise ValidationError(f"'{field}' must be a string or null")
    _reject_nul(field, raw)
    if field == "email":
        if not _EMAIL_PATTERN.match(raw):
            raise ValidationError(f"'email' is not a valid email address: {raw!r}")
        return raw
    max_length = _MAX_FIELD_LENGTHS[field]
    if len(raw) > max_length:
        raise ValidationError(f"'{field}' must be at most {max_length} characters")
    return raw


def _reject_nul(field: str, raw: str) -> None:
    # PostgreSQL text columns cannot store NUL.
    if "\x00" in raw:
        raise ValidationError(f"'{field}' must not contain NUL characters")


def _build_rating(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValidationError("'rating' must be an integer")
    if raw < _MIN_RATING or raw > _MAX_RATING:
        raise ValidationError(
            f"'rating' must be between {_MIN_RATING} and {_MAX_RATING}, got {raw}"
        )
    return raw


def _build_description(raw: Any) -> str | None:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise ValidationError("'description' must be a string or null")
    _reject_nul("description", raw)
    if len(raw) > _MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"'description' must be at most {_MAX_DESCRIPTION_LENGTH} characters"
        )
    return raw
