"""
Request payload parsing for the JSON API.

Each resource declares a mapping of JSON key -> ``Field``. ``parse_payload``
walks that mapping and returns model keyword arguments, collecting every
problem into a single ``ValidationError`` so clients see all bad fields at
once.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from dateutil.parser import parse as parse_dt
from django.utils import timezone

from .errors import ValidationError

_MISSING = object()


def read_json(request) -> dict:
    """Decode a JSON object body. An empty body reads as ``{}``."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body is not valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def text(value, *, max_length: int | None = None) -> str:
    if not isinstance(value, str):
        raise ValueError("must be a string")
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValueError(f"must be at most {max_length} characters")
    return value


def short_text(value) -> str:
    return text(value, max_length=255)


def one_of(*choices: str) -> Callable[[Any], str]:
    def parse(value) -> str:
        if value not in choices:
            raise ValueError(f"must be one of {', '.join(choices)}")
        return value

    return parse


def integer(value) -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError("must be an integer")
    return value


def non_negative_integer(value) -> int:
    value = integer(value)
    if value < 0:
        raise ValueError("must not be negative")
    return value


def boolean(value) -> bool:
    if not isinstance(value, bool):
        raise ValueError("must be true or false")
    return value


def moment(value) -> datetime:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("must be an ISO 8601 date")
    try:
        parsed = parse_dt(value)
    except (ValueError, OverflowError):
        raise ValueError("must be an ISO 8601 date")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def string_list(value) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError("must be a list of strings")
    return [item.strip() for item in value if item.strip()]


def json_object(value) -> dict:
    if not isinstance(value, dict):
        raise ValueError("must be an object")
    return value


@dataclass(frozen=True)
class Field:
    attr: str
    parse: Callable[[Any], Any]
    required: bool = False
    nullable: bool = True

    def clean(self, raw):
        if raw is None:
            if self.required or not self.nullable:
                raise ValueError("may not be null")
            return None
        value = self.parse(raw)
        if self.required and value == "":
            raise ValueError("may not be blank")
        return value


def parse_payload(data: dict, fields: dict[str, Field], *, partial: bool = False) -> dict:
    """Validate ``data`` against ``fields`` and return model attributes.

    Unknown keys are ignored. With ``partial`` set, missing required keys are
    allowed and only the keys present are returned (PATCH semantics).
    """
    cleaned: dict[str, Any] = {}
    errors: dict[str, str] = {}
    for key, field in fields.items():
        raw = data.get(key, _MISSING)
        if raw is _MISSING:
            if field.required and not partial:
                errors[key] = "is required"
            continue
        try:
            cleaned[field.attr] = field.clean(raw)
        except ValueError as exc:
            errors[key] = str(exc)
    if errors:
        raise ValidationError("Invalid request data", fields=errors)
    return cleaned
