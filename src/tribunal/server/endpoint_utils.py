# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Shared helpers for REST endpoint parameter parsing and engine access."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, TypeVar

from starlette.requests import Request

from tribunal.core.engine import ResolutionEngine
from tribunal.core.exceptions import ValidationException

E = TypeVar("E", bound=Enum)


def _parse_int(value: str | None, default: int, maximum: int = 1000) -> int:
    """Parse an integer query parameter with a max cap."""
    if value is None:
        return default
    try:
        return min(int(value), maximum)
    except ValueError:
        return default


def parse_enum(enum_cls: type[E], value: Any, field: str, required: bool = True) -> E | None:
    """Convert a request value to an enum member, raising ValidationException."""
    if value is None or value == "":
        if required:
            raise ValidationException(f"{field} is required", field)
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(str(m.value) for m in enum_cls)
        raise ValidationException(f"Invalid {field}: {value} (expected one of: {allowed})", field, value) from None


async def read_json(request: Request) -> dict[str, Any]:
    """Parse a JSON object body. An empty body is an empty object."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationException("Invalid JSON body") from None
    if not isinstance(body, dict):
        raise ValidationException("JSON body must be an object")
    return body


def get_engine(request: Request) -> ResolutionEngine:
    return request.app.state.engine
