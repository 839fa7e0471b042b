from __future__ import annotations

import dataclasses
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Optional, TypeVar

from flask import jsonify, request

from ..core.exceptions import ValidationError

T = TypeVar("T")


def to_jsonable(value: Any) -> Any:
    """Convert domain values (dataclasses, Decimal, dates, enums) into JSON-ready data."""

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


def ok(payload: Any = None, status: int = 200):
    body: Dict[str, Any] = {"success": True}
    if payload is not None:
        body["data"] = to_jsonable(payload)
    return jsonify(body), status


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_field(data: Dict[str, Any], name: str, parser: Callable[[str], T], *, required: bool = True) -> Optional[T]:
    raw = data.get(name)
    if raw in (None, ""):
        if required:
            raise ValidationError(f"{name} is required")
        return None
    try:
        return parser(str(raw))
    except ValueError as exc:
        raise ValidationError(f"{name} is invalid") from exc


def parse_arg(name: str, parser: Callable[[str], T], *, default: Optional[T] = None, required: bool = False) -> Optional[T]:
    value = parse_field(request.args.to_dict(), name, parser, required=required)
    return default if value is None else value


def parse_time(value: str) -> time:
    return time.fromisoformat(value)


def optional_json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
