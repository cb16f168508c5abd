#!/usr/bin/env python3
"""Request bodies accepted by the POST-only endpoints."""

import json
from dataclasses import dataclass, fields
from typing import Any, Dict

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class RequestError(Exception):
    """A per-request failure reported to the client as a 500 with its text."""


class MethodNotAllowedError(RequestError):
    def __init__(self, method: str):
        super().__init__(f"wrong request method: {method}, requires POST")
        self.method = method


class DecodeError(RequestError):
    def __init__(self, reason: str):
        super().__init__(f"decode request body: {reason}")


_DECODER = json.JSONDecoder()


def _load_object(body: bytes) -> Dict[str, Any]:
    try:
        text = body.decode("utf-8").lstrip()
    except UnicodeDecodeError as exc:
        raise DecodeError(str(exc)) from exc
    if not text:
        raise DecodeError("EOF")

    # Only the first JSON value is read; anything after it is left unread.
    try:
        data, _end = _DECODER.raw_decode(text)
    except ValueError as exc:
        raise DecodeError(str(exc)) from exc

    # null decodes to an all-default record
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DecodeError(f"cannot unmarshal {type(data).__name__} into object")
    return data


def _check_str(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise DecodeError(f"field {name!r} must be a string, got {json.dumps(value)}")
    return value


def _check_int64(name: str, value: Any) -> int:
    # bool is an int subclass but not a JSON number
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"field {name!r} must be an integer, got {json.dumps(value)}")
    if not INT64_MIN <= value <= INT64_MAX:
        raise DecodeError(f"field {name!r} overflows int64: {value}")
    return value


_CHECKS = {str: _check_str, int: _check_int64}


def _lookup(data: Dict[str, Any], name: str) -> Any:
    """Exact key first, then the last key equal to name ignoring case."""
    if name in data:
        return data[name]
    value = None
    for key, candidate in data.items():
        if key.casefold() == name.casefold():
            value = candidate
    return value


class _Record:
    """Mixin giving dataclasses a strict JSON constructor."""

    @classmethod
    def from_json(cls, body: bytes):
        data = _load_object(body)
        kwargs = {}
        for field in fields(cls):
            value = _lookup(data, field.name)
            if value is not None:
                kwargs[field.name] = _CHECKS[field.type](field.name, value)
        return cls(**kwargs)


@dataclass(frozen=True)
class LogRequest(_Record):
    log_name: str = ""
    token: str = ""
    level: str = ""


@dataclass(frozen=True)
class MetricRequest(_Record):
    name: str = ""
    token: int = 0


@dataclass(frozen=True)
class ExceptionRequest(_Record):
    token: int = 0
