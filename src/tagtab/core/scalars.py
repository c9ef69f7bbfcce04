"""
Scalar codec: conversion between Python scalar values and field text.

| kind  | Python     | on-wire text                 |
|-------|------------|------------------------------|
| -     | None       | empty field                  |
| STR   | str        | verbatim                     |
| INT   | int        | decimal digits               |
| FLOAT | float      | shortest round-trip decimal  |
| TIME  | datetime   | RFC 3339, ``Z`` for UTC      |
| BLOB  | bytes      | standard base64              |

``bool`` is rejected even though it subclasses ``int``.
"""

import base64
import binascii
import re
from datetime import datetime, timezone
from typing import Any

from ..exceptions import ScalarTypeMismatchError
from ..models.enums import ScalarKind

ScalarValue = None | str | int | float | datetime | bytes

# Zero value of a timestamp field decoded from an empty string.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

EMPTY_VALUES: dict[ScalarKind, Any] = {
    ScalarKind.STR: "",
    ScalarKind.INT: 0,
    ScalarKind.FLOAT: 0.0,
    ScalarKind.TIME: ZERO_TIME,
    ScalarKind.BLOB: None,
}

_INT_TEXT = re.compile(r"[+-]?\d+", re.ASCII)


def kind_of_type(tp: Any) -> ScalarKind | None:
    """Scalar kind for a (non-Optional) annotation, or None if unsupported."""
    if not isinstance(tp, type) or issubclass(tp, bool):
        return None
    if issubclass(tp, str):
        return ScalarKind.STR
    if issubclass(tp, int):
        return ScalarKind.INT
    if issubclass(tp, float):
        return ScalarKind.FLOAT
    if issubclass(tp, datetime):
        return ScalarKind.TIME
    if issubclass(tp, (bytes, bytearray)):
        return ScalarKind.BLOB
    return None


def kind_of_value(value: Any) -> ScalarKind | None:
    """
    Scalar kind of a runtime value; None for ``None``.

    Raises:
        ScalarTypeMismatchError: If the value has no scalar kind
    """
    if value is None:
        return None
    if isinstance(value, memoryview):
        return ScalarKind.BLOB
    kind = kind_of_type(type(value))
    if kind is None:
        raise ScalarTypeMismatchError(
            f"unsupported scalar type {type(value).__name__}", value=value
        )
    return kind


def format_timestamp(value: datetime) -> str:
    """RFC 3339 text; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.isoformat(timespec="microseconds" if value.microsecond else "seconds")
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def parse_timestamp(text: str) -> datetime:
    """
    Parse RFC 3339 text.

    Raises:
        ScalarTypeMismatchError: If the text is not a timestamp with an offset
    """
    normalized = text[:-1] + "+00:00" if text[-1:] in ("Z", "z") else text
    try:
        value = datetime.fromisoformat(normalized)
    except ValueError as e:
        raise ScalarTypeMismatchError(
            f"invalid RFC 3339 timestamp: {e}", kind=ScalarKind.TIME.value, value=text
        ) from e
    if value.tzinfo is None:
        raise ScalarTypeMismatchError(
            "timestamp has no UTC offset", kind=ScalarKind.TIME.value, value=text
        )
    return value


def encode_scalar(value: Any) -> str:
    """
    Field text for a scalar value.

    Raises:
        ScalarTypeMismatchError: If the value has no scalar kind
    """
    kind = kind_of_value(value)
    if kind is None:
        return ""
    if kind == ScalarKind.STR:
        return str.__str__(value)
    if kind == ScalarKind.INT:
        return str(int(value))
    if kind == ScalarKind.FLOAT:
        return repr(float(value))
    if kind == ScalarKind.TIME:
        return format_timestamp(value)
    return base64.b64encode(bytes(value)).decode("ascii")


def decode_scalar(text: str, kind: ScalarKind, optional: bool = False) -> Any:
    """
    Parse field text as ``kind``.

    Args:
        text: Field text
        kind: Destination kind
        optional: Decode an empty field as None instead of the kind's zero value

    Raises:
        ScalarTypeMismatchError: If the text does not parse as ``kind``
    """
    if text == "":
        return None if optional else EMPTY_VALUES[kind]

    if kind == ScalarKind.STR:
        return text
    if kind == ScalarKind.INT:
        if not _INT_TEXT.fullmatch(text):
            raise ScalarTypeMismatchError("invalid integer", kind=kind.value, value=text)
        return int(text)
    if kind == ScalarKind.FLOAT:
        if not text.isascii() or text != text.strip() or "_" in text:
            raise ScalarTypeMismatchError("invalid float", kind=kind.value, value=text)
        try:
            return float(text)
        except ValueError as e:
            raise ScalarTypeMismatchError("invalid float", kind=kind.value, value=text) from e
    if kind == ScalarKind.TIME:
        return parse_timestamp(text)
    try:
        return base64.b64decode(text, validate=True)
    except binascii.Error as e:
        raise ScalarTypeMismatchError("invalid base64", kind=kind.value, value=text) from e


def check_value(value: Any, kind: ScalarKind) -> None:
    """
    Check that a value may be written into a column of ``kind``.

    Integers are accepted for FLOAT columns.

    Raises:
        ScalarTypeMismatchError: If the value's kind does not fit
    """
    actual = kind_of_value(value)
    if actual is None or actual == kind:
        return
    if kind == ScalarKind.FLOAT and actual == ScalarKind.INT:
        return
    raise ScalarTypeMismatchError(
        f"{actual.value} value in a {kind.value} column", kind=kind.value, value=value
    )
