"""Text -> value coercion for each semantic type."""

import re
from datetime import datetime, timedelta
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Any

from svc_env.exceptions import CoercionError
from svc_env.fields import Kind, Scalar, Sequence, SemanticType

_SIGNED = re.compile(r"[+-]?[0-9]+")
_UNSIGNED = re.compile(r"[0-9]+")
_DURATION_NUMBER = re.compile(r"[0-9]+(?:\.[0-9]*)?|\.[0-9]+")
_DURATION_UNIT = re.compile(r"[^0-9.]+")

BOOL_VALUES = {
    "1": True,
    "t": True,
    "true": True,
    "0": False,
    "f": False,
    "false": False,
}

# Nanoseconds per unit
DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}


def coerce(text: str, semantic: SemanticType, sep: str = ",") -> Any:
    """Convert text into the value of a semantic type.

    Raises:
        CoercionError: If the text is malformed for the type
    """
    if isinstance(semantic, Sequence):
        return coerce_sequence(text, semantic.element, sep)
    return coerce_scalar(text, semantic)


def coerce_sequence(text: str, element: Scalar, sep: str = ",") -> list[Any]:
    items = []
    for index, item in enumerate(text.split(sep)):
        try:
            items.append(coerce_scalar(item.strip(), element))
        except CoercionError as e:
            raise CoercionError(e.type_name, f"at index {index}: {e.detail}") from e
    return items


def coerce_scalar(text: str, scalar: Scalar) -> Any:
    kind = scalar.kind
    if kind is Kind.STR:
        return text
    if kind is Kind.INT:
        return parse_int(text, scalar.bits)
    if kind is Kind.UINT:
        return parse_uint(text, scalar.bits)
    if kind is Kind.FLOAT:
        return parse_float(text)
    if kind is Kind.BOOL:
        return parse_bool(text)
    if kind is Kind.DURATION:
        return parse_duration(text)
    if kind is Kind.TIMESTAMP:
        return parse_timestamp(text)
    raise CoercionError(kind.value, "unsupported type")


def parse_int(text: str, bits: int = 64) -> int:
    if not _SIGNED.fullmatch(text):
        raise CoercionError("int", f"parsing {text!r}: invalid syntax")
    value = int(text)
    low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    if not low <= value <= high:
        raise CoercionError("int", f"parsing {text!r}: value out of range for int{bits}")
    return value


def parse_uint(text: str, bits: int = 64) -> int:
    if not _UNSIGNED.fullmatch(text):
        raise CoercionError("uint", f"parsing {text!r}: invalid syntax")
    value = int(text)
    if value > (1 << bits) - 1:
        raise CoercionError("uint", f"parsing {text!r}: value out of range for uint{bits}")
    return value


def parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise CoercionError("float", f"parsing {text!r}: invalid syntax")
    try:
        return float(text)
    except ValueError:
        raise CoercionError("float", f"parsing {text!r}: invalid syntax") from None


def parse_bool(text: str) -> bool:
    try:
        return BOOL_VALUES[text.lower()]
    except KeyError:
        raise CoercionError("bool", f"parsing {text!r}: invalid syntax") from None


def parse_duration(text: str) -> timedelta:
    """Parse a compound duration such as `300ms`, `-1.5h` or `2h45m`.

    Valid units are ns, us (or µs), ms, s, m and h. A bare `0` is allowed.
    """
    rest = text
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]

    if rest == "0":
        return timedelta(0)
    if not rest:
        raise CoercionError("duration", f"invalid duration {text!r}")

    total = Decimal(0)
    while rest:
        number = _DURATION_NUMBER.match(rest)
        if number is None:
            raise CoercionError("duration", f"invalid duration {text!r}")
        rest = rest[number.end():]

        unit = _DURATION_UNIT.match(rest)
        if unit is None:
            raise CoercionError("duration", f"missing unit in duration {text!r}")
        rest = rest[unit.end():]

        scale = DURATION_UNITS.get(unit.group(0))
        if scale is None:
            raise CoercionError(
                "duration", f"unknown unit {unit.group(0)!r} in duration {text!r}"
            )
        total += Decimal(number.group(0)) * scale

    micros = (total / 1000).to_integral_value(rounding=ROUND_HALF_EVEN)
    try:
        value = timedelta(microseconds=int(micros))
    except OverflowError:
        raise CoercionError("duration", f"invalid duration {text!r}") from None
    return -value if negative else value


def parse_timestamp(text: str) -> datetime:
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise CoercionError("timestamp", f"parsing {text!r}: {e}") from None
