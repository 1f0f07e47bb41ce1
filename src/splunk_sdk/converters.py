"""
Converters from REST content values to Python types

Splunk reports every content value as text. Typed getters on entities run
the raw value through one of these functions; a value that cannot be
converted raises InvalidDataError.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, List, Tuple, Type, TypeVar

from .exceptions import InvalidDataError

T = TypeVar("T")
E = TypeVar("E", bound=Enum)


def _invalid(value: Any, type_name: str) -> InvalidDataError:
    return InvalidDataError(f"Cannot convert {value!r} to {type_name}")


def to_str(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def to_bool(value: Any) -> bool:
    """Convert t/f, true/false or an integer flag to bool."""
    if isinstance(value, bool):
        return value

    text = str(value).strip()

    if text in ("t", "true"):
        return True
    if text in ("f", "false"):
        return False

    try:
        return int(text) != 0
    except ValueError:
        raise _invalid(value, "bool") from None


def to_int(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise _invalid(value, "int") from None


def to_float(value: Any) -> float:
    if isinstance(value, float):
        return value
    try:
        return float(str(value).strip())
    except ValueError:
        raise _invalid(value, "float") from None


def to_build_number(value: Any) -> int:
    """
    Convert a Splunk build identifier to an integer.

    Twelve-character builds are hexadecimal git commit prefixes; anything
    else must be an unsigned decimal number.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value

    text = str(value)

    if len(text) == 12:
        try:
            return int(text, 16)
        except ValueError:
            raise _invalid(value, "build number") from None

    if text.isascii() and text.isdigit():
        return int(text)

    raise _invalid(value, "build number")


def to_guid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise _invalid(value, "GUID") from None


def to_datetime(value: Any) -> datetime:
    """Convert an ISO 8601 timestamp such as 2014-05-29T13:31:15.000-07:00."""
    if isinstance(value, datetime):
        return value

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise _invalid(value, "datetime") from None


def to_unix_datetime(value: Any) -> datetime:
    """Convert seconds since the epoch to an aware UTC datetime."""
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromtimestamp(float(str(value).strip()), tz=timezone.utc)
    except (ValueError, OverflowError):
        raise _invalid(value, "unix time") from None


def to_version(value: Any) -> Tuple[int, ...]:
    """Convert a dotted version such as 9.1.2 to (9, 1, 2)."""
    if isinstance(value, tuple):
        return value
    try:
        return tuple(int(part) for part in str(value).strip().split("."))
    except ValueError:
        raise _invalid(value, "version") from None


def to_list(item_converter: Callable[[Any], T]) -> Callable[[Any], List[T]]:
    """Build a converter for s:list values; a scalar becomes a one-item list."""

    def convert(value: Any) -> List[T]:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        return [item_converter(item) for item in value if item is not None]

    return convert


def to_enum(enum_type: Type[E]) -> Callable[[Any], E]:
    """Build a converter matching an enum by value, then by member name."""

    def convert(value: Any) -> E:
        if isinstance(value, enum_type):
            return value

        text = str(value).strip()

        for member in enum_type:
            if str(member.value) == text:
                return member

        try:
            return enum_type[text.upper()]
        except KeyError:
            raise _invalid(value, enum_type.__name__) from None

    return convert
