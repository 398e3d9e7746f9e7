"""
Timestamp Normalization

Transaction dates have been persisted in several shapes over the life of
the app: ISO strings, native dates, epoch milliseconds, and legacy
timestamp objects that expose a conversion method (or were serialized as
{"seconds": ..., "nanoseconds": ...}).

DESIGN DECISION: All of them are collapsed into ONE representation - a
timezone-aware UTC datetime - at the load boundary. Business logic never
sees the union type.
"""

from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from typing import Any

_CONVERTER_METHODS = ("to_datetime", "to_date", "toDate")


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_epoch_millis(value: float) -> datetime:
    try:
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError):
        raise ValueError(f"Epoch value out of range: {value!r}")


def _from_iso_string(value: str) -> datetime:
    text = value.strip()
    if not text:
        raise ValueError("Empty date string")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        raise ValueError(f"Unrecognized date string: {value!r}")


def _from_timestamp_mapping(value: Mapping) -> datetime:
    seconds = value.get("seconds", value.get("_seconds"))
    nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
    if seconds is None:
        raise ValueError(f"Unrecognized date mapping: {dict(value)!r}")
    try:
        return datetime.fromtimestamp(
            float(seconds) + float(nanos) / 1_000_000_000, tz=timezone.utc
        )
    except (OverflowError, OSError, TypeError):
        raise ValueError(f"Unrecognized date mapping: {dict(value)!r}")


def normalize_timestamp(value: Any) -> datetime:
    """
    Convert any supported date shape to an aware UTC datetime.

    Accepts:
        - datetime (naive = UTC) and date (midnight UTC)
        - ISO-8601 strings, with or without offset / 'Z'
        - int/float epoch milliseconds
        - objects with a callable to_datetime() / to_date() / toDate()
        - {"seconds": s, "nanoseconds": n} mappings

    Raises:
        ValueError: If the value has none of these shapes
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"Unsupported date value: {value!r}")
    if isinstance(value, (int, float)):
        return _from_epoch_millis(value)
    if isinstance(value, str):
        return _from_iso_string(value)
    if isinstance(value, Mapping):
        return _from_timestamp_mapping(value)

    for method_name in _CONVERTER_METHODS:
        converter = getattr(value, method_name, None)
        if callable(converter):
            converted = converter()
            if isinstance(converted, (datetime, date)):
                return normalize_timestamp(converted)
            raise ValueError(
                f"{type(value).__name__}.{method_name}() returned {converted!r}"
            )

    raise ValueError(f"Unsupported date value: {value!r}")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
