"""A general-purpose value holder with loose conversions to common types."""

from __future__ import annotations

import contextlib
import dataclasses
import json
import math
import threading
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_TIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%Y%m%d%H%M%S",
)


def _format_float(value: float) -> str:
    """Shortest decimal form of ``value`` without an exponent."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def to_string(value: Any) -> str:
    """Convert any value to a string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _as_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return None


def _as_number(value: Any) -> int | float:
    """Best-effort numeric value; 0 when nothing sensible can be read."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    text = _as_text(value)
    if text is None:
        return 0
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return 0


def _stringify_keys(mapping: Mapping) -> dict[str, Any]:
    return {to_string(k): v for k, v in mapping.items()}


class Var:
    """Wraps a value and converts it on demand."""

    def __init__(self, value: Any = None, safe: bool = False) -> None:
        self._value = value
        self._safe = safe
        self._lock = threading.RLock() if safe else None

    def _guard(self):
        return self._lock if self._lock is not None else contextlib.nullcontext()

    def val(self) -> Any:
        """Return the original value."""
        return self._value

    def set(self, value: Any) -> Any:
        """Replace the value and return the previous one."""
        with self._guard():
            old = self._value
            self._value = value
            return old

    def to_str(self) -> str:
        value = self._value
        if isinstance(value, (Mapping, list, tuple)):
            try:
                return json.dumps(value, separators=(",", ":"), default=str)
            except (TypeError, ValueError):
                return str(value)
        return to_string(value)

    def to_bool(self) -> bool:
        value = self._value
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        text = _as_text(value)
        if text is not None:
            return text.strip() in _TRUE_WORDS
        if isinstance(value, (Mapping, list, tuple, set)):
            return len(value) > 0
        return True

    def to_int(self) -> int:
        number = _as_number(self._value)
        if isinstance(number, float):
            return int(number) if math.isfinite(number) else 0
        return number

    def to_uint(self) -> int:
        number = self.to_int()
        return number if number >= 0 else 0

    def to_float(self) -> float:
        return float(_as_number(self._value))

    def to_time(self) -> datetime:
        """Convert to a datetime; the zero time (year 1, UTC) when impossible."""
        value = self._value
        if isinstance(value, datetime):
            return value
        if value is None or isinstance(value, bool):
            return _ZERO_TIME
        if isinstance(value, (int, float)):
            return self._from_timestamp(value)
        text = _as_text(value)
        if text is None:
            return _ZERO_TIME
        text = text.strip()
        if not text:
            return _ZERO_TIME
        iso = text[:-1] + "+00:00" if text.endswith("Z") else text
        try:
            return datetime.fromisoformat(iso)
        except ValueError:
            pass
        for fmt in _TIME_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
        number = _as_number(text)
        if number:
            return self._from_timestamp(number)
        return _ZERO_TIME

    @staticmethod
    def _from_timestamp(seconds: float) -> datetime:
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return _ZERO_TIME

    def to_map(self) -> dict[str, Any] | None:
        """Convert to a dict with string keys, or None when that is impossible."""
        value = self._value
        if value is None:
            return None
        if isinstance(value, dict):
            if all(isinstance(k, str) for k in value):
                return value
            return _stringify_keys(value)
        if isinstance(value, Mapping):
            return _stringify_keys(value)
        text = _as_text(value)
        if text is not None:
            if not text:
                return None
            try:
                decoded = json.loads(text)
            except ValueError:
                return None
            return decoded if isinstance(decoded, dict) else None
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return None

    def marshal_json(self) -> str:
        """Encode the value as JSON."""
        return json.dumps(self._value, separators=(",", ":"))

    def unmarshal_json(self, data: str | bytes) -> None:
        """Decode JSON ``data`` and store it as the value."""
        decoded = json.loads(data)
        with self._guard():
            self._value = decoded

    def is_nil(self) -> bool:
        return self._value is None

    def is_empty(self) -> bool:
        value = self._value
        if isinstance(value, bool):
            return not value
        if isinstance(value, (int, float)):
            return value == 0
        if isinstance(value, (str, bytes, bytearray, list, tuple, Mapping)):
            return len(value) == 0
        return self.is_nil()

    def is_int(self) -> bool:
        return isinstance(self._value, int) and not isinstance(self._value, bool)

    def is_uint(self) -> bool:
        return self.is_int() and self._value >= 0

    def is_float(self) -> bool:
        return isinstance(self._value, float)

    def is_slice(self) -> bool:
        return isinstance(self._value, (list, tuple, bytes, bytearray))

    def is_map(self) -> bool:
        return isinstance(self._value, Mapping)

    def is_struct(self) -> bool:
        value = self._value
        return dataclasses.is_dataclass(value) and not isinstance(value, type)

    def __str__(self) -> str:
        return self.to_str()

    def __repr__(self) -> str:
        return f"Var({self._value!r})"