"""
Uniform read-only view over loosely structured trigger payloads.

Event data arrives as nested JSON-like mappings. Every lookup goes through
`resolve_path`, which walks dot-separated keys into mappings and returns a
tagged `FieldValue`. A missing or non-traversable path resolves to the null
value and never raises.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional


class ValueKind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    DATETIME = "datetime"
    LIST = "list"
    MAP = "map"


def _to_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _format_decimal(value: Decimal) -> str:
    if not value.is_finite():
        return str(value)
    text = format(value.normalize(), "f")
    return "0" if text in {"-0", "0"} else text


@dataclass(frozen=True)
class FieldValue:
    kind: ValueKind
    raw: Any = None

    @classmethod
    def of(cls, raw: Any) -> "FieldValue":
        if raw is None:
            return NULL
        if isinstance(raw, FieldValue):
            return raw
        if isinstance(raw, bool):
            return cls(ValueKind.BOOL, raw)
        if isinstance(raw, (int, float, Decimal)):
            return cls(ValueKind.NUMBER, raw)
        if isinstance(raw, (datetime, date)):
            return cls(ValueKind.DATETIME, _to_datetime(raw))
        if isinstance(raw, Enum):
            return cls.of(raw.value)
        if isinstance(raw, Mapping):
            return cls(ValueKind.MAP, raw)
        if isinstance(raw, (list, tuple, set, frozenset)):
            return cls(ValueKind.LIST, list(raw))
        return cls(ValueKind.STRING, str(raw))

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def as_decimal(self) -> Optional[Decimal]:
        if self.kind is ValueKind.NUMBER:
            try:
                number = Decimal(str(self.raw))
            except InvalidOperation:
                return None
            return number if number.is_finite() else None
        text = self.as_text()
        return parse_decimal(text) if text is not None else None

    def as_datetime(self) -> Optional[datetime]:
        if self.kind is ValueKind.DATETIME:
            return _as_aware(self.raw)
        if self.kind is ValueKind.STRING:
            return parse_datetime(self.raw)
        return None

    def items(self) -> list["FieldValue"]:
        if self.kind is ValueKind.LIST:
            return [FieldValue.of(item) for item in self.raw]
        return []

    def as_text(self) -> Optional[str]:
        if self.kind is ValueKind.NULL:
            return None
        if self.kind is ValueKind.BOOL:
            return "true" if self.raw else "false"
        if self.kind is ValueKind.NUMBER:
            if isinstance(self.raw, int):
                return str(self.raw)
            try:
                return _format_decimal(Decimal(str(self.raw)))
            except InvalidOperation:
                return str(self.raw)
        if self.kind is ValueKind.DATETIME:
            return self.raw.isoformat()
        if self.kind is ValueKind.LIST:
            return ",".join(item.as_text() or "" for item in self.items())
        if self.kind is ValueKind.MAP:
            return json.dumps(self.raw, default=str, sort_keys=True)
        return self.raw


NULL = FieldValue(ValueKind.NULL)

_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%Y/%m/%d",
    "%d %b %Y",
    "%d %B %Y",
)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_decimal(text: Optional[str]) -> Optional[Decimal]:
    if text is None:
        return None
    stripped = text.strip()
    if not stripped:
        return None
    try:
        number = Decimal(stripped)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def parse_datetime(text: Optional[str]) -> Optional[datetime]:
    """Parse ISO-8601 and a few common date layouts. Naive results are UTC."""
    if text is None:
        return None
    stripped = text.strip()
    if not stripped:
        return None
    iso = stripped[:-1] + "+00:00" if stripped.endswith(("Z", "z")) else stripped
    try:
        return _as_aware(datetime.fromisoformat(iso))
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return _as_aware(datetime.strptime(stripped, fmt))
        except ValueError:
            continue
    return None


def _lookup(container: Mapping, key: str) -> tuple[bool, Any]:
    if key in container:
        return True, container[key]
    lowered = key.lower()
    for candidate, value in container.items():
        if isinstance(candidate, str) and candidate.lower() == lowered:
            return True, value
    return False, None


def normalize_payload(payload: Any) -> dict:
    """Coerce a trigger payload into a plain mapping."""
    if payload is None:
        return {}
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump()
    if isinstance(payload, Mapping):
        return dict(payload)
    return {}


def resolve_path(payload: Any, path: Optional[str]) -> FieldValue:
    """
    Resolve a dot path such as ``Client.Country`` against the payload.

    Only mappings are descended into. Keys match exactly first, then
    case-insensitively.
    """
    if not path:
        return NULL
    current: Any = normalize_payload(payload)
    for segment in path.split("."):
        segment = segment.strip()
        if not segment or not isinstance(current, Mapping):
            return NULL
        found, current = _lookup(current, segment)
        if not found:
            return NULL
    return FieldValue.of(current)


def snapshot_payload(payload: Any) -> dict:
    """JSON-safe copy of a payload for persistence."""
    return json.loads(json.dumps(normalize_payload(payload), default=str))
