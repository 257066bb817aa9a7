"""Metric records handed over by the collector and their document shape."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Any, Mapping


class ValueType(IntEnum):
    """Semantic kind of a metric, numbered like the collector does."""

    COUNTER = 1
    GAUGE = 2
    UNTYPED = 3
    SUMMARY = 4
    HISTOGRAM = 5

    @classmethod
    def parse(cls, value: Any) -> "ValueType":
        """Accept a member, its integer value or its (case-insensitive) name."""

        if value is None:
            return cls.UNTYPED
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Unsupported value type: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return cls(int(text))
            try:
                return cls[text.upper()]
            except KeyError:
                raise ValueError(f"Unsupported value type: {value!r}") from None
        raise ValueError(f"Unsupported value type: {value!r}")


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def unix_nanos(moment: datetime) -> int:
    """Exact Unix time in nanoseconds; naive datetimes are taken as UTC."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // timedelta(microseconds=1) * 1_000


def _parse_time(payload: Mapping[str, Any]) -> datetime:
    if "timestamp" in payload:
        raw = payload["timestamp"]
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValueError(f"timestamp must be Unix seconds, got {raw!r}")
        return datetime.fromtimestamp(raw, tz=timezone.utc)
    raw = payload.get("time")
    if isinstance(raw, datetime):
        candidate = raw
    elif isinstance(raw, str) and raw.strip():
        text = raw.strip()
        normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
        candidate = datetime.fromisoformat(normalized)
    else:
        raise ValueError("metric requires either 'timestamp' or 'time'")
    if candidate.tzinfo is None:
        candidate = candidate.replace(tzinfo=timezone.utc)
    return candidate


@dataclass(frozen=True, slots=True)
class Metric:
    """A single measurement as produced by the collector."""

    name: str
    tags: Mapping[str, str]
    fields: Mapping[str, Any]
    time: datetime
    type: ValueType = ValueType.UNTYPED

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Metric":
        """Build a metric from the collector's JSON shape.

        ``timestamp`` is Unix seconds; ``time`` may be given instead as an
        ISO-8601 string. Naive times are taken as UTC.
        """

        name = payload.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("metric requires a non-empty 'name'")
        tags = payload.get("tags") or {}
        fields = payload.get("fields") or {}
        if not isinstance(tags, Mapping) or not isinstance(fields, Mapping):
            raise ValueError("metric 'tags' and 'fields' must be mappings")
        return cls(
            name=name,
            tags={str(key): str(value) for key, value in tags.items()},
            fields=dict(fields),
            time=_parse_time(payload),
            type=ValueType.parse(payload.get("type")),
        )


@dataclass(frozen=True, slots=True)
class Entry:
    """Document persisted for one metric."""

    name: str
    tags: dict[str, str] = field(default_factory=dict)
    fields: dict[str, Any] = field(default_factory=dict)
    time: datetime | None = None
    type: ValueType = ValueType.UNTYPED

    @classmethod
    def from_metric(cls, metric: Metric) -> "Entry":
        return cls(
            name=metric.name,
            tags=dict(metric.tags),
            fields=dict(metric.fields),
            time=metric.time,
            type=metric.type,
        )

    def to_document(self) -> dict[str, Any]:
        # Fresh dict per call: the driver adds ``_id`` to what it inserts.
        # BSON dates keep milliseconds only, so ``time_ns`` carries the exact instant.
        return {
            "name": self.name,
            "tags": dict(self.tags),
            "fields": dict(self.fields),
            "time": self.time,
            "type": int(self.type),
            "time_ns": unix_nanos(self.time) if self.time is not None else None,
        }


__all__ = ["Entry", "Metric", "ValueType", "unix_nanos"]
