"""Serializer contract handed to outputs by the host, plus a JSON implementation."""

from __future__ import annotations

import json
from typing import Iterable, Protocol

from .metric import Metric, unix_nanos

_UNIT_DIVISORS = {
    "1ns": 1,
    "1us": 1_000,
    "1ms": 1_000_000,
    "1s": 1_000_000_000,
}


class Serializer(Protocol):
    def serialize(self, metric: Metric) -> bytes: ...

    def serialize_batch(self, metrics: Iterable[Metric]) -> bytes: ...


class JsonSerializer:
    """Render metrics as JSON lines in the collector's wire shape."""

    def __init__(self, timestamp_units: str = "1s") -> None:
        if timestamp_units not in _UNIT_DIVISORS:
            raise ValueError(
                f"Unsupported timestamp units {timestamp_units!r}; expected one of {sorted(_UNIT_DIVISORS)}"
            )
        self.timestamp_units = timestamp_units

    def _timestamp(self, metric: Metric) -> int:
        return unix_nanos(metric.time) // _UNIT_DIVISORS[self.timestamp_units]

    def to_dict(self, metric: Metric) -> dict:
        return {
            "fields": dict(metric.fields),
            "name": metric.name,
            "tags": dict(metric.tags),
            "timestamp": self._timestamp(metric),
        }

    def serialize(self, metric: Metric) -> bytes:
        line = json.dumps(self.to_dict(metric), ensure_ascii=False, default=str)
        return (line + "\n").encode("utf-8")

    def serialize_batch(self, metrics: Iterable[Metric]) -> bytes:
        return b"".join(self.serialize(metric) for metric in metrics)


__all__ = ["JsonSerializer", "Serializer"]
