from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from metric_sink.serializers import JsonSerializer

STAMP = datetime(2024, 5, 20, 8, 30, 0, 123456, tzinfo=timezone.utc)


def test_json_serializer_renders_collector_shape(make_metric) -> None:
    metric = make_metric(time=STAMP)
    line = JsonSerializer().serialize(metric)
    assert line.endswith(b"\n")
    assert json.loads(line) == {
        "fields": {"usage": 0.5},
        "name": "cpu",
        "tags": {"host": "a"},
        "timestamp": 1716193800,
    }


@pytest.mark.parametrize(
    ("units", "expected"),
    [
        ("1s", 1716193800),
        ("1ms", 1716193800123),
        ("1us", 1716193800123456),
        ("1ns", 1716193800123456000),
    ],
)
def test_json_serializer_timestamp_units(make_metric, units, expected) -> None:
    payload = json.loads(JsonSerializer(units).serialize(make_metric(time=STAMP)))
    assert payload["timestamp"] == expected


def test_json_serializer_batch_is_json_lines(make_metric) -> None:
    data = JsonSerializer().serialize_batch([make_metric(name="a"), make_metric(name="b")])
    names = [json.loads(line)["name"] for line in data.decode("utf-8").splitlines()]
    assert names == ["a", "b"]


def test_json_serializer_rejects_unknown_units() -> None:
    with pytest.raises(ValueError):
        JsonSerializer("1h")
