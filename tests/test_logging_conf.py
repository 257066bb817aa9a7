from __future__ import annotations

import logging
from pathlib import Path

import pytest

from metric_sink.logging_conf import _dict_config, error_log_path, main_log_path, output_logger, tail_log


def test_output_logger_adds_file_handler_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRIC_SINK_HOME", str(tmp_path))
    output_logger("mongodb")
    output_logger("mongodb")

    expected = tmp_path.resolve() / "logs" / "outputs" / "mongodb.log"
    handlers = [
        handler
        for handler in logging.getLogger("metric_sink.output.mongodb").handlers
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == str(expected)
    ]
    assert len(handlers) == 1
    assert main_log_path().exists()
    for handler in handlers:
        logging.getLogger("metric_sink.output.mongodb").removeHandler(handler)
        handler.close()


def test_tail_log(tmp_path: Path) -> None:
    path = tmp_path / "sample.log"
    assert tail_log(path) == []
    path.write_text("".join(f"line {i}\n" for i in range(5)), encoding="utf-8")
    assert tail_log(path, 2) == ["line 3\n", "line 4\n"]


def test_dict_config_renders_every_handler_as_json(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("METRIC_SINK_HOME", str(tmp_path))
    config = _dict_config("DEBUG")

    assert config["formatters"]["json"]["()"] == "pythonjsonlogger.jsonlogger.JsonFormatter"
    assert {handler["formatter"] for handler in config["handlers"].values()} == {"json"}
    assert config["handlers"]["console"]["level"] == "DEBUG"
    assert config["handlers"]["error_file"] == {
        "class": "logging.FileHandler",
        "level": "ERROR",
        "filename": str(error_log_path()),
        "formatter": "json",
    }
    assert config["loggers"]["metric_sink"]["propagate"] is False
