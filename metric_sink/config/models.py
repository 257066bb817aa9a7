"""Pydantic models describing agent and output configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

MONGODB_SCHEMES = ("mongodb://", "mongodb+srv://")


class MongoDBOutputConfig(BaseModel):
    """Connection and write settings for the MongoDB output."""

    url: str = "mongodb://localhost:27017"
    username: str = ""
    password: str = ""
    database: str = "telegraf"
    collection: str = "metrics"
    # Batching is the documented behaviour, so it is the default here as well.
    use_batch_format: bool = True

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        text = value.strip()
        if not text.startswith(MONGODB_SCHEMES):
            raise ValueError(f"url must start with one of {MONGODB_SCHEMES}: {value!r}")
        return text

    @field_validator("database", "collection")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("name cannot be empty")
        if "$" in text:
            raise ValueError(f"name cannot contain '$': {value!r}")
        return text


class AgentConfig(BaseModel):
    """Top level configuration: one section per enabled output."""

    debug: bool = False
    outputs: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @field_validator("outputs", mode="before")
    @classmethod
    def _coerce_outputs(cls, value: Any) -> dict[str, dict[str, Any]]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ValueError("outputs expects a mapping of output name to options")
        return {name: dict(options or {}) for name, options in value.items()}


__all__ = ["AgentConfig", "MONGODB_SCHEMES", "MongoDBOutputConfig"]
