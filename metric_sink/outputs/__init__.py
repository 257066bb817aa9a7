"""Output plugins and the registry the host looks them up in."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from .base import BaseOutput
from .mongodb import MongoDBOutput, create_mongodb_output

OutputFactory = Callable[..., BaseOutput]


class OutputRegistry:
    """Map output names to the factories building them."""

    def __init__(self) -> None:
        self._factories: dict[str, OutputFactory] = {}
        self._classes: dict[str, type[BaseOutput]] = {}

    def register(self, name: str, factory: OutputFactory, output_class: type[BaseOutput]) -> None:
        if name in self._factories:
            raise ValueError(f"Output already registered: {name}")
        self._factories[name] = factory
        self._classes[name] = output_class

    def names(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def _lookup(self, name: str) -> OutputFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise KeyError(f"Unknown output: {name}") from None

    def create(self, name: str, options: Mapping[str, Any] | None = None, logger: Any = None) -> BaseOutput:
        factory = self._lookup(name)
        return factory(dict(options or {}), logger=logger)

    def description(self, name: str) -> str:
        self._lookup(name)
        return self._classes[name].description

    def sample_config(self, name: str) -> str:
        self._lookup(name)
        return self._classes[name].sample_config


def default_registry() -> OutputRegistry:
    """Return a new registry holding every bundled output."""

    registry = OutputRegistry()
    registry.register("mongodb", create_mongodb_output, MongoDBOutput)
    return registry


__all__ = [
    "BaseOutput",
    "MongoDBOutput",
    "OutputFactory",
    "OutputRegistry",
    "default_registry",
]
