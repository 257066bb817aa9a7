"""Output plugin contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

from ..metric import Metric
from ..serializers import Serializer


class BaseOutput(ABC):
    """Uniform contract the host uses to drive an output."""

    #: One-line summary shown by configuration tooling.
    description: str = ""
    #: Commented configuration snippet for this output.
    sample_config: str = ""

    serializer: Serializer | None = None

    def set_serializer(self, serializer: Serializer) -> None:
        self.serializer = serializer

    @abstractmethod
    def connect(self) -> None:
        """Make the output ready for writes."""

    @abstractmethod
    def write(self, metrics: Iterable[Metric]) -> None:
        """Persist one flush worth of metrics."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""

    def __enter__(self) -> "BaseOutput":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["BaseOutput"]
