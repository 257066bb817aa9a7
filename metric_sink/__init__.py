"""Forward collected metrics into a document database."""

from .errors import BackendError, ConnectError, NotConnectedError, SinkError, TransportError, WriteError
from .metric import Entry, Metric, ValueType
from .outputs import BaseOutput, MongoDBOutput, OutputRegistry, default_registry

__version__ = "0.1.0"

__all__ = [
    "BackendError",
    "BaseOutput",
    "ConnectError",
    "Entry",
    "Metric",
    "MongoDBOutput",
    "NotConnectedError",
    "OutputRegistry",
    "SinkError",
    "TransportError",
    "ValueType",
    "WriteError",
    "default_registry",
]
