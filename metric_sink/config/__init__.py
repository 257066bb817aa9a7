"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import AgentConfig, MongoDBOutputConfig

__all__ = [
    "AgentConfig",
    "ConfigLocator",
    "ConfigRepository",
    "MongoDBOutputConfig",
]
