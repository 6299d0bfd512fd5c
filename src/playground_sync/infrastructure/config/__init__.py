"""Infrastructure configuration module."""

from .loader import ConfigLoader
from .models import BrokerConfig, HttpConfig, LoggingConfig, RpcConfig

__all__ = [
    "ConfigLoader",
    "BrokerConfig",
    "HttpConfig",
    "LoggingConfig",
    "RpcConfig",
]
