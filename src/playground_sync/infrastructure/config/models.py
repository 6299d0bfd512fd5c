"""Configuration data models.

This module defines the data structures for broker configuration, using
dataclasses for type safety and clarity.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class HttpConfig:
    """Submission surface configuration.

    Attributes
    ----------
    host : str
        Interface the HTTP server binds to. Default: 127.0.0.1.
    port : int
        Port the HTTP server listens on. Default: 4242.
    cors_origins : List[str]
        Origins allowed to call the API from a browser. Default: ["*"].
    submit_timeout_seconds : Optional[float]
        How long a submitter waits for an answer before receiving 504.
        None waits indefinitely. Default: None.
    max_waiting_submitters : int
        Submitters that may wait for an answer at the same time. Each one
        holds a worker thread. Default: 1000.
    """

    host: str = "127.0.0.1"
    port: int = 4242
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    submit_timeout_seconds: Optional[float] = None
    max_waiting_submitters: int = 1000


@dataclass
class RpcConfig:
    """Consumer surface configuration.

    Attributes
    ----------
    server_name : str
        Name advertised in the initialize handshake
    server_version : str
        Version advertised in the initialize handshake
    protocol_version : str
        Protocol version advertised in the initialize handshake
    max_workers : int
        Threads available for concurrent tool calls. A blocked fetch
        occupies one worker until work arrives.
    """

    server_name: str = "playground-sync"
    server_version: str = "1.0.0"
    protocol_version: str = "2024-11-05"
    max_workers: int = 8


@dataclass
class LoggingConfig:
    """Logging configuration.

    Attributes
    ----------
    level : str
        Root log level name. Default: INFO.
    """

    level: str = "INFO"


@dataclass
class BrokerConfig:
    """Complete broker configuration."""

    http: HttpConfig = field(default_factory=HttpConfig)
    rpc: RpcConfig = field(default_factory=RpcConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
