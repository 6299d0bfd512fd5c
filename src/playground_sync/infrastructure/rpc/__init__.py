"""Line-delimited JSON-RPC consumer surface."""

from .server import StdioRpcServer
from .tools import FETCH_WORK, POST_ANSWER, TOOL_DEFINITIONS, ConsumerTools

__all__ = [
    "StdioRpcServer",
    "ConsumerTools",
    "TOOL_DEFINITIONS",
    "FETCH_WORK",
    "POST_ANSWER",
]
