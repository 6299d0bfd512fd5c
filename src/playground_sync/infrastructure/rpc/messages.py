"""JSON-RPC message builders for the consumer surface.

Messages are JSON objects framed one per line. This module only builds
dictionaries; framing and writing are the server's job.

Examples
--------
>>> build_response(1, {"tools": []})
{'jsonrpc': '2.0', 'id': 1, 'result': {'tools': []}}
>>> build_error(2, "Unknown method: foo")["error"]["code"]
-32603
"""

import json
from enum import Enum
from typing import Any, Dict, Optional

from ..config.models import RpcConfig

JSONRPC_VERSION = "2.0"

INTERNAL_ERROR = -32603


class RpcMethod(str, Enum):
    """Methods understood by the consumer surface."""

    INITIALIZE = "initialize"
    INITIALIZED = "notifications/initialized"
    PING = "ping"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"


def build_response(request_id: Any, result: Dict[str, Any]) -> dict:
    """Build a successful JSON-RPC response."""
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def build_error(
    request_id: Any, message: str, code: int = INTERNAL_ERROR
) -> dict:
    """Build a JSON-RPC error response.

    Parameters
    ----------
    request_id : Any
        Id of the request being answered
    message : str
        Human-readable error message
    code : int, default=INTERNAL_ERROR
        JSON-RPC error code

    Returns
    -------
    dict
        Error response
    """
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": {"code": code, "message": message},
    }


def build_initialize_result(config: RpcConfig) -> dict:
    """Build the capability advertisement returned by initialize."""
    return {
        "protocolVersion": config.protocol_version,
        "serverInfo": {
            "name": config.server_name,
            "version": config.server_version,
        },
        "capabilities": {"tools": {}},
    }


def build_tool_result(
    payload: Dict[str, Any], is_error: Optional[bool] = False
) -> dict:
    """Wrap a tool's payload as a single indented JSON text block.

    Parameters
    ----------
    payload : Dict[str, Any]
        Tool output
    is_error : Optional[bool], default=False
        Flag the result as a tool-level failure

    Returns
    -------
    dict
        Result object for a tools/call response
    """
    result: Dict[str, Any] = {
        "content": [{"type": "text", "text": json.dumps(payload, indent=2)}]
    }
    if is_error:
        result["isError"] = True
    return result
