"""Line-delimited JSON-RPC server for the consumer surface.

The server reads one JSON object per line from an input stream and writes
one JSON object per line to an output stream, normally the process's
stdin and stdout. Logging must therefore never go to stdout.

Tool calls run on a thread pool. A ``fetch_work`` call can block for as
long as nobody submits a prompt, and the reader must keep consuming lines
meanwhile so that ``post_answer`` calls and pings are still served.

Examples
--------
>>> server = StdioRpcServer(engine, input_stream=sys.stdin,
...                         output_stream=sys.stdout)
>>> server.serve_forever()  # returns at end of input
"""

import json
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional, TextIO

from ...constants.errors import ErrorMessages
from ...domain.rendezvous.interfaces import RendezvousEngineInterface
from ..config.models import RpcConfig
from .messages import (
    RpcMethod,
    build_error,
    build_initialize_result,
    build_response,
    build_tool_result,
)
from .tools import ConsumerTools

logger = logging.getLogger(__name__)


class StdioRpcServer:
    """Serves consumer tools over a pair of text streams.

    Parameters
    ----------
    engine : RendezvousEngineInterface
        Engine shared with the submission surface
    config : Optional[RpcConfig], default=None
        Handshake and worker settings
    input_stream : Optional[TextIO], default=None
        Stream of incoming lines, stdin when omitted
    output_stream : Optional[TextIO], default=None
        Stream for outgoing lines, stdout when omitted
    tools : Optional[ConsumerTools], default=None
        Tool dispatcher, built around ``engine`` when omitted

    Attributes
    ----------
    _write_lock : threading.Lock
        Serializes writes from reader and worker threads so lines never
        interleave
    _executor : ThreadPoolExecutor
        Runs tool calls off the reader thread
    """

    def __init__(
        self,
        engine: RendezvousEngineInterface,
        config: Optional[RpcConfig] = None,
        input_stream: Optional[TextIO] = None,
        output_stream: Optional[TextIO] = None,
        tools: Optional[ConsumerTools] = None,
    ):
        self.config = config or RpcConfig()
        self._engine = engine
        self._tools = tools or ConsumerTools(engine)
        self._input = input_stream if input_stream is not None else sys.stdin
        self._output = (
            output_stream if output_stream is not None else sys.stdout
        )
        self._write_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="rpc-tool",
        )

    def serve_forever(self) -> None:
        """Read and dispatch lines until the input stream ends."""
        logger.info("Consumer RPC server reading from input stream")
        try:
            for line in self._input:
                self.handle_line(line)
        finally:
            self._engine.set_consumer_connected(False)
            logger.info("Consumer input closed")

    def handle_line(self, line: str) -> None:
        """Parse and dispatch one line. Unparseable lines are skipped."""
        line = line.strip()
        if not line:
            return

        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unparseable line: {e}")
            return

        if not isinstance(message, dict):
            logger.warning("Ignoring message that is not a JSON object")
            return

        self.handle_message(message)

    def handle_message(self, message: Dict[str, Any]) -> None:
        """Dispatch one decoded message.

        Parameters
        ----------
        message : Dict[str, Any]
            JSON-RPC request or notification

        Notes
        -----
        Messages without a method (responses from the client) are ignored.
        Unknown notifications are ignored; unknown requests receive an
        error response.
        """
        request_id = message.get("id")
        method = message.get("method")
        if method is None:
            return

        if method == RpcMethod.INITIALIZE:
            self._engine.set_consumer_connected(True)
            self.send(
                build_response(
                    request_id, build_initialize_result(self.config)
                )
            )
        elif method == RpcMethod.INITIALIZED:
            pass
        elif method == RpcMethod.PING:
            self.send(build_response(request_id, {}))
        elif method == RpcMethod.TOOLS_LIST:
            self.send(
                build_response(request_id, {"tools": self._tools.list_tools()})
            )
        elif method == RpcMethod.TOOLS_CALL:
            params = message.get("params") or {}
            if not isinstance(params, dict):
                logger.warning("Rejecting tools/call with non-object params")
                self.send(
                    build_error(request_id, ErrorMessages.INVALID_PARAMS)
                )
                return
            self._executor.submit(self._run_tool_call, request_id, params)
        elif request_id is not None:
            logger.warning(f"Unknown method: {method}")
            self.send(
                build_error(
                    request_id, ErrorMessages.format_unknown_method(method)
                )
            )

    def _run_tool_call(self, request_id: Any, params: Dict[str, Any]) -> None:
        name = None
        try:
            name = params.get("name")
            payload, is_error = self._tools.call(
                name, params.get("arguments") or {}
            )
            self.send(
                build_response(request_id, build_tool_result(payload, is_error))
            )
        except Exception as e:
            logger.error(f"Tool call {name} failed: {e}", exc_info=True)
            self.send(build_error(request_id, str(e)))

    def send(self, message: Dict[str, Any]) -> None:
        """Write one message as a single line."""
        line = json.dumps(message) + "\n"
        with self._write_lock:
            self._output.write(line)
            self._output.flush()

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting tool calls.

        Parameters
        ----------
        wait : bool, default=False
            Block until in-flight tool calls finish. Calls blocked in
            fetch_work only finish once work arrives or the engine shuts
            down.
        """
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
