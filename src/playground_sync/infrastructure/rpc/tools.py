"""Consumer tools exposed over the RPC surface.

Two tools are advertised:

- ``fetch_work`` blocks until a prompt is available and returns it
- ``post_answer`` sends the answer for a prompt back to its submitter

Both translate directly into rendezvous engine calls.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ...constants.errors import ErrorMessages
from ...domain.rendezvous.exceptions import BrokerClosedError
from ...domain.rendezvous.interfaces import RendezvousEngineInterface

logger = logging.getLogger(__name__)

FETCH_WORK = "fetch_work"
POST_ANSWER = "post_answer"

TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": FETCH_WORK,
        "description": (
            "BLOCKING: Waits for a user to interact with the playground. "
            "Call this in a loop to handle requests interactively. Returns "
            "when the user triggers an AI action in the browser."
        ),
        "inputSchema": {"type": "object", "properties": {}, "required": []},
    },
    {
        "name": POST_ANSWER,
        "description": (
            "Send a response back to the playground after processing a "
            "prompt."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "requestId": {
                    "type": "string",
                    "description": "Request ID from fetch_work",
                },
                "content": {
                    "type": "string",
                    "description": "Your response (markdown supported)",
                },
            },
            "required": ["requestId", "content"],
        },
    },
]


class ConsumerTools:
    """Dispatches tool calls to a rendezvous engine.

    Parameters
    ----------
    engine : RendezvousEngineInterface
        Engine shared with the submission surface
    fetch_timeout : Optional[float], default=None
        Seconds fetch_work waits before returning an empty result. None
        waits until work arrives or the broker closes.
    """

    def __init__(
        self,
        engine: RendezvousEngineInterface,
        fetch_timeout: Optional[float] = None,
    ):
        self._engine = engine
        self._fetch_timeout = fetch_timeout

    def list_tools(self) -> List[Dict[str, Any]]:
        return TOOL_DEFINITIONS

    def call(
        self, name: str, arguments: Optional[Dict[str, Any]] = None
    ) -> Tuple[Dict[str, Any], bool]:
        """Run a tool.

        Parameters
        ----------
        name : str
            Tool name
        arguments : Optional[Dict[str, Any]]
            Tool arguments

        Returns
        -------
        Tuple[Dict[str, Any], bool]
            The tool payload and whether it reports a failure
        """
        arguments = arguments or {}

        if name == FETCH_WORK:
            return self._fetch_work()
        if name == POST_ANSWER:
            return self._post_answer(arguments)

        logger.warning(f"Unknown tool requested: {name}")
        return {"error": ErrorMessages.format_unknown_tool(name)}, True

    def _fetch_work(self) -> Tuple[Dict[str, Any], bool]:
        try:
            request = self._engine.await_work(timeout=self._fetch_timeout)
        except BrokerClosedError:
            return {"error": ErrorMessages.BROKER_CLOSED}, True

        if request is None:
            return {"requestId": None, "message": "No pending requests"}, False

        logger.info(
            f"Delivering request {request.request_id}: "
            f"{request.action} on {request.subject_id}"
        )
        return request.to_work_item(), False

    def _post_answer(
        self, arguments: Dict[str, Any]
    ) -> Tuple[Dict[str, Any], bool]:
        missing = [
            key
            for key in ("requestId", "content")
            if not isinstance(arguments.get(key), str)
        ]
        if missing:
            return {
                "error": ErrorMessages.format_missing_arguments(missing)
            }, True

        result = self._engine.resolve(
            arguments["requestId"], arguments["content"]
        )
        return result.to_dict(), False
