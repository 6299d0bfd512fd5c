"""Data models for prompt rendezvous.

This module defines the data structures that flow through the rendezvous
engine: the request a submitter is waiting on, the answer a consumer posts
back, and the structured results and status snapshots the engine reports.

The engine never interprets the classification fields or the context
payload of a request. They are carried verbatim from the submission
surface to the consumer surface.

Examples
--------
>>> request = PendingRequest(
...     request_id="6b1f...",
...     action="summarize",
...     subject_id="n1",
...     category="mindmap",
...     prompt="hi",
... )
>>> request.to_work_item()["subjectId"]
'n1'
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class RequestState(Enum):
    """Lifecycle state of a submitted request.

    The progression is SUBMITTED -> DISPATCHED -> RESOLVED. A request can
    be resolved without ever being dispatched to a distinct fetch waiter
    (the consumer may have picked it up through the poll path), so only
    RESOLVED carries meaning for correctness. DETACHED marks a request
    whose submitter gave up before an answer arrived.

    Attributes
    ----------
    SUBMITTED : str
        Request created and stored as the current request
    DISPATCHED : str
        Request handed to a consumer, either by waking a fetch waiter or
        through an immediate poll return
    RESOLVED : str
        Answer delivered or request discarded
    DETACHED : str
        Submitter stopped waiting; a late answer is still accepted
    """

    SUBMITTED = "submitted"
    DISPATCHED = "dispatched"
    RESOLVED = "resolved"
    DETACHED = "detached"

    def is_terminal(self) -> bool:
        """Check if this state ends the request lifecycle.

        Returns
        -------
        bool
            True only for RESOLVED
        """
        return self is RequestState.RESOLVED


@dataclass
class PendingRequest:
    """One unit of work awaiting an answer.

    Instances are owned by the correlation store for their whole lifetime.
    Consumers only ever receive copies produced by :meth:`snapshot`, so a
    consumer mutating its context cannot alter what later pollers see.

    Attributes
    ----------
    request_id : str
        Unique identifier generated at submission time
    action : str
        Caller-supplied action name (e.g. "summarize"), passed through
    subject_id : str
        Caller-supplied identifier of the thing being acted on
    category : str
        Caller-supplied classification of the subject
    prompt : str
        Primary text of the request
    context : Dict[str, Any]
        Arbitrary structured context, forwarded without interpretation
    created_at : datetime
        Submission timestamp, informational only
    state : RequestState
        Current lifecycle state, used for logging and introspection
    """

    request_id: str
    action: Optional[str]
    subject_id: Optional[str]
    category: Optional[str]
    prompt: str = ""
    context: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)
    state: RequestState = RequestState.SUBMITTED

    def snapshot(self) -> "PendingRequest":
        """Return a deep copy suitable for handing to a consumer."""
        return copy.deepcopy(self)

    def to_work_item(self) -> Dict[str, Any]:
        """Render the request in the consumer wire format.

        Returns
        -------
        Dict[str, Any]
            Mapping with keys requestId, action, subjectId, category,
            prompt and context
        """
        return {
            "requestId": self.request_id,
            "action": self.action,
            "subjectId": self.subject_id,
            "category": self.category,
            "prompt": self.prompt,
            "context": self.context,
        }


@dataclass(frozen=True)
class Answer:
    """The consumer's reply to a request.

    Attributes
    ----------
    request_id : str
        Identifier of the request this answer targets
    content : str
        Reply text, markdown permitted
    """

    request_id: str
    content: str


@dataclass(frozen=True)
class ResolveResult:
    """Outcome of posting an answer.

    Resolution never raises for an unknown or stale id. The outcome is a
    value the consumer surface can serialize directly.

    Attributes
    ----------
    success : bool
        Whether the answer matched a live request
    warning : Optional[str]
        Set when the answer matched the current request but no submitter
        was waiting for it any more
    error : Optional[str]
        Set when no request matched the id
    pending_id : Optional[str]
        Id of the request pending at the time of a failed resolve, for
        diagnostics
    """

    success: bool
    warning: Optional[str] = None
    error: Optional[str] = None
    pending_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the consumer wire format.

        Returns
        -------
        Dict[str, Any]
            ``{"success": True}``, ``{"success": True, "warning": ...}``
            or ``{"error": ..., "pendingId": ...}``; ``pendingId`` is
            omitted when nothing is pending
        """
        if self.success:
            result: Dict[str, Any] = {"success": True}
            if self.warning:
                result["warning"] = self.warning
            return result

        result = {"error": self.error}
        if self.pending_id is not None:
            result["pendingId"] = self.pending_id
        return result


@dataclass(frozen=True)
class BrokerStatus:
    """Read-only view of the broker state.

    Attributes
    ----------
    consumer_connected : bool
        Whether a consumer has completed the handshake and is attached
    has_pending_request : bool
        Whether a request currently occupies the poll slot
    pending_request_id : Optional[str]
        Id of that request, if any
    waiting_consumers : int
        Number of fetch waiters currently suspended
    waiting_submitters : int
        Number of submitters currently awaiting an answer
    """

    consumer_connected: bool
    has_pending_request: bool
    pending_request_id: Optional[str] = None
    waiting_consumers: int = 0
    waiting_submitters: int = 0
