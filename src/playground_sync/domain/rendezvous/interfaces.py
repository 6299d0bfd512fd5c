"""Abstract interface for prompt rendezvous.

The transport adapters depend on this contract rather than on the concrete
engine, so either side can be exercised against a test double.

Examples
--------
>>> def create_router(engine: RendezvousEngineInterface):
...     @router.post("/prompt")
...     def submit_prompt(request: PromptSubmission):
...         answer = engine.submit(request.action, ...)
...         return {"content": answer.content}
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from .models import Answer, BrokerStatus, PendingRequest, ResolveResult

if TYPE_CHECKING:
    from .engine import Submission


class RendezvousEngineInterface(ABC):
    """Contract for pairing blocking submitters with polling consumers.

    Implementations must be safe to call concurrently from any number of
    threads. A caller suspended in :meth:`submit` or :meth:`await_work`
    must never prevent another caller from resolving, submitting or
    querying status.
    """

    @abstractmethod
    def submit(
        self,
        action: Optional[str],
        subject_id: Optional[str],
        category: Optional[str],
        prompt: str = "",
        context: Optional[Dict[str, Any]] = None,
    ) -> Answer:
        """Submit a request and block until its answer is posted.

        Parameters
        ----------
        action : Optional[str]
            Action name, passed through to the consumer
        subject_id : Optional[str]
            Identifier of the subject, passed through to the consumer
        category : Optional[str]
            Subject classification, passed through to the consumer
        prompt : str, default=""
            Primary text of the request
        context : Optional[Dict[str, Any]], default=None
            Structured context forwarded verbatim

        Returns
        -------
        Answer
            The answer posted for this request's id

        Raises
        ------
        BrokerClosedError
            If the broker is or becomes closed
        """

    @abstractmethod
    def open_submission(
        self,
        action: Optional[str],
        subject_id: Optional[str],
        category: Optional[str],
        prompt: str = "",
        context: Optional[Dict[str, Any]] = None,
    ) -> "Submission":
        """Register a request and return a handle to wait on.

        Transports that impose their own deadline wait on the handle and
        call :meth:`detach` when it expires.

        Raises
        ------
        BrokerClosedError
            If the broker is closed
        """

    @abstractmethod
    def await_work(
        self, timeout: Optional[float] = None
    ) -> Optional[PendingRequest]:
        """Return the current request, or block until one is submitted.

        Parameters
        ----------
        timeout : Optional[float], default=None
            Seconds to wait when no request is current. None waits
            indefinitely.

        Returns
        -------
        Optional[PendingRequest]
            A snapshot of the request, or None if the timeout expired
        """

    @abstractmethod
    def resolve(self, request_id: str, content: str) -> ResolveResult:
        """Deliver an answer to the submitter waiting on ``request_id``.

        Parameters
        ----------
        request_id : str
            Id of the request being answered
        content : str
            Answer text

        Returns
        -------
        ResolveResult
            Success, success with a warning, or a not-found error
        """

    @abstractmethod
    def detach(self, request_id: str) -> bool:
        """Stop tracking the submitter of ``request_id``.

        Returns
        -------
        bool
            True if a waiting submitter was removed
        """

    @abstractmethod
    def status(self) -> BrokerStatus:
        """Return a read-only view of the broker state."""

    @abstractmethod
    def set_consumer_connected(self, connected: bool) -> None:
        """Record whether a consumer surface is attached."""

    @abstractmethod
    def shutdown(self) -> None:
        """Release every suspended caller and refuse new work."""
