"""Rendezvous engine implementation.

This module implements the RendezvousEngine that pairs a blocking submitter
with a consumer that polls or waits for work. The engine owns a
CorrelationStore and is the only component that reads or writes it.

Every mutation of the store happens inside the store lock. Suspension
happens outside it, on a per-caller Waiter, so a blocked submitter or
consumer never holds up anyone else. Waking a waiter is a non-blocking
event set, so no two operations can deadlock on each other.

Examples
--------
>>> engine = RendezvousEngine()
>>> # Submitter thread
>>> answer = engine.submit("summarize", "n1", "mindmap", prompt="hi")
>>> # Consumer thread
>>> work = engine.await_work()
>>> engine.resolve(work.request_id, "done")
"""

import copy
import logging
import uuid
from typing import Any, Callable, Dict, Optional

from ...constants.errors import ErrorMessages
from .exceptions import BrokerClosedError
from .interfaces import RendezvousEngineInterface
from .models import (
    Answer,
    BrokerStatus,
    PendingRequest,
    RequestState,
    ResolveResult,
)
from .store import CorrelationStore, Waiter

logger = logging.getLogger(__name__)


class Submission:
    """Handle for a request whose answer has not yet been awaited.

    Returned by :meth:`RendezvousEngine.open_submission` so a transport can
    wait with its own deadline and detach when it gives up.

    Attributes
    ----------
    request_id : str
        Id generated for the submitted request
    """

    def __init__(self, request_id: str, waiter: Waiter[Answer]):
        self.request_id = request_id
        self._waiter = waiter

    def wait(self, timeout: Optional[float] = None) -> Optional[Answer]:
        """Block until the answer arrives.

        Parameters
        ----------
        timeout : Optional[float], default=None
            Seconds to wait. None waits indefinitely.

        Returns
        -------
        Optional[Answer]
            The answer, or None if the timeout expired first

        Raises
        ------
        BrokerClosedError
            If the engine shut down while waiting
        """
        return self._waiter.wait(timeout=timeout)


class RendezvousEngine(RendezvousEngineInterface):
    """Concrete rendezvous engine backed by a CorrelationStore.

    Only one request occupies the poll slot at a time: a second submission
    made before the first is resolved replaces it as the request returned
    to pollers. Each submitter keeps its own response waiter keyed by its
    own id, so both still resolve correctly when answered by id.

    Attributes
    ----------
    _store : CorrelationStore
        Correlation state owned exclusively by this engine
    _new_id : Callable[[], str]
        Factory for request ids, uuid4 strings by default

    Notes
    -----
    The engine imposes no timeout on submitters. A submitter that is never
    answered waits until the engine shuts down, unless its transport waits
    through :meth:`open_submission` with a deadline and calls
    :meth:`detach` when it expires.
    """

    def __init__(
        self,
        store: Optional[CorrelationStore] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._store = store or CorrelationStore()
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))

    @property
    def is_closed(self) -> bool:
        with self._store as store:
            return store.closed

    def open_submission(
        self,
        action: Optional[str],
        subject_id: Optional[str],
        category: Optional[str],
        prompt: str = "",
        context: Optional[Dict[str, Any]] = None,
    ) -> Submission:
        """Register a request and dispatch it without waiting for the answer.

        The request becomes the current request, the oldest fetch waiter
        (if any) is woken with a snapshot of it, and a response waiter is
        registered under its id. All three steps happen in one critical
        section, so a consumer can never see the request before its
        response waiter exists.

        Parameters
        ----------
        action : Optional[str]
            Action name, passed through
        subject_id : Optional[str]
            Subject identifier, passed through
        category : Optional[str]
            Subject classification, passed through
        prompt : str, default=""
            Primary text of the request
        context : Optional[Dict[str, Any]], default=None
            Structured context, copied and forwarded verbatim

        Returns
        -------
        Submission
            Handle used to wait for the answer

        Raises
        ------
        BrokerClosedError
            If the engine has shut down
        """
        request = PendingRequest(
            request_id=self._new_id(),
            action=action,
            subject_id=subject_id,
            category=category,
            prompt=prompt or "",
            context=copy.deepcopy(context) if context else {},
        )
        response_waiter: Waiter[Answer] = Waiter()

        with self._store as store:
            if store.closed:
                raise BrokerClosedError()

            store.add_response_waiter(request.request_id, response_waiter)
            store.set_current(request)

            fetch_waiter = store.pop_fetch_waiter()
            if fetch_waiter is not None:
                request.state = RequestState.DISPATCHED
                fetch_waiter.deliver(request.snapshot())

        logger.info(
            f"Request {request.request_id} submitted: {action} on {subject_id}"
        )
        if fetch_waiter is not None:
            logger.debug(
                f"Request {request.request_id} dispatched to waiting consumer"
            )

        return Submission(request.request_id, response_waiter)

    def submit(
        self,
        action: Optional[str],
        subject_id: Optional[str],
        category: Optional[str],
        prompt: str = "",
        context: Optional[Dict[str, Any]] = None,
    ) -> Answer:
        submission = self.open_submission(
            action, subject_id, category, prompt=prompt, context=context
        )
        return submission.wait()

    def await_work(
        self, timeout: Optional[float] = None
    ) -> Optional[PendingRequest]:
        """Return the current request, or block until one is submitted.

        Repeated calls made before the current request is resolved all
        return a snapshot of that same request. When nothing is current,
        the caller joins the tail of the fetch waiter queue and is woken
        by the next submission, in arrival order.

        Parameters
        ----------
        timeout : Optional[float], default=None
            Seconds to wait when nothing is current. None waits
            indefinitely.

        Returns
        -------
        Optional[PendingRequest]
            Snapshot of the request, or None if the timeout expired

        Raises
        ------
        BrokerClosedError
            If the engine is or becomes closed
        """
        fetch_waiter: Waiter[PendingRequest] = Waiter()

        with self._store as store:
            if store.closed:
                raise BrokerClosedError()

            if store.current is not None:
                store.current.state = RequestState.DISPATCHED
                logger.info(
                    f"Returning pending request {store.current.request_id}"
                )
                return store.current.snapshot()

            store.enqueue_fetch_waiter(fetch_waiter)
            logger.info("Consumer waiting for requests")

        request = fetch_waiter.wait(timeout=timeout)
        if request is not None:
            return request

        # Timed out. A submission may have claimed the waiter between the
        # timeout and re-acquiring the lock, in which case it holds work.
        with self._store as store:
            store.discard_fetch_waiter(fetch_waiter)
        if fetch_waiter.done:
            return fetch_waiter.wait(timeout=0)
        return None

    def resolve(self, request_id: str, content: str) -> ResolveResult:
        """Deliver an answer to the submitter waiting on ``request_id``.

        Resolution takes the first branch that applies:

        1. A response waiter exists for the id: wake it with the answer,
           remove it and clear the current request if it has this id.
        2. The current request has this id but no submitter is waiting:
           clear it and report success with a warning.
        3. Otherwise report a not-found error naming the current request.

        A second resolve for the same id always takes branch 3.

        Parameters
        ----------
        request_id : str
            Id of the request being answered
        content : str
            Answer text

        Returns
        -------
        ResolveResult
            Structured outcome; this method never raises for unknown ids
        """
        logger.info(f"Responding to {request_id}")

        with self._store as store:
            response_waiter = store.pop_response_waiter(request_id)
            if response_waiter is not None:
                response_waiter.deliver(Answer(request_id, content))
                current = store.current
                if store.clear_current(request_id):
                    current.state = RequestState.RESOLVED
                logger.info(f"Response sent successfully for {request_id}")
                return ResolveResult(success=True)

            current = store.current
            if current is not None and current.request_id == request_id:
                store.clear_current(request_id)
                current.state = RequestState.RESOLVED
                logger.warning(
                    f"No waiting submitter for {request_id}, clearing request"
                )
                return ResolveResult(
                    success=True,
                    warning=ErrorMessages.SUBMITTER_TIMED_OUT,
                )

            pending_id = current.request_id if current is not None else None
            logger.warning(
                f"Request {request_id} not found. "
                f"Pending: {pending_id or 'none'}"
            )
            return ResolveResult(
                success=False,
                error=ErrorMessages.REQUEST_NOT_FOUND,
                pending_id=pending_id,
            )

    def detach(self, request_id: str) -> bool:
        """Stop tracking the submitter of ``request_id``.

        Called by a transport whose own deadline expired. The current
        request is left in place, so a late answer still clears it and is
        reported as success with a warning.

        Parameters
        ----------
        request_id : str
            Id of the request whose submitter gave up

        Returns
        -------
        bool
            True if a response waiter was removed
        """
        with self._store as store:
            response_waiter = store.pop_response_waiter(request_id)
            current = store.current
            if (
                response_waiter is not None
                and current is not None
                and current.request_id == request_id
            ):
                current.state = RequestState.DETACHED

        if response_waiter is None:
            return False

        logger.warning(f"Submitter for {request_id} detached before an answer")
        return True

    def status(self) -> BrokerStatus:
        with self._store as store:
            current = store.current
            return BrokerStatus(
                consumer_connected=store.consumer_connected,
                has_pending_request=current is not None,
                pending_request_id=(
                    current.request_id if current is not None else None
                ),
                waiting_consumers=len(store.fetch_waiters),
                waiting_submitters=len(store.response_waiters),
            )

    def set_consumer_connected(self, connected: bool) -> None:
        """Record whether a consumer surface is attached."""
        with self._store as store:
            store.consumer_connected = connected
        logger.info(
            "Consumer connected" if connected else "Consumer disconnected"
        )

    def shutdown(self) -> None:
        """Close the engine and release every suspended caller.

        Suspended submitters and consumers raise BrokerClosedError. Later
        submissions and fetches raise it immediately, and later resolves
        report not-found since all state is dropped.
        """
        logger.info("Shutting down rendezvous engine")

        with self._store as store:
            if store.closed:
                return
            store.closed = True
            waiters = store.drain()

        for waiter in waiters:
            waiter.cancel()

        logger.info(
            f"Rendezvous engine shutdown complete, released {len(waiters)} waiters"
        )
