"""Correlation state for the rendezvous engine.

The store holds the request currently occupying the poll slot, the
response waiters keyed by request id and the FIFO of fetch waiters. It
performs no I/O and makes no decisions. All mutations are expected to run
while the caller holds the store lock, which the store exposes as a
context manager:

>>> store = CorrelationStore()
>>> with store:
...     store.set_current(request)
...     waiter = store.pop_fetch_waiter()

Only the engine is meant to touch a store. Construct one store per engine
so tests can run isolated brokers side by side.
"""

import threading
from collections import deque
from typing import Deque, Dict, Generic, List, Optional, TypeVar

from .exceptions import BrokerClosedError
from .models import Answer, PendingRequest

T = TypeVar("T")


class Waiter(Generic[T]):
    """One-shot value slot that a single thread can block on.

    A waiter is resolved at most once, either by :meth:`deliver` with a
    value or by :meth:`cancel`. Whichever happens first wins; the other
    becomes a no-op and reports False. Waking never blocks the waker.

    Attributes
    ----------
    _event : threading.Event
        Set when the waiter is delivered or cancelled
    _value : Optional[T]
        Delivered value
    _cancelled : bool
        Whether the waiter was cancelled instead of delivered
    """

    def __init__(self):
        self._event = threading.Event()
        self._guard = threading.Lock()
        self._value: Optional[T] = None
        self._cancelled = False

    @property
    def done(self) -> bool:
        """Whether the waiter has been delivered or cancelled."""
        return self._event.is_set()

    def deliver(self, value: T) -> bool:
        """Hand a value to the waiting thread.

        Parameters
        ----------
        value : T
            Value returned from :meth:`wait`

        Returns
        -------
        bool
            True if this call resolved the waiter, False if it was already
            resolved
        """
        with self._guard:
            if self._event.is_set():
                return False
            self._value = value
            self._event.set()
        return True

    def cancel(self) -> bool:
        """Wake the waiting thread with :class:`BrokerClosedError`."""
        with self._guard:
            if self._event.is_set():
                return False
            self._cancelled = True
            self._event.set()
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[T]:
        """Block until the waiter is resolved.

        Parameters
        ----------
        timeout : Optional[float], default=None
            Seconds to wait. None waits indefinitely.

        Returns
        -------
        Optional[T]
            The delivered value, or None if the timeout expired first

        Raises
        ------
        BrokerClosedError
            If the waiter was cancelled
        """
        if not self._event.wait(timeout=timeout):
            return None
        if self._cancelled:
            raise BrokerClosedError()
        return self._value


class CorrelationStore:
    """Shared state pairing submitters with consumers.

    Attributes
    ----------
    current : Optional[PendingRequest]
        The request returned to pollers; last submitted wins
    response_waiters : Dict[str, Waiter[Answer]]
        Submitters awaiting an answer, keyed by request id
    fetch_waiters : Deque[Waiter[PendingRequest]]
        Consumers awaiting work, in arrival order
    consumer_connected : bool
        Whether a consumer surface is attached
    closed : bool
        Set once the owning engine shuts down

    Notes
    -----
    The lock is reentrant so that engine methods holding it may call
    one another.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self.current: Optional[PendingRequest] = None
        self.response_waiters: Dict[str, Waiter[Answer]] = {}
        self.fetch_waiters: Deque[Waiter[PendingRequest]] = deque()
        self.consumer_connected = False
        self.closed = False

    def __enter__(self) -> "CorrelationStore":
        self._lock.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._lock.release()

    def set_current(self, request: PendingRequest) -> None:
        self.current = request

    def clear_current(self, request_id: Optional[str] = None) -> bool:
        """Clear the poll slot.

        Parameters
        ----------
        request_id : Optional[str], default=None
            When given, the slot is cleared only if it holds this id

        Returns
        -------
        bool
            True if the slot was cleared
        """
        if self.current is None:
            return False
        if request_id is not None and self.current.request_id != request_id:
            return False
        self.current = None
        return True

    def add_response_waiter(
        self, request_id: str, waiter: Waiter[Answer]
    ) -> None:
        if request_id in self.response_waiters:
            raise ValueError(f"Duplicate response waiter for {request_id}")
        self.response_waiters[request_id] = waiter

    def pop_response_waiter(
        self, request_id: str
    ) -> Optional[Waiter[Answer]]:
        return self.response_waiters.pop(request_id, None)

    def enqueue_fetch_waiter(self, waiter: Waiter[PendingRequest]) -> None:
        self.fetch_waiters.append(waiter)

    def pop_fetch_waiter(self) -> Optional[Waiter[PendingRequest]]:
        """Remove and return the oldest fetch waiter still unresolved."""
        while self.fetch_waiters:
            waiter = self.fetch_waiters.popleft()
            if not waiter.done:
                return waiter
        return None

    def discard_fetch_waiter(self, waiter: Waiter[PendingRequest]) -> bool:
        try:
            self.fetch_waiters.remove(waiter)
        except ValueError:
            return False
        return True

    def drain(self) -> List[Waiter]:
        """Remove every waiter and clear the poll slot.

        Returns
        -------
        List[Waiter]
            All response and fetch waiters that were registered
        """
        waiters: List[Waiter] = list(self.response_waiters.values())
        waiters.extend(self.fetch_waiters)
        self.response_waiters.clear()
        self.fetch_waiters.clear()
        self.current = None
        return waiters
