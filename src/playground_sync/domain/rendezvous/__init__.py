"""Prompt rendezvous module.

This module pairs a submitter that blocks on an answer with a consumer
that polls or waits for work. Correlation happens entirely in an
explicitly constructed CorrelationStore owned by a RendezvousEngine.

The module includes:
- RendezvousEngine: submit, await_work and resolve operations
- CorrelationStore and Waiter: shared state and suspension primitives
- Data models: PendingRequest, Answer, ResolveResult, BrokerStatus

Examples
--------
>>> engine = RendezvousEngine()
>>> work = engine.await_work(timeout=0.1)  # None, nothing submitted yet
"""

from .engine import RendezvousEngine, Submission
from .exceptions import BrokerClosedError, RendezvousError
from .interfaces import RendezvousEngineInterface
from .models import (
    Answer,
    BrokerStatus,
    PendingRequest,
    RequestState,
    ResolveResult,
)
from .store import CorrelationStore, Waiter

__all__ = [
    "RendezvousEngine",
    "RendezvousEngineInterface",
    "Submission",
    "CorrelationStore",
    "Waiter",
    "Answer",
    "BrokerStatus",
    "PendingRequest",
    "RequestState",
    "ResolveResult",
    "BrokerClosedError",
    "RendezvousError",
]
