"""Shared fixtures for broker tests.

Engines are torn down before the thread pool so that any caller still
suspended in the engine is released and the pool can join.
"""

import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from playground_sync.domain.rendezvous.engine import RendezvousEngine


@pytest.fixture
def executor():
    """Thread pool for running blocking submitters and consumers."""
    pool = ThreadPoolExecutor(max_workers=8)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def engine(executor):
    """Fresh engine, shut down after the test."""
    engine = RendezvousEngine()
    yield engine
    engine.shutdown()


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or the timeout expires."""

    def _wait_until(predicate, timeout: float = 2.0, interval: float = 0.005):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait_until
