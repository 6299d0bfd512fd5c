"""FastAPI dependency injection functions.

The engine and HTTP settings are stored in ``app.state`` by
:func:`create_app`, so endpoints never reach for module globals and tests
can build isolated applications around their own engines.
"""

import anyio
from fastapi import Request

from ...domain.rendezvous.interfaces import RendezvousEngineInterface
from ..config.models import HttpConfig


def get_engine(request: Request) -> RendezvousEngineInterface:
    """Dependency to get the rendezvous engine from app state.

    Parameters
    ----------
    request : Request
        FastAPI request object containing app reference

    Returns
    -------
    RendezvousEngineInterface
        The engine shared with the consumer surface
    """
    return request.app.state.engine


def get_http_config(request: Request) -> HttpConfig:
    """Dependency to get the HTTP settings from app state."""
    return request.app.state.http_config


async def get_submit_limiter(request: Request) -> anyio.CapacityLimiter:
    """Dependency to get the thread limiter reserved for submitters.

    The limiter is created on first use, inside the running event loop,
    and sized by ``http.max_waiting_submitters``. Keeping submitters off
    the default thread pool leaves that pool free for other sync work.

    Parameters
    ----------
    request : Request
        FastAPI request object containing app reference

    Returns
    -------
    anyio.CapacityLimiter
        Limiter shared by every submission to this application
    """
    state = request.app.state
    limiter = getattr(state, "submit_limiter", None)
    if limiter is None:
        limiter = anyio.CapacityLimiter(state.http_config.max_waiting_submitters)
        state.submit_limiter = limiter
    return limiter
