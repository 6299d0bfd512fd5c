"""Prompt submission endpoints."""

import logging
from typing import Optional

import anyio
import anyio.to_thread
from fastapi import APIRouter, Body, Depends, HTTPException

from ...constants.errors import ErrorMessages
from ...domain.rendezvous.exceptions import BrokerClosedError
from ...domain.rendezvous.interfaces import RendezvousEngineInterface
from ..config.models import HttpConfig
from .dependencies import get_engine, get_http_config, get_submit_limiter
from .models import (
    BrokerStatusResponse,
    ErrorResponse,
    PromptAnswer,
    PromptSubmission,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["playground"])


@router.post(
    "/prompt",
    response_model=PromptAnswer,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed submission"},
        503: {"model": ErrorResponse, "description": "Broker shutting down"},
        504: {"model": ErrorResponse, "description": "No answer in time"},
    },
)
async def submit_prompt(
    submission: Optional[PromptSubmission] = Body(default=None),
    engine: RendezvousEngineInterface = Depends(get_engine),
    http_config: HttpConfig = Depends(get_http_config),
    limiter: anyio.CapacityLimiter = Depends(get_submit_limiter),
):
    """Submit a prompt and wait for the assistant's answer.

    The wait runs on a worker thread drawn from a limiter reserved for
    submitters, so suspended submitters never starve other routes of
    threads and never stall the event loop.

    Parameters
    ----------
    submission : Optional[PromptSubmission]
        Action, subject, category, prompt and context. An empty body is
        accepted and treated as an empty submission.

    Returns
    -------
    PromptAnswer
        The content posted by the consumer for this prompt

    Raises
    ------
    HTTPException
        503 Service Unavailable if the broker is shutting down
        504 Gateway Timeout if submit_timeout_seconds is configured and
        no answer arrives in time
    """
    submission = submission or PromptSubmission()

    try:
        handle = engine.open_submission(
            submission.action,
            submission.subject_id,
            submission.category,
            prompt=submission.resolved_prompt(),
            context=submission.context,
        )
        answer = await anyio.to_thread.run_sync(
            handle.wait, http_config.submit_timeout_seconds, limiter=limiter
        )

        # A resolve may land between the timeout and the detach; if the
        # waiter is already gone the answer has been delivered.
        if answer is None and not engine.detach(handle.request_id):
            answer = handle.wait(timeout=0)
    except BrokerClosedError:
        raise HTTPException(status_code=503, detail=ErrorMessages.BROKER_CLOSED)

    if answer is None:
        logger.warning(
            f"Prompt {handle.request_id} timed out after "
            f"{http_config.submit_timeout_seconds}s"
        )
        raise HTTPException(
            status_code=504, detail=ErrorMessages.SUBMISSION_TIMEOUT
        )

    return PromptAnswer(content=answer.content)


@router.get("/status", response_model=BrokerStatusResponse)
async def get_status(
    engine: RendezvousEngineInterface = Depends(get_engine),
):
    """Report whether a consumer is attached and a prompt is pending.

    Served on the event loop; the engine only takes its store lock for the
    duration of a snapshot.
    """
    status = engine.status()
    return BrokerStatusResponse(
        connected=status.consumer_connected,
        has_pending_prompt=status.has_pending_request,
        pending_id=status.pending_request_id,
        waiting_consumers=status.waiting_consumers,
        waiting_submitters=status.waiting_submitters,
    )
