"""Pydantic models for REST API requests and responses."""

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, Field


class PromptSubmission(BaseModel):
    """Request model for prompt submission.

    Field names follow the browser's camelCase convention. The playground's
    graph vocabulary (nodeId, graphType) is accepted as well.
    """

    action: Optional[str] = Field(
        default=None, description="Action requested by the user"
    )
    subject_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("subjectId", "nodeId", "subject_id"),
        description="Identifier of the subject being acted on",
    )
    category: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("category", "graphType"),
        description="Classification of the subject",
    )
    prompt: Optional[str] = Field(
        default=None, description="Primary text; falls back to context.prompt"
    )
    context: Optional[Dict[str, Any]] = Field(
        default=None, description="Free-form context forwarded verbatim"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "action": "summarize",
                "subjectId": "n1",
                "category": "mindmap",
                "prompt": "Summarize this branch",
                "context": {"selection": ["n1", "n2"]},
            }
        }
    }

    def resolved_prompt(self) -> str:
        """Return prompt, else context["prompt"], else an empty string."""
        if self.prompt:
            return self.prompt
        context_prompt = (self.context or {}).get("prompt")
        if isinstance(context_prompt, str):
            return context_prompt
        return ""


class PromptAnswer(BaseModel):
    """Response model for a resolved prompt."""

    content: str = Field(..., description="Answer text, markdown permitted")


class BrokerStatusResponse(BaseModel):
    """Response model for status queries."""

    connected: bool = Field(..., description="Whether a consumer is attached")
    has_pending_prompt: bool = Field(..., serialization_alias="hasPendingPrompt")
    pending_id: Optional[str] = Field(
        default=None, serialization_alias="pendingId"
    )
    waiting_consumers: int = Field(
        default=0, serialization_alias="waitingConsumers"
    )
    waiting_submitters: int = Field(
        default=0, serialization_alias="waitingSubmitters"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "connected": True,
                "hasPendingPrompt": True,
                "pendingId": "0c7f7d0e-3f0e-4f43-9d8a-1c2d52b0c0a1",
                "waitingConsumers": 0,
                "waitingSubmitters": 1,
            }
        }
    }


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
