"""Pydantic v2 request/response schemas for the completion proxy."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ChatTurn(BaseModel):
    """One turn of the conversation, forwarded as-is (extra keys such as ``name`` included)."""

    model_config = ConfigDict(extra="allow")

    role: str = Field(..., min_length=1)  # "user", "assistant", ...
    content: str | list[dict[str, Any]] | None = None


class ChatRequest(BaseModel):
    """A chat turn plus the GPT's instructions and retrieved context."""

    messages: list[ChatTurn] | None = None  # emptiness checked by the handler
    instructions: str | None = None
    context: str | None = None
    model: str | None = None  # None = settings.default_completion_model


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ChatResponse(BaseModel):
    """Successful completion."""

    success: bool = True
    message: str | None
    model: str
    usage: dict[str, Any] = Field(default_factory=dict)


class ChatErrorResponse(BaseModel):
    """Failed completion, with the upstream error message in ``details``."""

    error: str
    details: str
    timestamp: str | None = None
