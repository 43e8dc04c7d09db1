"""Schemas for the chat and knowledge endpoints."""

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request body for POST /chat. History is stored server-side by session_id."""

    message: str = Field(..., min_length=1, description="User message for the assistant.")
    session_id: str | None = Field(None, description="Session ID; a new one is generated when omitted.")


class ConversationStats(BaseModel):
    message_count: int = Field(..., description="Messages in the session, system instruction included.")
    estimated_tokens: int = Field(..., description="Rough token count of the stored history.")


class ChatResponse(BaseModel):
    """Response for POST /chat."""

    response: str = Field(..., description="Assistant reply.")
    session_id: str = Field(..., description="Session ID to send with the next message.")
    timestamp: str = Field(..., description="ISO 8601 time the reply was produced (UTC).")
    conversation_stats: ConversationStats
    categories: list[str] = Field(default_factory=list, description="Knowledge categories injected for this message.")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "response": "Undergraduate tuition is 112,000-350,000 THB per year.",
                    "session_id": "session_1760000000000_k3j9x0a2b",
                    "timestamp": "2025-10-09T08:00:00+00:00",
                    "conversation_stats": {"message_count": 3, "estimated_tokens": 62},
                    "categories": ["tuitions"],
                }
            ]
        }
    }


class ResetRequest(BaseModel):
    """Request body for DELETE /chat."""

    session_id: str = Field(..., min_length=1, description="Session whose history should be cleared.")


class ResetResponse(BaseModel):
    message: str
    session_id: str


class ClassifyRequest(BaseModel):
    query: str = Field("", description="Text to classify.")


class ClassifyResponse(BaseModel):
    """Knowledge categories, per-category keyword scores, and prompt size for a query."""

    categories: list[str]
    scores: dict[str, float]
    token_estimate: int


class SessionStatsResponse(BaseModel):
    active_sessions: int
    timeout_seconds: int
    max_exchanges: int
