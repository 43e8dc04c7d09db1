"""
API route aggregator: register endpoints; no logic, only delegate to services.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from app.core.session_store import SessionRegistry, get_registry
from app.schemas.chat import (
    ChatRequest,
    ChatResponse,
    ClassifyRequest,
    ClassifyResponse,
    ResetRequest,
    ResetResponse,
    SessionStatsResponse,
)
from app.services.chat_service import handle_message, reset_session
from app.services.classifier import score
from app.services.context_builder import get_contextual_knowledge

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "AU Smart Assistant backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Chat ---

@router.post(
    "/chat",
    response_model=ChatResponse,
    tags=["chat"],
    summary="Send a message to the AU assistant",
    description="Classifies the message, injects matching AU knowledge, and returns the model reply. A session is created when session_id is omitted.",
)
def post_chat(body: ChatRequest, registry: SessionRegistry = Depends(get_registry)) -> ChatResponse:
    logger.info("[api:post_chat] IN  message_len=%d session_id=%s", len(body.message), body.session_id)
    try:
        result = handle_message(body.message, session_id=body.session_id, registry=registry)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.exception("Chat processing failed")
        raise HTTPException(status_code=500, detail="Failed to process chat message") from e
    return ChatResponse(
        response=result.response,
        session_id=result.session_id,
        timestamp=result.timestamp,
        conversation_stats=result.conversation_stats,
        categories=result.categories,
    )


@router.delete(
    "/chat",
    response_model=ResetResponse,
    tags=["chat"],
    summary="Reset a conversation",
    description="Clear the session's history back to the system instruction. 404 if the session does not exist.",
)
def delete_chat(body: ResetRequest, registry: SessionRegistry = Depends(get_registry)) -> ResetResponse:
    if not reset_session(body.session_id, registry=registry):
        raise HTTPException(status_code=404, detail="Session not found")
    logger.info("[api:delete_chat] reset session_id=%s", body.session_id[:16])
    return ResetResponse(message="Conversation reset successfully", session_id=body.session_id)


@router.get("/sessions/stats", response_model=SessionStatsResponse, tags=["chat"], summary="Session registry stats")
def get_session_stats(registry: SessionRegistry = Depends(get_registry)) -> SessionStatsResponse:
    return SessionStatsResponse(**registry.get_stats())


# --- Knowledge ---

@router.post(
    "/knowledge/classify",
    response_model=ClassifyResponse,
    tags=["knowledge"],
    summary="Classify a query into knowledge categories",
    description="Returns the categories injected for this query, per-category keyword scores, and the prompt token estimate. No LLM call.",
)
def post_classify(body: ClassifyRequest) -> ClassifyResponse:
    bundle = get_contextual_knowledge(body.query)
    return ClassifyResponse(
        categories=sorted(c.value for c in bundle.categories),
        scores={c.value: s for c, s in score(body.query).items()},
        token_estimate=bundle.token_estimate,
    )
