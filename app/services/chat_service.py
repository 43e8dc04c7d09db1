"""
Chat: one user message in, one assistant reply out.

Flow: session lookup → classify + build knowledge context → LLM → record exchange.
Called by the API; no HTTP here.
"""

import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.agent.llm import build_messages, generate_reply
from app.core.config import EMPTY_REPLY, FALLBACK_REPLY
from app.core.errors import EmptyResponseError, ServiceUnavailableError
from app.core.session_store import SessionRegistry, get_registry
from app.services.context_builder import get_contextual_knowledge
from app.services.classifier import ordered

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclass
class ChatResult:
    response: str
    session_id: str
    timestamp: str
    conversation_stats: dict[str, int]
    categories: list[str] = field(default_factory=list)


def new_session_id() -> str:
    """session_<epoch ms>_<9 base36 chars>"""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"session_{int(time.time() * 1000)}_{suffix}"


def handle_message(
    message: str,
    session_id: str | None = None,
    registry: SessionRegistry | None = None,
) -> ChatResult:
    """Answer one message within its session, creating the session when needed."""
    if not message or not str(message).strip():
        raise ValueError("message is required")
    registry = registry or get_registry()
    sid = session_id or new_session_id()
    logger.info("[chat:handle_message] IN  session_id=%s message_len=%d", sid[:16], len(message))

    conversation = registry.get_or_create(sid)
    bundle = get_contextual_knowledge(message)
    messages = build_messages(
        conversation.messages[0].content, bundle.prompt, conversation.history(), message
    )
    try:
        reply = generate_reply(messages)
    except EmptyResponseError:
        logger.warning("[chat:handle_message] LLM returned an empty reply")
        reply = EMPTY_REPLY
    except ServiceUnavailableError as e:
        logger.warning("[chat:handle_message] LLM unavailable: %s", e.message)
        reply = FALLBACK_REPLY

    registry.record_exchange(sid, conversation, message, reply)
    stats = conversation.stats()
    categories = [c.value for c in ordered(bundle.categories)]
    logger.info(
        "[chat:handle_message] OUT categories=%s reply_len=%d message_count=%d",
        categories, len(reply), stats["message_count"],
    )
    return ChatResult(
        response=reply,
        session_id=sid,
        timestamp=datetime.now(timezone.utc).isoformat(),
        conversation_stats=stats,
        categories=categories,
    )


def reset_session(session_id: str, registry: SessionRegistry | None = None) -> bool:
    """Clear a session's history. False when the session does not exist."""
    return (registry or get_registry()).reset(session_id)
