"""
Assistant LLM: OpenAI (primary) or Hugging Face (fallback).
OpenAI chat completions are tried first when OPENAI_API_KEY is set, then the HF router when HF_API_KEY is set.
"""

import logging
from typing import Any

import httpx

from app.core.config import (
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    LLM_MAX_TOKENS,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)
from app.core.errors import EmptyResponseError, ServiceUnavailableError
from app.core.session_store import ChatMessage

logger = logging.getLogger(__name__)

# Conversation roles -> chat completion roles
_ROLE_MAP = {"user": "user", "model": "assistant"}


def build_messages(
    system_instruction: str,
    context_prompt: str,
    history: list[ChatMessage],
    user_message: str,
) -> list[dict[str, Any]]:
    """Chat completion messages: system instruction, knowledge context, prior turns, new question."""
    messages: list[dict[str, Any]] = [{"role": "system", "content": system_instruction}]
    if context_prompt:
        messages.append({"role": "system", "content": context_prompt})
    for m in history:
        role = _ROLE_MAP.get(m.role)
        if role and m.content:
            messages.append({"role": role, "content": m.content})
    messages.append({"role": "user", "content": user_message})
    return messages


def _call_openai(messages: list[dict[str, Any]], max_tokens: int) -> str:
    """Call OpenAI chat completions. Returns generated text."""
    from openai import OpenAI

    client = OpenAI(api_key=OPENAI_API_KEY, timeout=LLM_API_TIMEOUT)
    response = client.chat.completions.create(
        model=OPENAI_LLM_MODEL,
        messages=messages,
        max_tokens=max_tokens,
    )
    msg = response.choices[0].message if response.choices else None
    if not msg or not getattr(msg, "content", None):
        return ""
    out = (msg.content or "").strip()
    logger.info("[llm:openai] OUT response_len=%d", len(out))
    return out


def _call_hf(messages: list[dict[str, Any]], max_tokens: int) -> str:
    """Call Hugging Face router chat completions. Returns generated text; raises on transport or HTTP errors."""
    headers = {"Authorization": f"Bearer {HF_API_KEY}", "Content-Type": "application/json"}
    payload = {
        "model": HF_LLM_MODEL,
        "messages": messages,
        "max_tokens": max_tokens,
    }
    try:
        with httpx.Client(timeout=LLM_API_TIMEOUT) as client:
            response = client.post(HF_CHAT_URL, json=payload, headers=headers)
        if response.status_code != 200:
            raise ServiceUnavailableError(f"HF LLM error {response.status_code}: {response.text[:200]}")
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise ServiceUnavailableError(f"HF request failed: {e}") from e
    choices = data.get("choices") or []
    if choices and isinstance(choices[0], dict):
        msg = choices[0].get("message") or {}
        out = (msg.get("content") or "").strip()
        logger.info("[llm:hf] OUT response_len=%d", len(out))
        return out
    return ""


def generate_reply(messages: list[dict[str, Any]], max_tokens: int = LLM_MAX_TOKENS) -> str:
    """
    Generate the assistant reply. Tries OpenAI when OPENAI_API_KEY is set, then Hugging Face
    when HF_API_KEY is set.
    Raises EmptyResponseError when a provider answered with no text, and
    ServiceUnavailableError when none could be reached.
    """
    logger.info("[llm] IN  messages=%d max_tokens=%d", len(messages), max_tokens)
    if not OPENAI_API_KEY and not HF_API_KEY:
        raise ServiceUnavailableError("No LLM provider configured (set OPENAI_API_KEY or HF_API_KEY).")
    answered_empty = False
    if OPENAI_API_KEY:
        try:
            out = _call_openai(messages, max_tokens)
        except Exception as e:
            logger.warning("[llm:openai] request failed: %s", e)
        else:
            if out:
                return out
            answered_empty = True
            logger.info("[llm] OpenAI returned empty")
    if HF_API_KEY:
        try:
            out = _call_hf(messages, max_tokens)
        except ServiceUnavailableError as e:
            logger.warning("[llm:hf] %s", e.message)
        else:
            if out:
                return out
            answered_empty = True
            logger.info("[llm] Hugging Face returned empty")
    if answered_empty:
        raise EmptyResponseError("The language model returned an empty response.")
    raise ServiceUnavailableError("The language model did not return a response.")
