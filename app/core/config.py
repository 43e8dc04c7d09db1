"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Knowledge base: directory holding contacts/faculties/history/tuitions JSON.
# Empty means the records bundled with the package (app/knowledge/data).
KNOWLEDGE_DIR: str = os.getenv("KNOWLEDGE_DIR", "").strip()

# Sessions (conversation memory)
SESSION_TIMEOUT_SECONDS: int = int(os.getenv("SESSION_TIMEOUT_SECONDS", "1800"))
MAX_EXCHANGES: int = int(os.getenv("MAX_EXCHANGES", "10"))
SESSION_SWEEP_INTERVAL_SECONDS: int = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "300"))

# Redis (optional). When set, sessions live in Redis with native TTL instead of process memory.
REDIS_URL: str = os.getenv("REDIS_URL", "").strip()

# API timeouts (seconds)
LLM_API_TIMEOUT: float = float(os.getenv("LLM_API_TIMEOUT", "60"))

# Reply length cap for the assistant (answers are meant to be 2-3 sentences)
LLM_MAX_TOKENS: int = int(os.getenv("LLM_MAX_TOKENS", "512"))

# Hugging Face chat (fallback LLM)
HF_API_KEY: str = os.getenv("HF_API_KEY", "").strip()
HF_CHAT_URL: str = "https://router.huggingface.co/v1/chat/completions"

# OpenAI (primary LLM). When set, replies come from OpenAI instead of Hugging Face.
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_LLM_MODEL: str = (
    os.getenv("OPENAI_LLM_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)

# HF LLM (fallback when OPENAI_API_KEY is not set). Router chat completions require a chat model.
HF_LLM_MODEL: str = (
    os.getenv("HF_LLM_MODEL", "meta-llama/Llama-3.2-3B-Instruct").strip()
    or "meta-llama/Llama-3.2-3B-Instruct"
)

# Shown to the user when no model could be reached, or when a model answered with nothing
FALLBACK_REPLY: str = (
    "I apologize, but I'm having trouble processing your request right now. "
    "Please try again or contact AU directly at +66 2 719 1919."
)
EMPTY_REPLY: str = "I apologize, but I couldn't generate a response. Please try again."
