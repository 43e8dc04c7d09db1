"""
Application errors for clean API error handling.

Use ServiceUnavailableError when the LLM is misconfigured or unreachable so the
chat service can fall back to a user-facing apology instead of failing the request.
"""


class ServiceUnavailableError(Exception):
    """Raised when a required service (e.g. the LLM provider) is unavailable or misconfigured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class KnowledgeLoadError(Exception):
    """Raised when a knowledge record cannot be read or validated. Contained by the loader."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"{name}: {reason}")


class EmptyResponseError(ServiceUnavailableError):
    """Raised when a provider answered but returned no text."""
