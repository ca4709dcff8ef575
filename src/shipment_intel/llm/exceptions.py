"""
Custom exceptions for the LLM client layer and the AI fallback.

Client errors are structured so that the AI classification service can tell
failure modes apart in its logs. None of them reach the orchestrator: the
service converts every failure into AIUnavailableError, which the
orchestrator treats as "use the pattern result".
"""


class LLMClientError(Exception):
    """
    Base exception for all LLM client errors.

    All LLM-specific exceptions inherit from this to allow catching
    any LLM-related error with a single except clause.
    """
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class LLMConnectionError(LLMClientError):
    """
    Raised when unable to connect to the LLM inference server.

    Includes network errors and DNS failures.
    """
    pass


class LLMTimeoutError(LLMConnectionError):
    """Raised when the LLM generation exceeds the client timeout."""
    pass


class LLMGenerationError(LLMClientError):
    """
    Raised when the LLM server returns an error during generation.

    Examples:
    - Server error (5xx)
    - Invalid parameters (4xx)
    - Empty response
    """
    pass


class LLMModelNotAvailableError(LLMGenerationError):
    """Raised when the requested model is not available on the server."""
    pass


class LLMResponseParseError(LLMClientError):
    """
    Raised when the generated text contains no parseable JSON object.

    details carries a preview of the raw content for debugging.
    """
    pass


class AIUnavailableError(Exception):
    """
    AI fallback requested but not usable: disabled, unconfigured, or the
    underlying call failed. Callers degrade to the pattern-only result.
    """
    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
