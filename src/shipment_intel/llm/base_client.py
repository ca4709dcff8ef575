"""
Abstract base client for LLM inference.

Defines the interface the AI classification service talks to. Keeping the
provider behind this class lets the fallback switch inference backends (or
use a test double) without touching classification code.
"""

from abc import ABC, abstractmethod

import structlog

from shipment_intel.models.llm_models import LLMGenerationRequest, LLMGenerationResponse


logger = structlog.get_logger(__name__)


class BaseLLMClient(ABC):
    """
    Abstract base class for LLM inference clients.

    Responsibilities:
    - Send generation requests to the inference server
    - Parse responses into LLMGenerationResponse
    - Map connection errors and timeouts to LLMClientError subclasses

    Does NOT handle:
    - Prompt construction (PromptBuilder)
    - Interpreting the generated JSON (AIClassificationService)

    Connection-level retries MAY be handled internally.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 60,
        max_retries: int = 1,
        **kwargs
    ):
        """
        Initialize base client.

        Args:
            base_url: Base URL of the inference server (e.g., http://ollama:11434)
            timeout: Request timeout in seconds
            max_retries: Attempts for network errors (1 = no retry)
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_retries = max_retries
        self.extra_config = kwargs

        logger.info(
            "Initialized LLM client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout,
            max_retries=max_retries
        )

    @abstractmethod
    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Generate a completion.

        Args:
            request: Provider-independent generation request

        Returns:
            LLMGenerationResponse with generated text and metadata

        Raises:
            LLMConnectionError: Network errors
            LLMTimeoutError: Request exceeded timeout
            LLMGenerationError: Server-side generation errors
            LLMModelNotAvailableError: Model not found
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Lightweight reachability check.

        Returns:
            True if server is healthy, False otherwise (never raises)
        """
        pass

    async def close(self):
        """Release connections. Default implementation does nothing."""
        logger.debug("Closing LLM client", client_class=self.__class__.__name__)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
