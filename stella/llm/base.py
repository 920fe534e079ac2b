"""
Base LLM Provider

Every provider exposes one coroutine, `generate()`, which turns a request
into text. SDK failures, timeouts and empty completions all surface as
ModelError so agents handle a single exception type.
"""

import logging
from abc import ABC, abstractmethod

from stella.llm.models import LLMRequest, LLMResponse

logger = logging.getLogger(__name__)


class ModelError(Exception):
    """Model call failed (quota, network, malformed or empty response)."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(f"[{provider}] {message}")


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Subclasses implement `_complete()` against their SDK; `generate()` applies
    defaults, logs, and normalizes failures.

    Attributes:
        provider_name: Unique identifier for this provider
        model: Default model name
        temperature: Default sampling temperature
        max_tokens: Default maximum tokens to generate
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        provider_name: str,
        model: str,
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        self.provider_name = provider_name
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

        logger.info(
            f"Initialized {provider_name} provider with model: {model}",
            extra={"provider": provider_name, "model": model, "temperature": temperature},
        )

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """
        Generate a completion.

        Raises:
            ModelError: on any provider failure or an empty completion
        """
        request = self._apply_defaults(request)
        self._log_request(request)

        try:
            response = await self._complete(request)
        except ModelError:
            raise
        except Exception as e:
            logger.error(f"{self.provider_name} call failed: {e}")
            raise ModelError(self.provider_name, str(e)) from e

        if not response.content.strip():
            raise ModelError(self.provider_name, "Model returned an empty response")

        self._log_response(response)
        return response

    @abstractmethod
    async def _complete(self, request: LLMRequest) -> LLMResponse:
        """Call the provider SDK. Defaults are already applied to `request`."""

    def _apply_defaults(self, request: LLMRequest) -> LLMRequest:
        updates = {}
        if request.temperature is None:
            updates["temperature"] = self.temperature
        if request.max_tokens is None:
            updates["max_tokens"] = self.max_tokens
        if request.model is None:
            updates["model"] = self.model
        return request.model_copy(update=updates) if updates else request

    def _log_request(self, request: LLMRequest) -> None:
        logger.debug(
            f"{self.provider_name} request",
            extra={
                "provider": self.provider_name,
                "model": request.model,
                "message_count": len(request.messages),
                "max_tokens": request.max_tokens,
            },
        )

    def _log_response(self, response: LLMResponse) -> None:
        logger.debug(
            f"{self.provider_name} response",
            extra={
                "provider": self.provider_name,
                "model": response.model,
                "total_tokens": response.usage.total_tokens,
                "finish_reason": response.finish_reason,
            },
        )
