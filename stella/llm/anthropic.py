"""
Anthropic LLM Provider

Messages-API implementation of BaseLLMProvider for Claude models.
"""

import logging

from anthropic import AsyncAnthropic

from stella.llm.base import BaseLLMProvider
from stella.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseLLMProvider):
    """Claude models through the anthropic SDK."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        super().__init__(
            provider_name="anthropic",
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
        self.client = AsyncAnthropic(api_key=api_key, timeout=float(timeout))

    async def _complete(self, request: LLMRequest) -> LLMResponse:
        # Anthropic takes the system prompt as a separate argument
        system_parts = [m.content for m in request.messages if m.role == "system"]
        messages = [
            {"role": m.role, "content": m.content} for m in request.messages if m.role != "system"
        ]

        kwargs = {}
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)

        response = await self.client.messages.create(
            model=request.model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            messages=messages,
            **kwargs,
        )

        text = "".join(block.text for block in response.content if block.type == "text")
        return LLMResponse(
            content=text,
            model=response.model,
            usage=LLMUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            ),
            finish_reason="length" if response.stop_reason == "max_tokens" else "stop",
            provider="anthropic",
            metadata={"id": response.id},
        )
