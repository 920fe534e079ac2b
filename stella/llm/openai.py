"""
OpenAI LLM Provider

Chat-completions implementation of BaseLLMProvider (GPT-4o, GPT-4o-mini).
"""

import logging

from openai import AsyncOpenAI

from stella.llm.base import BaseLLMProvider
from stella.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)

_FINISH_REASONS = {"stop": "stop", "length": "length", "content_filter": "content_filter"}


class OpenAIProvider(BaseLLMProvider):
    """OpenAI chat models through the official async SDK."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        super().__init__(
            provider_name="openai",
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
        self.client = AsyncOpenAI(api_key=api_key, timeout=float(timeout))

    async def _complete(self, request: LLMRequest) -> LLMResponse:
        response = await self.client.chat.completions.create(
            model=request.model,
            messages=[{"role": msg.role, "content": msg.content} for msg in request.messages],
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )

        choice = response.choices[0]
        usage = response.usage
        return LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            usage=LLMUsage(
                prompt_tokens=usage.prompt_tokens,
                completion_tokens=usage.completion_tokens,
                total_tokens=usage.total_tokens,
            )
            if usage
            else LLMUsage(),
            finish_reason=_FINISH_REASONS.get(choice.finish_reason, "stop"),
            provider="openai",
            metadata={"id": response.id},
        )
