"""
Google LLM Provider

Gemini implementation of BaseLLMProvider using google-generativeai.
"""

import logging
from typing import Any

import google.generativeai as genai

from stella.llm.base import BaseLLMProvider
from stella.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class GoogleProvider(BaseLLMProvider):
    """Gemini models (1.5 Pro / Flash)."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-pro",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 30,
    ):
        super().__init__(
            provider_name="google",
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
        genai.configure(api_key=api_key)

    async def _complete(self, request: LLMRequest) -> LLMResponse:
        client = genai.GenerativeModel(request.model)

        # Gemini takes a single flattened prompt
        prompt = "\n\n".join(
            f"{msg.role.capitalize()}: {msg.content}" for msg in request.messages
        )

        response = await client.generate_content_async(
            prompt,
            generation_config=genai.types.GenerationConfig(
                temperature=request.temperature,
                max_output_tokens=request.max_tokens,
            ),
            request_options={"timeout": self.timeout},
        )

        usage = getattr(response, "usage_metadata", None)
        return LLMResponse(
            content=self._extract_text(response),
            model=request.model,
            usage=LLMUsage(
                prompt_tokens=getattr(usage, "prompt_token_count", 0) or 0,
                completion_tokens=getattr(usage, "candidates_token_count", 0) or 0,
                total_tokens=getattr(usage, "total_token_count", 0) or 0,
            ),
            finish_reason=self._finish_reason(response),
            provider="google",
        )

    @staticmethod
    def _extract_text(response: Any) -> str:
        # .text raises when the candidate was blocked
        try:
            text = response.text
        except ValueError:
            return ""
        return text if isinstance(text, str) else ""

    @staticmethod
    def _finish_reason(response: Any) -> str:
        candidates = getattr(response, "candidates", None) or []
        raw = str(getattr(candidates[0], "finish_reason", "") if candidates else "").lower()
        if "max_tokens" in raw:
            return "length"
        if "safety" in raw or "recitation" in raw:
            return "content_filter"
        return "stop"
