"""
LLM Provider Module

Usage:
    from stella.config import get_settings
    from stella.llm import LLMProviderFactory, LLMRequest

    provider = LLMProviderFactory.create_default_provider(get_settings().llm, model_type="mini")
    response = await provider.generate(LLMRequest.from_prompt("Hello!"))
    print(response.content)
"""

from stella.llm.anthropic import AnthropicProvider
from stella.llm.base import BaseLLMProvider, ModelError
from stella.llm.factory import LLMProviderFactory
from stella.llm.google import GoogleProvider
from stella.llm.models import LLMMessage, LLMRequest, LLMResponse, LLMUsage
from stella.llm.openai import OpenAIProvider

__all__ = [
    "BaseLLMProvider",
    "ModelError",
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "LLMProviderFactory",
    "OpenAIProvider",
    "AnthropicProvider",
    "GoogleProvider",
]
