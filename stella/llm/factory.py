"""
LLM Provider Factory

Creates provider instances from LLMSettings, honouring per-agent overrides.
"""

import logging
from typing import Literal

from stella.config import LLMSettings
from stella.llm.anthropic import AnthropicProvider
from stella.llm.base import BaseLLMProvider
from stella.llm.google import GoogleProvider
from stella.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)

ModelType = Literal["main", "mini"]


class LLMProviderFactory:
    """Factory for configured LLM providers."""

    PROVIDERS = {
        "openai": OpenAIProvider,
        "anthropic": AnthropicProvider,
        "google": GoogleProvider,
    }

    @staticmethod
    def create_provider(
        provider_type: str,
        config: LLMSettings,
        model_type: ModelType = "main",
    ) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Args:
            provider_type: "openai", "anthropic" or "google"
            config: LLM configuration settings
            model_type: main model (SQL synthesis) or mini model (everything else)

        Raises:
            ValueError: If the provider is unknown or its API key is missing
        """
        provider_cls = LLMProviderFactory.PROVIDERS.get(provider_type)
        if provider_cls is None:
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Available providers: {list(LLMProviderFactory.PROVIDERS)}"
            )

        api_key = getattr(config, f"{provider_type}_api_key")
        if not api_key:
            raise ValueError(f"{provider_type} API key is required but not configured")

        suffix = "_mini" if model_type == "mini" else ""
        model = getattr(config, f"{provider_type}_model{suffix}")

        logger.info(
            f"Creating {provider_type} provider with {model_type} model",
            extra={"provider": provider_type, "model": model},
        )
        return provider_cls(
            api_key=api_key,
            model=model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )

    @staticmethod
    def create_default_provider(
        config: LLMSettings,
        model_type: ModelType = "main",
    ) -> BaseLLMProvider:
        """Create provider using default_provider from config."""
        return LLMProviderFactory.create_provider(config.default_provider, config, model_type)

    @staticmethod
    def create_agent_provider(
        agent_name: str,
        config: LLMSettings,
        model_type: ModelType = "main",
    ) -> BaseLLMProvider:
        """
        Create provider for a specific agent.

        Uses `<agent_name>_provider` from config when set (e.g. classifier_provider),
        otherwise default_provider.
        """
        override = getattr(config, f"{agent_name}_provider", None)
        provider_type = override or config.default_provider

        logger.debug(
            f"Creating provider for {agent_name} agent",
            extra={"agent": agent_name, "provider": provider_type, "has_override": bool(override)},
        )
        return LLMProviderFactory.create_provider(provider_type, config, model_type)
