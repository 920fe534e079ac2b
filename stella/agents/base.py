"""
Base Agent Framework

Abstract base class for every stage of the question pipeline. Calling an
agent never raises for a stage failure: the outcome comes back as a
StageResult, and recoverable failures carry the agent's fallback value.

Usage:
    class MyAgent(BaseAgent):
        error_class = CompositionError

        async def execute(self, input: AgentInput) -> str:
            return await self._ask("agents/my_prompt.md", query=input.query)

        def fallback(self, input: AgentInput, error: AgentError) -> str:
            return "default answer"
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Literal

from stella.config import get_settings
from stella.llm.base import BaseLLMProvider
from stella.llm.factory import LLMProviderFactory
from stella.llm.models import LLMRequest
from stella.models.agent import AgentError, AgentInput, AgentMetadata, StageResult
from stella.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "system/assistant.md"


class BaseAgent(ABC):
    """
    Abstract base class for pipeline agents.

    Attributes:
        name: Unique identifier used in logs and errors
        error_class: AgentError subclass unexpected exceptions are wrapped in;
            its recoverability decides between fallback and fatal
    """

    error_class: type[AgentError] = AgentError

    def __init__(self, name: str):
        self.name = name
        self.config = get_settings()

    @abstractmethod
    async def execute(self, input: AgentInput) -> Any:
        """
        Run the stage.

        Raises:
            AgentError: On stage failure
        """

    def fallback(self, input: AgentInput, error: AgentError) -> Any:
        """Safe default returned when a recoverable error occurs."""
        return None

    async def __call__(self, input: AgentInput) -> StageResult:
        """Run execute() with timing, logging and error classification."""
        start_time = time.perf_counter()
        metadata = AgentMetadata(agent_name=self.name)

        logger.debug(f"Starting {self.name}", extra={"agent": self.name, "query": input.query[:100]})

        try:
            value = await self.execute(input)
        except Exception as exc:
            error = (
                exc
                if isinstance(exc, AgentError)
                else self.error_class(self.name, f"Unexpected error: {exc}")
            )
            metadata.duration_ms = (time.perf_counter() - start_time) * 1000
            metadata.error = error.message

            if error.recoverable:
                logger.warning(
                    f"{self.name} recovered from {type(error).__name__}: {error.message}",
                    extra={"agent": self.name, "context": error.context},
                )
                return StageResult.recovered(self.fallback(input, error), error, metadata)

            logger.error(
                f"{self.name} failed: {error.message}",
                extra={"agent": self.name, "context": error.context},
                exc_info=not isinstance(exc, AgentError),
            )
            return StageResult.fatal(error, metadata)

        metadata.duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Completed {self.name}",
            extra={"agent": self.name, "duration_ms": metadata.duration_ms},
        )
        return StageResult.success(value, metadata)


class LLMAgent(BaseAgent):
    """Agent backed by a model call rendered from a prompt template."""

    provider_role = "default"
    model_type: Literal["main", "mini"] = "mini"

    def __init__(self, name: str, llm_provider: BaseLLMProvider | None = None):
        super().__init__(name)
        if llm_provider is None:
            self.llm = LLMProviderFactory.create_agent_provider(
                self.provider_role, self.config.llm, model_type=self.model_type
            )
        else:
            self.llm = llm_provider
        self.prompts = PromptLoader()

    async def _ask(self, prompt_path: str, **variables: Any) -> str:
        """
        Render a prompt, send it with the assistant persona, return stripped text.

        Raises:
            ModelError: If the model call fails
        """
        metadata = self.prompts.get_metadata(prompt_path)
        request = LLMRequest.from_prompt(
            self.prompts.render(prompt_path, **variables),
            system=self.prompts.load(SYSTEM_PROMPT),
            max_tokens=metadata.get("max_tokens"),
            temperature=metadata.get("temperature"),
        )
        response = await self.llm.generate(request)
        return response.content.strip()
