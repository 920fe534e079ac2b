"""CompletenessAgent: asks whether a data question can be answered as written."""

import logging

from stella.agents.base import LLMAgent
from stella.models.agent import AgentError, AgentInput, IncompleteQuery

logger = logging.getLogger(__name__)

NEEDS_INFO_PREFIX = "NEEDS_INFO:"

CLARIFICATION_TEMPLATE = (
    "I'd be happy to help you with that! To proceed, I need some additional information:"
    "\n\n{needed}\n\nCould you please provide these details?"
)


def clarification_message(needed: str) -> str:
    return CLARIFICATION_TEMPLATE.format(needed=needed.strip())


class CompletenessAgent(LLMAgent):
    """
    Returns None when the question is complete, otherwise the missing details.

    Any failure is treated as complete so the common case is never blocked.
    """

    error_class = IncompleteQuery

    def __init__(self, llm_provider=None):
        super().__init__(name="CompletenessAgent", llm_provider=llm_provider)

    async def execute(self, input: AgentInput) -> str | None:
        reply = await self._ask(
            "agents/completeness_check.md", query=input.query, mentions=input.mentions
        )
        needed = self.parse(reply)
        if needed:
            logger.info(f"[{self.name}] Query needs more information: {needed}")
        return needed

    @staticmethod
    def parse(reply: str) -> str | None:
        text = reply.strip()
        if text.upper().startswith(NEEDS_INFO_PREFIX):
            needed = text[len(NEEDS_INFO_PREFIX) :].strip()
            return needed or "More details about your request"
        return None

    def fallback(self, input: AgentInput, error: AgentError) -> None:
        return None
