"""ConversationalAgent: small-talk replies that never touch the database."""

import logging

from stella.agents.base import LLMAgent
from stella.models.agent import AgentError, AgentInput, CompositionError

logger = logging.getLogger(__name__)

GREETING = (
    "Hello! I'm here to help with your sales dashboard. "
    "Ask me about products, sales, transactions, and more!"
)


class ConversationalAgent(LLMAgent):
    """Replies to greetings, thanks and general chat in the assistant persona."""

    error_class = CompositionError

    def __init__(self, llm_provider=None):
        super().__init__(name="ConversationalAgent", llm_provider=llm_provider)
        self.history_turns = self.config.pipeline.conversational_history_turns

    async def execute(self, input: AgentInput) -> str:
        history = input.history[-self.history_turns :] if self.history_turns else []
        return await self._ask("agents/conversational.md", query=input.query, history=history)

    def fallback(self, input: AgentInput, error: AgentError) -> str:
        return GREETING
