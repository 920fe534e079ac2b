"""
ClassifierAgent: routes a question to the conversational, catalog or SQL path.

The model is asked for a single label. Replies are matched by substring in a
fixed priority order so a reply naming several labels resolves the same way
every time. When the call fails or no label is recognised, a keyword scan of
the question decides, leaning towards the data path.
"""

import logging

from stella.agents.base import LLMAgent
from stella.models.agent import AgentError, AgentInput, ClassificationError, IntentLabel

logger = logging.getLogger(__name__)

# (label, aliases) from most to least specific
THREE_TIER_LABELS: tuple[tuple[IntentLabel, tuple[str, ...]], ...] = (
    ("operation_call", ("operation_call", "function_call")),
    ("ad_hoc_query", ("ad_hoc_query", "sql_query")),
    ("conversational", ("conversational",)),
)
TWO_TIER_LABELS: tuple[tuple[IntentLabel, tuple[str, ...]], ...] = (
    ("data_query", ("data_query", "data")),
    ("conversational", ("conversational",)),
)

DATA_KEYWORDS = (
    "show",
    "list",
    "what",
    "how many",
    "total",
    "count",
    "products",
    "sales",
    "revenue",
    "transactions",
    "companies",
    "customers",
    "admins",
    "stock",
    "inventory",
)


def contains_data_keyword(query: str) -> bool:
    lowered = query.lower()
    return any(keyword in lowered for keyword in DATA_KEYWORDS)


class ClassifierAgent(LLMAgent):
    """Intent classification with a keyword safety net."""

    error_class = ClassificationError
    provider_role = "classifier"

    def __init__(self, llm_provider=None, routing_mode: str | None = None):
        super().__init__(name="ClassifierAgent", llm_provider=llm_provider)
        self.routing_mode = routing_mode or self.config.pipeline.routing_mode
        self.history_turns = self.config.pipeline.classifier_history_turns

    @property
    def labels(self) -> tuple[tuple[IntentLabel, tuple[str, ...]], ...]:
        return TWO_TIER_LABELS if self.routing_mode == "two_tier" else THREE_TIER_LABELS

    @property
    def data_label(self) -> IntentLabel:
        """Label used when the keyword fallback finds a data word."""
        return "data_query" if self.routing_mode == "two_tier" else "ad_hoc_query"

    async def execute(self, input: AgentInput) -> IntentLabel:
        prompt = (
            "agents/intent_classifier_two_tier.md"
            if self.routing_mode == "two_tier"
            else "agents/intent_classifier.md"
        )
        history = input.history[-self.history_turns :] if self.history_turns else []

        try:
            reply = await self._ask(prompt, query=input.query, history=history)
        except Exception as e:
            raise ClassificationError(self.name, f"Intent model call failed: {e}") from e

        label = self.parse_label(reply)
        if label is None:
            raise ClassificationError(
                self.name, "Unrecognised classification reply", context={"reply": reply[:200]}
            )

        logger.info(f"[{self.name}] Classified as {label}", extra={"intent": label})
        return label

    def parse_label(self, reply: str) -> IntentLabel | None:
        """First label (by priority) whose name or alias appears in the reply."""
        lowered = reply.strip().lower()
        for label, aliases in self.labels:
            if any(alias in lowered for alias in aliases):
                return label
        return None

    def fallback(self, input: AgentInput, error: AgentError) -> IntentLabel:
        label = self.keyword_label(input.query)
        logger.info(f"[{self.name}] Keyword fallback chose {label}", extra={"intent": label})
        return label

    def keyword_label(self, query: str) -> IntentLabel:
        return self.data_label if contains_data_keyword(query) else "conversational"
