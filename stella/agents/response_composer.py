"""
ResponseComposerAgent: summarizes query rows as a natural-language answer.

Zero rows never reach the model. When the model call fails, a deterministic
summary built only from the returned rows is used instead.
"""

import json
import logging
from typing import Any

from pydantic import Field

from stella.agents.base import LLMAgent
from stella.models.agent import AgentError, AgentInput, CompositionError

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = (
    "I searched through the database but didn't find any results matching your query. "
    "This might mean:\n\n"
    "• The data doesn't exist yet\n"
    "• The search criteria were too specific\n"
    "• There might be a different way to phrase your question\n\n"
    "Would you like to try a different approach?"
)


class CompositionInput(AgentInput):
    rows: list[dict[str, Any]] = Field(default_factory=list)
    total_rows: int | None = None
    subject: str = ""

    @property
    def row_total(self) -> int:
        return len(self.rows) if self.total_rows is None else self.total_rows


def _to_json(rows: list[dict[str, Any]]) -> str:
    return json.dumps(rows, indent=2, default=str)


class ResponseComposerAgent(LLMAgent):
    error_class = CompositionError

    def __init__(self, llm_provider=None):
        super().__init__(name="ResponseComposerAgent", llm_provider=llm_provider)
        self.sample_rows = self.config.pipeline.composer_sample_rows

    async def execute(self, input: CompositionInput) -> str:
        if not input.rows:
            return NO_RESULTS_MESSAGE

        sample = input.rows[: self.sample_rows]
        return await self._ask(
            "agents/response_composer.md",
            query=input.query,
            subject=input.subject or input.query,
            total_rows=input.row_total,
            sample_size=len(sample),
            rows_json=_to_json(sample),
        )

    def fallback(self, input: CompositionInput, error: AgentError) -> str:
        return self.summarize(input)

    def summarize(self, input: CompositionInput) -> str:
        """Plain rendering of the rows, used when the model is unavailable."""
        if not input.rows:
            return NO_RESULTS_MESSAGE

        subject = input.subject or input.query
        total = input.row_total
        if total == 1:
            lines = [f"Found 1 result for your query about {subject}:", ""]
            lines.extend(f"{key}: {value}" for key, value in input.rows[0].items())
            return "\n".join(lines)

        sample = input.rows[: self.sample_rows]
        return (
            f"Found {total} results for your query about {subject}.\n\n"
            f"```json\n{_to_json(sample)}\n```"
        )
