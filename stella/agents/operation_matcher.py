"""
Catalog matching and parameter extraction.

OperationMatcherAgent asks the model for one operation name (or "none") and
only accepts names that exist in the catalog. ParameterExtractorAgent fills
that operation's parameters from the question, coerces them to their
declared types and injects defaults.
"""

import logging
from datetime import date
from typing import Any

from stella.agents.base import LLMAgent
from stella.models.agent import AgentError, AgentInput, LLMError, NoOperationMatch
from stella.operations.base import Operation
from stella.operations.catalog import OperationCatalog
from stella.utils.text import extract_json_object

logger = logging.getLogger(__name__)

NO_MATCH_SENTINEL = "none"


class OperationMatcherAgent(LLMAgent):
    """Selects the catalog operation that answers a question."""

    error_class = NoOperationMatch

    def __init__(self, catalog: OperationCatalog, llm_provider=None):
        super().__init__(name="OperationMatcherAgent", llm_provider=llm_provider)
        self.catalog = catalog

    async def execute(self, input: AgentInput) -> Operation:
        reply = await self._ask(
            "agents/operation_matcher.md", query=input.query, catalog=self.catalog.describe()
        )
        operation = self.resolve(reply)
        if operation is None:
            raise NoOperationMatch(
                self.name, "No catalog operation matches the query", context={"reply": reply[:100]}
            )

        logger.info(
            f"[{self.name}] Matched {operation.name}", extra={"operation": operation.name}
        )
        return operation

    def resolve(self, reply: str) -> Operation | None:
        """Map the model's reply to a catalog entry; unknown names count as no match."""
        name = reply.strip().strip("`'\".").split()[0] if reply.strip() else ""
        if not name or name.lower() == NO_MATCH_SENTINEL:
            return None
        operation = self.catalog.get(name)
        if operation is None:
            logger.warning(f"[{self.name}] Model named unknown operation: {name}")
        return operation


class ExtractionInput(AgentInput):
    operation: Operation


class ParameterExtractorAgent(LLMAgent):
    """Builds the typed argument mapping for one operation."""

    error_class = LLMError

    def __init__(self, llm_provider=None):
        super().__init__(name="ParameterExtractorAgent", llm_provider=llm_provider)

    async def execute(self, input: ExtractionInput) -> dict[str, Any]:
        operation = input.operation
        if not operation.parameters:
            return {}

        reply = await self._ask(
            "agents/parameter_extractor.md",
            query=input.query,
            operation=operation,
            mentions=input.mentions,
            today=date.today().isoformat(),
        )
        raw = extract_json_object(reply)
        if raw is None:
            raise LLMError(
                self.name, "Parameter reply was not a JSON object", context={"reply": reply[:200]}
            )

        params = self.apply_defaults(operation, self.coerce(operation, raw))
        logger.info(
            f"[{self.name}] Parameters for {operation.name}: {params}",
            extra={"operation": operation.name},
        )
        return params

    def coerce(self, operation: Operation, raw: dict[str, Any]) -> dict[str, Any]:
        """Typed values for declared parameters; undeclared keys and bad values are dropped."""
        values: dict[str, Any] = {}
        for param in operation.parameters:
            if param.name not in raw:
                continue
            try:
                value = param.coerce(raw[param.name])
            except (TypeError, ValueError) as e:
                logger.warning(f"[{self.name}] Ignoring {param.name}: {e}")
                continue
            if value is not None:
                values[param.name] = value
        return values

    @staticmethod
    def apply_defaults(operation: Operation, values: dict[str, Any]) -> dict[str, Any]:
        params = dict(values)
        for param in operation.parameters:
            if params.get(param.name) is None and param.default is not None:
                params[param.name] = param.default
        return params

    def fallback(self, input: ExtractionInput, error: AgentError) -> dict[str, Any]:
        return self.apply_defaults(input.operation, {})
