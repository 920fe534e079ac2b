"""
ExecutorAgent: runs a guarded statement against the business database.

Catalog operations are resolved to their query template here, so an
operation without a template fails at this stage as "not implemented".
Database failures are never retried; the underlying message is carried
verbatim in the ExecutionError.
"""

import logging
from typing import Any, Literal

from pydantic import Field

from stella.agents.base import BaseAgent
from stella.agents.validator import SQLGuard
from stella.connectors.base import BaseConnector, ConnectorError, QueryResult
from stella.models.agent import AgentInput, ExecutionError
from stella.operations.base import Operation
from stella.operations.templates import render_query

logger = logging.getLogger(__name__)


class ExecutionInput(AgentInput):
    """Either a catalog operation with arguments or a synthesized statement."""

    source: Literal["operation", "ad_hoc"] = "ad_hoc"
    sql: str | None = None
    operation: Operation | None = None
    arguments: dict[str, Any] = Field(default_factory=dict)


class ExecutorAgent(BaseAgent):
    error_class = ExecutionError

    def __init__(self, connector: BaseConnector, guard: SQLGuard | None = None):
        super().__init__(name="ExecutorAgent")
        self.connector = connector
        self.guard = guard or SQLGuard(max_rows=self.config.pipeline.max_rows)

    async def execute(self, input: ExecutionInput) -> QueryResult:
        if input.operation is not None:
            sql, params = render_query(input.operation, input.arguments)
        elif input.sql:
            sql, params = input.sql, []
        else:
            raise ExecutionError(self.name, "Nothing to execute")

        statement = self.guard.prepare(sql)

        try:
            result = await self.connector.execute(statement, params)
        except ConnectorError as e:
            raise ExecutionError(
                self.name, str(e), context={"source": input.source, "sql": statement[:500]}
            ) from e

        logger.info(
            f"[{self.name}] {result.row_count} row(s) in {result.execution_time_ms:.1f}ms",
            extra={"source": input.source, "row_count": result.row_count},
        )
        return result
