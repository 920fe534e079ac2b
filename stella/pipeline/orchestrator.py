"""
Stella Pipeline Orchestrator

LangGraph state machine that routes one question through the agents:

    classify → converse
             → match_operation → extract_parameters → execute_operation → compose
             → check_completeness → synthesize → execute_query → compose

Every agent call returns a StageResult. Recoverable failures have already
been replaced by the stage's fallback; fatal failures (synthesis, execution)
route to handle_error. A run always ends with a ResolutionResult.
"""

import logging
import time
from typing import Any, TypedDict

from langgraph.graph import END, StateGraph

from stella.agents.classifier import ClassifierAgent
from stella.agents.completeness import CompletenessAgent, clarification_message
from stella.agents.conversational import ConversationalAgent
from stella.agents.executor import ExecutionInput, ExecutorAgent
from stella.agents.operation_matcher import (
    ExtractionInput,
    OperationMatcherAgent,
    ParameterExtractorAgent,
)
from stella.agents.query_synthesizer import QuerySynthesizerAgent, SynthesisInput
from stella.agents.response_composer import CompositionInput, ResponseComposerAgent
from stella.agents.validator import SQLGuard
from stella.config import Settings, get_settings
from stella.connectors.base import BaseConnector
from stella.connectors.postgres import PostgresConnector
from stella.database.introspector import SchemaIntrospector
from stella.llm.base import BaseLLMProvider
from stella.models.agent import (
    AgentInput,
    ConversationTurn,
    EntityMention,
    IncompleteQuery,
    ResolutionResult,
    StageResult,
)
from stella.operations.base import Operation
from stella.operations.catalog import OperationCatalog, build_default_catalog

logger = logging.getLogger(__name__)

DYNAMIC_SQL_OPERATION = "dynamic_sql_query"

NO_OPERATION_MESSAGE = (
    "I couldn't find a suitable function for your query. "
    "Try asking about products, sales, or transactions."
)


def require_parameters(operation: Operation, arguments: dict[str, Any]) -> None:
    """Raise IncompleteQuery listing each required parameter with no value."""
    missing = operation.missing_required(arguments)
    if missing:
        raise IncompleteQuery(
            "AssistantPipeline",
            "\n".join(f"• {param.name}: {param.description}" for param in missing),
            missing=[param.name for param in missing],
            context={"operation": operation.name},
        )


# ============================================================================
# Pipeline State Schema
# ============================================================================


class PipelineState(TypedDict, total=False):
    """State carried between graph nodes for one question."""

    # Input
    query: str
    history: list[ConversationTurn]
    mentions: list[EntityMention]

    # Routing
    intent: str | None
    operation: Any
    arguments: dict[str, Any]
    sql: str | None

    # Execution output
    rows: list[dict[str, Any]]
    total_rows: int
    subject: str | None

    # Result
    response_text: str | None
    kind: str | None
    operation_used: str | None
    error: str | None
    failed_stage: str | None

    # Metadata
    current_agent: str | None
    stage_results: dict[str, str]
    agent_timings: dict[str, float]
    total_latency_ms: float


class AssistantPipeline:
    """
    Question-answering pipeline over the operation catalog and the database.

    Usage:
        pipeline = AssistantPipeline(connector, build_default_catalog())
        result = await pipeline.run("What are the top selling products?")
        print(result.response_text, result.operation_used)
    """

    def __init__(
        self,
        connector: BaseConnector,
        catalog: OperationCatalog,
        llm_provider: BaseLLMProvider | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize pipeline with dependencies.

        Args:
            connector: Database connector used for execution and schema discovery
            catalog: Operations the matcher may choose from
            llm_provider: Provider shared by every agent; when None each agent
                builds its own from settings
            settings: Application settings (defaults to get_settings())
        """
        self.connector = connector
        self.catalog = catalog
        self.config = settings or get_settings()
        pipeline_config = self.config.pipeline
        self.routing_mode = pipeline_config.routing_mode
        self.completeness_check_enabled = pipeline_config.completeness_check_enabled

        self.introspector = SchemaIntrospector(
            connector,
            cache_enabled=pipeline_config.schema_snapshot_cache_enabled,
            cache_ttl_seconds=pipeline_config.schema_snapshot_cache_ttl_seconds,
        )

        # Initialize agents
        self.classifier = ClassifierAgent(llm_provider=llm_provider, routing_mode=self.routing_mode)
        self.conversational = ConversationalAgent(llm_provider=llm_provider)
        self.matcher = OperationMatcherAgent(catalog, llm_provider=llm_provider)
        self.extractor = ParameterExtractorAgent(llm_provider=llm_provider)
        self.completeness = CompletenessAgent(llm_provider=llm_provider)
        self.synthesizer = QuerySynthesizerAgent(
            llm_provider=llm_provider,
            shortcuts_enabled=pipeline_config.shortcuts_enabled,
            introspector=self.introspector,
        )
        self.executor = ExecutorAgent(connector, SQLGuard(max_rows=pipeline_config.max_rows))
        self.composer = ResponseComposerAgent(llm_provider=llm_provider)

        self.graph = self._build_graph()

        logger.info(
            "AssistantPipeline initialized",
            extra={"routing_mode": self.routing_mode, "operations": len(catalog)},
        )

    def _build_graph(self):
        workflow = StateGraph(PipelineState)

        workflow.add_node("classify", self._run_classifier)
        workflow.add_node("converse", self._run_conversational)
        workflow.add_node("match_operation", self._run_matcher)
        workflow.add_node("extract_parameters", self._run_extractor)
        workflow.add_node("execute_operation", self._run_operation)
        workflow.add_node("check_completeness", self._run_completeness)
        workflow.add_node("synthesize", self._run_synthesizer)
        workflow.add_node("execute_query", self._run_query)
        workflow.add_node("compose", self._run_composer)
        workflow.add_node("handle_error", self._handle_error)

        workflow.set_entry_point("classify")

        workflow.add_conditional_edges(
            "classify",
            self._route_intent,
            {
                "conversational": "converse",
                "operation": "match_operation",
                "ad_hoc": "check_completeness",
            },
        )
        workflow.add_conditional_edges(
            "match_operation",
            self._should_extract,
            {"extract": "extract_parameters", "end": END},
        )
        workflow.add_conditional_edges(
            "extract_parameters",
            self._should_execute_operation,
            {"execute": "execute_operation", "clarify": END},
        )
        workflow.add_conditional_edges(
            "check_completeness",
            self._should_synthesize,
            {"synthesize": "synthesize", "clarify": END},
        )
        workflow.add_conditional_edges(
            "synthesize",
            self._should_continue,
            {"next": "execute_query", "error": "handle_error"},
        )
        for node in ("execute_operation", "execute_query"):
            workflow.add_conditional_edges(
                node,
                self._should_continue,
                {"next": "compose", "error": "handle_error"},
            )

        workflow.add_edge("converse", END)
        workflow.add_edge("compose", END)
        workflow.add_edge("handle_error", END)

        return workflow.compile()

    # ========================================================================
    # Agent Execution Methods
    # ========================================================================

    def _agent_input(self, state: PipelineState) -> AgentInput:
        return AgentInput(
            query=state["query"],
            history=state.get("history", []),
            mentions=state.get("mentions", []),
        )

    def _record(self, state: PipelineState, stage: str, result: StageResult) -> None:
        state["current_agent"] = stage
        state.setdefault("stage_results", {})[stage] = result.status
        if result.metadata and result.metadata.duration_ms is not None:
            state.setdefault("agent_timings", {})[stage] = result.metadata.duration_ms
        if not result.ok:
            state["error"] = result.error.message
            state["failed_stage"] = stage

    async def _run_classifier(self, state: PipelineState) -> PipelineState:
        result = await self.classifier(self._agent_input(state))
        self._record(state, "classify", result)
        state["intent"] = result.value or "conversational"
        return state

    async def _run_conversational(self, state: PipelineState) -> PipelineState:
        result = await self.conversational(self._agent_input(state))
        self._record(state, "converse", result)
        state["response_text"] = result.value
        state["kind"] = "conversational"
        return state

    async def _run_matcher(self, state: PipelineState) -> PipelineState:
        result = await self.matcher(self._agent_input(state))
        self._record(state, "match_operation", result)
        state["operation"] = result.value
        if result.value is None:
            categories = ", ".join(self.catalog.categories)
            state["response_text"] = f"{NO_OPERATION_MESSAGE}\n\nAvailable categories: {categories}"
            state["kind"] = "operation"
        return state

    async def _run_extractor(self, state: PipelineState) -> PipelineState:
        operation = state["operation"]
        result = await self.extractor(
            ExtractionInput(**self._agent_input(state).model_dump(), operation=operation)
        )
        self._record(state, "extract_parameters", result)
        arguments = result.value or {}
        state["arguments"] = arguments

        try:
            require_parameters(operation, arguments)
        except IncompleteQuery as e:
            logger.info(
                f"Missing required parameters for {operation.name}",
                extra={"missing": e.missing},
            )
            state["response_text"] = clarification_message(e.message)
            state["kind"] = "clarification"
            state["operation_used"] = operation.name
        return state

    async def _run_operation(self, state: PipelineState) -> PipelineState:
        operation = state["operation"]
        state["operation_used"] = operation.name
        result = await self.executor(
            ExecutionInput(
                query=state["query"],
                source="operation",
                operation=operation,
                arguments=state.get("arguments", {}),
            )
        )
        self._record(state, "execute_operation", result)
        if result.ok:
            state["rows"] = result.value.rows
            state["total_rows"] = result.value.row_count
            state["subject"] = operation.description
        return state

    async def _run_completeness(self, state: PipelineState) -> PipelineState:
        if not self.completeness_check_enabled:
            return state

        result = await self.completeness(self._agent_input(state))
        self._record(state, "check_completeness", result)
        if result.value:
            state["response_text"] = clarification_message(result.value)
            state["kind"] = "clarification"
            state["operation_used"] = DYNAMIC_SQL_OPERATION
        return state

    async def _run_synthesizer(self, state: PipelineState) -> PipelineState:
        state["operation_used"] = DYNAMIC_SQL_OPERATION
        result = await self.synthesizer(SynthesisInput(**self._agent_input(state).model_dump()))
        self._record(state, "synthesize", result)
        state["sql"] = result.value
        return state

    async def _run_query(self, state: PipelineState) -> PipelineState:
        result = await self.executor(
            ExecutionInput(query=state["query"], source="ad_hoc", sql=state["sql"])
        )
        self._record(state, "execute_query", result)
        if result.ok:
            state["rows"] = result.value.rows
            state["total_rows"] = result.value.row_count
            state["subject"] = state["query"]
        return state

    async def _run_composer(self, state: PipelineState) -> PipelineState:
        result = await self.composer(
            CompositionInput(
                query=state["query"],
                rows=state.get("rows", []),
                total_rows=state.get("total_rows"),
                subject=state.get("subject") or state["query"],
            )
        )
        self._record(state, "compose", result)
        state["response_text"] = result.value
        state["kind"] = "ad_hoc" if state.get("operation_used") == DYNAMIC_SQL_OPERATION else "operation"
        return state

    async def _handle_error(self, state: PipelineState) -> PipelineState:
        """Turn a fatal stage failure into the user-facing reply."""
        error = state.get("error") or "Unknown error"
        logger.error(
            f"Pipeline error in {state.get('failed_stage')}: {error}",
            extra={"stage": state.get("failed_stage")},
        )

        if state.get("failed_stage") == "synthesize":
            state["response_text"] = (
                f"I apologize, but I couldn't generate a query for your question: {error}"
            )
            state["kind"] = "ad_hoc"
        else:
            state["response_text"] = f"I'm sorry, I encountered an error: {error}"
            state["kind"] = "error"
        return state

    # ========================================================================
    # Conditional Edge Logic
    # ========================================================================

    def _route_intent(self, state: PipelineState) -> str:
        intent = state.get("intent")
        if intent == "conversational":
            return "conversational"
        if intent == "operation_call":
            return "operation"
        return "ad_hoc"

    def _should_extract(self, state: PipelineState) -> str:
        return "extract" if state.get("operation") is not None else "end"

    def _should_execute_operation(self, state: PipelineState) -> str:
        return "clarify" if state.get("kind") == "clarification" else "execute"

    def _should_synthesize(self, state: PipelineState) -> str:
        return "clarify" if state.get("kind") == "clarification" else "synthesize"

    def _should_continue(self, state: PipelineState) -> str:
        return "error" if state.get("failed_stage") else "next"

    # ========================================================================
    # Public API
    # ========================================================================

    async def run(
        self,
        query: str,
        history: list[ConversationTurn] | None = None,
        mentions: list[EntityMention] | None = None,
    ) -> ResolutionResult:
        """
        Answer one question.

        Args:
            query: User's natural language question
            history: Prior conversation turns, oldest first
            mentions: Entities the caller referenced

        Returns:
            ResolutionResult describing the reply
        """
        initial_state: PipelineState = {
            "query": query,
            "history": list(history or []),
            "mentions": list(mentions or []),
            "intent": None,
            "operation": None,
            "arguments": {},
            "sql": None,
            "rows": [],
            "total_rows": 0,
            "subject": None,
            "response_text": None,
            "kind": None,
            "operation_used": None,
            "error": None,
            "failed_stage": None,
            "current_agent": None,
            "stage_results": {},
            "agent_timings": {},
            "total_latency_ms": 0.0,
        }

        logger.info(f"Starting pipeline for query: {query[:100]}")
        start_time = time.perf_counter()

        state = await self.graph.ainvoke(initial_state)

        total_time = (time.perf_counter() - start_time) * 1000
        state["total_latency_ms"] = total_time
        logger.info(
            f"Pipeline complete in {total_time:.1f}ms",
            extra={
                "kind": state.get("kind"),
                "operation_used": state.get("operation_used"),
                "stage_results": state.get("stage_results"),
                "agent_timings": state.get("agent_timings"),
            },
        )

        return ResolutionResult(
            response_text=state.get("response_text") or "",
            kind=state.get("kind") or "error",
            operation_used=state.get("operation_used"),
            error=state.get("error"),
        )


# ============================================================================
# Helper Functions
# ============================================================================


async def create_pipeline(settings: Settings | None = None) -> AssistantPipeline:
    """
    Create an AssistantPipeline with a connected PostgreSQL connector.

    Raises:
        ValueError: If DATABASE_URL is not configured
    """
    config = settings or get_settings()
    if config.database.url is None:
        raise ValueError("DATABASE_URL must be set to create a pipeline.")

    connector = PostgresConnector.from_url(
        str(config.database.url),
        pool_size=config.database.pool_size,
        timeout=config.database.pool_timeout,
        statement_timeout=config.database.statement_timeout,
    )
    await connector.connect()

    return AssistantPipeline(connector=connector, catalog=build_default_catalog(), settings=config)
