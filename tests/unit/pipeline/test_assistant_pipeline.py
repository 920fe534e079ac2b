"""
Unit tests for AssistantPipeline.

Runs whole questions through the LangGraph state machine with a scripted
LLM provider and a mocked connector:
- Conversational, catalog and ad-hoc routing
- Clarification requests (missing parameters, incomplete questions)
- Fatal synthesis and execution failures
- Two-tier routing mode
"""

from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from mocks import (
    CLASSIFIER_PROMPT,
    COMPLETENESS_PROMPT,
    COMPOSER_PROMPT,
    CONVERSATIONAL_PROMPT,
    EXTRACTOR_PROMPT,
    MATCHER_PROMPT,
    SYNTHESIZER_PROMPT,
    make_query_result,
)
from stella.agents.response_composer import NO_RESULTS_MESSAGE
from stella.config import Settings
from stella.connectors.base import QueryError
from stella.connectors.postgres import PostgresConnector
from stella.database.introspector import FALLBACK_SCHEMA_DESCRIPTION
from stella.llm.base import ModelError
from stella.models.agent import ConversationTurn, EntityMention, IncompleteQuery
from stella.operations.catalog import build_default_catalog
from stella.pipeline.orchestrator import (
    DYNAMIC_SQL_OPERATION,
    NO_OPERATION_MESSAGE,
    AssistantPipeline,
    create_pipeline,
    require_parameters,
)

TOP_SELLERS = [
    {"name": "Chin Chin", "sku": "SN-01", "selling_price": 2.5, "total_sold": 120},
    {"name": "Plantain Chips", "sku": "SN-02", "selling_price": 3.0, "total_sold": 95},
]


@pytest.fixture
def pipeline(mock_connector, mock_llm_provider):
    return AssistantPipeline(
        connector=mock_connector,
        catalog=build_default_catalog(),
        llm_provider=mock_llm_provider,
    )


class TestConversationalPath:
    @pytest.mark.asyncio
    async def test_greeting_never_touches_database(self, pipeline, mock_llm_provider, mock_connector):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "conversational")
        mock_llm_provider.route(CONVERSATIONAL_PROMPT, "Hello! What would you like to know?")

        result = await pipeline.run("Hello")

        assert result.kind == "conversational"
        assert result.response_type == "conversational"
        assert result.response_text == "Hello! What would you like to know?"
        assert result.operation_used is None
        mock_connector.execute.assert_not_awaited()
        mock_connector.describe_schema.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_history_reaches_classifier(self, pipeline, mock_llm_provider):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "conversational")
        history = [ConversationTurn(sender="user", content="Show me low stock items")]

        await pipeline.run("Thanks!", history=history)

        classifier_prompt = next(p for p in mock_llm_provider.prompts() if CLASSIFIER_PROMPT in p)
        assert "Show me low stock items" in classifier_prompt


class TestOperationPath:
    @pytest.mark.asyncio
    async def test_top_selling_products(self, pipeline, mock_llm_provider, mock_connector):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "operation_call")
        mock_llm_provider.route(MATCHER_PROMPT, "getTopSellingProducts")
        mock_llm_provider.route(EXTRACTOR_PROMPT, "{}")
        mock_llm_provider.route(COMPOSER_PROMPT, "Your best seller is Chin Chin with 120 units.")
        mock_connector.execute.return_value = make_query_result(TOP_SELLERS)

        result = await pipeline.run("What are the top selling products?")

        assert result.kind == "operation"
        assert result.response_type == "data"
        assert result.operation_used == "getTopSellingProducts"
        assert result.response_text == "Your best seller is Chin Chin with 120 units."
        statement, params = mock_connector.execute.call_args.args
        assert "ORDER BY total_sold DESC" in statement
        assert params == [5]
        assert mock_llm_provider.calls_for(SYNTHESIZER_PROMPT) == 0

    @pytest.mark.asyncio
    async def test_extracted_arguments_are_bound(self, pipeline, mock_llm_provider, mock_connector):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "operation_call")
        mock_llm_provider.route(MATCHER_PROMPT, "getCompaniesByCountry")
        mock_llm_provider.route(EXTRACTOR_PROMPT, '{"country": "USA"}')
        mock_connector.execute.return_value = make_query_result(
            [{"id": "c1", "name": "Acme", "country": "USA"}]
        )

        result = await pipeline.run("List all companies from USA")

        assert mock_connector.execute.call_args.args[1] == ["USA"]
        assert result.operation_used == "getCompaniesByCountry"

    @pytest.mark.asyncio
    async def test_missing_required_parameter_asks_for_it(
        self, pipeline, mock_llm_provider, mock_connector
    ):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "operation_call")
        mock_llm_provider.route(MATCHER_PROMPT, "getProductsByCategory")
        mock_llm_provider.route(EXTRACTOR_PROMPT, "{}")

        result = await pipeline.run("Show me products in a category")

        assert result.kind == "clarification"
        assert result.clarification_needed is True
        assert result.operation_used == "getProductsByCategory"
        assert "• categoryName: Name of the category to filter by" in result.response_text
        assert result.response_text.startswith("I'd be happy to help you with that!")
        mock_connector.execute.assert_not_awaited()

    def test_require_parameters_names_missing(self):
        operation = build_default_catalog().get("getProductsByCategory")

        with pytest.raises(IncompleteQuery) as exc_info:
            require_parameters(operation, {})

        assert exc_info.value.missing == ["categoryName"]
        assert exc_info.value.recoverable is True
        require_parameters(operation, {"categoryName": "Snacks"})

    @pytest.mark.asyncio
    async def test_no_matching_operation(self, pipeline, mock_llm_provider, mock_connector):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "operation_call")
        mock_llm_provider.route(MATCHER_PROMPT, "none")

        result = await pipeline.run("What's the weather in Lagos?")

        assert result.kind == "operation"
        assert result.operation_used is None
        assert result.response_text == (
            f"{NO_OPERATION_MESSAGE}\n\n"
            "Available categories: products, transactions, companies, categories, admins"
        )
        mock_connector.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_result_skips_composer(self, pipeline, mock_llm_provider):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "operation_call")
        mock_llm_provider.route(MATCHER_PROMPT, "listOutOfStockProducts")

        result = await pipeline.run("What products are out of stock?")

        assert result.response_text == NO_RESULTS_MESSAGE
        assert mock_llm_provider.calls_for(COMPOSER_PROMPT) == 0

    @pytest.mark.asyncio
    async def test_database_error_is_reported(self, pipeline, mock_llm_provider, mock_connector):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "operation_call")
        mock_llm_provider.route(MATCHER_PROMPT, "getAllAdmins")
        mock_connector.execute.side_effect = QueryError('relation "admins" does not exist')

        result = await pipeline.run("Show me all admins")

        assert result.kind == "error"
        assert result.response_type == "error"
        assert result.operation_used == "getAllAdmins"
        assert result.response_text == (
            'I\'m sorry, I encountered an error: relation "admins" does not exist'
        )
        assert mock_llm_provider.calls_for(COMPOSER_PROMPT) == 0


class TestAdHocPath:
    @pytest.mark.asyncio
    async def test_generated_query_answers(self, pipeline, mock_llm_provider, mock_connector):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "ad_hoc_query")
        mock_llm_provider.route(COMPLETENESS_PROMPT, "COMPLETE")
        mock_llm_provider.route(
            SYNTHESIZER_PROMPT,
            "```sql\nSELECT customer_location, AVG(total_amount) AS avg_order "
            "FROM transactions GROUP BY customer_location;\n```",
        )
        mock_llm_provider.route(COMPOSER_PROMPT, "Lagos has the largest average order.")
        mock_connector.execute.return_value = make_query_result(
            [{"customer_location": "Lagos", "avg_order": 41.2}]
        )

        result = await pipeline.run("Average order size per location")

        assert result.kind == "ad_hoc"
        assert result.response_type == "data"
        assert result.operation_used == DYNAMIC_SQL_OPERATION
        assert result.response_text == "Lagos has the largest average order."
        statement, params = mock_connector.execute.call_args.args
        assert statement.endswith("GROUP BY customer_location\nLIMIT 1000")
        assert params == []

    @pytest.mark.asyncio
    async def test_schema_description_in_prompt(self, pipeline, mock_llm_provider, mock_connector):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "ad_hoc_query")
        mock_llm_provider.route(COMPLETENESS_PROMPT, "COMPLETE")
        mock_llm_provider.route(SYNTHESIZER_PROMPT, "SELECT COUNT(*) FROM products")
        mock_connector.describe_schema.return_value = [
            {"table_name": "products", "column_name": "sku", "data_type": "text"}
        ]

        await pipeline.run("How many SKUs are there?")

        synth_prompt = next(p for p in mock_llm_provider.prompts() if SYNTHESIZER_PROMPT in p)
        assert "Table `products`:\n  - Columns: sku (text)" in synth_prompt

    @pytest.mark.asyncio
    async def test_incomplete_question_asks_for_details(
        self, pipeline, mock_llm_provider, mock_connector
    ):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "ad_hoc_query")
        mock_llm_provider.route(COMPLETENESS_PROMPT, "NEEDS_INFO: Which details of product X to update")

        result = await pipeline.run("Update product X")

        assert result.kind == "clarification"
        assert result.operation_used == DYNAMIC_SQL_OPERATION
        assert "Which details of product X to update" in result.response_text
        assert mock_llm_provider.calls_for(SYNTHESIZER_PROMPT) == 0
        mock_connector.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_synthesis_failure_apologizes(self, pipeline, mock_llm_provider, mock_connector):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "ad_hoc_query")
        mock_llm_provider.route(COMPLETENESS_PROMPT, "COMPLETE")
        mock_llm_provider.fail_on(SYNTHESIZER_PROMPT, ModelError("mock", "quota exceeded"))

        result = await pipeline.run("Compare revenue from Lagos and London")

        assert result.kind == "ad_hoc"
        assert result.response_type == "data"
        assert result.operation_used == DYNAMIC_SQL_OPERATION
        assert result.response_text.startswith(
            "I apologize, but I couldn't generate a query for your question:"
        )
        assert "quota exceeded" in result.response_text
        mock_connector.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_generated_write_is_rejected(self, pipeline, mock_llm_provider, mock_connector):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "ad_hoc_query")
        mock_llm_provider.route(COMPLETENESS_PROMPT, "COMPLETE")
        mock_llm_provider.route(SYNTHESIZER_PROMPT, "DELETE FROM transactions")

        result = await pipeline.run("Clear out the transactions")

        assert result.kind == "error"
        assert result.response_text == (
            "I'm sorry, I encountered an error: Only SELECT queries are allowed, found: DELETE"
        )
        mock_connector.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_shortcut_skips_schema_and_model(
        self, pipeline, mock_llm_provider, mock_connector
    ):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "ad_hoc_query")
        mock_llm_provider.route(COMPLETENESS_PROMPT, "COMPLETE")

        result = await pipeline.run("Show all products")

        assert result.operation_used == DYNAMIC_SQL_OPERATION
        assert mock_llm_provider.calls_for(SYNTHESIZER_PROMPT) == 0
        mock_connector.describe_schema.assert_not_awaited()
        assert mock_connector.execute.call_args.args[0].startswith("SELECT p.name")

    @pytest.mark.asyncio
    async def test_mentions_reach_synthesizer(self, pipeline, mock_llm_provider):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "ad_hoc_query")
        mock_llm_provider.route(COMPLETENESS_PROMPT, "COMPLETE")
        mock_llm_provider.route(SYNTHESIZER_PROMPT, "SELECT 1")

        await pipeline.run(
            "How much stock is left?",
            mentions=[EntityMention(type="product", name="Chin Chin", id="p-1")],
        )

        synth_prompt = next(p for p in mock_llm_provider.prompts() if SYNTHESIZER_PROMPT in p)
        assert "product 'Chin Chin' (id: p-1)" in synth_prompt


class TestRecovery:
    @pytest.mark.asyncio
    async def test_classifier_failure_uses_keywords(self, pipeline, mock_llm_provider):
        mock_llm_provider.fail_on(CLASSIFIER_PROMPT, ModelError("mock", "timeout"))
        mock_llm_provider.route(COMPLETENESS_PROMPT, "COMPLETE")

        result = await pipeline.run("Show all companies")

        assert result.operation_used == DYNAMIC_SQL_OPERATION
        assert mock_llm_provider.calls_for(MATCHER_PROMPT) == 0

    @pytest.mark.asyncio
    async def test_composer_failure_uses_plain_summary(
        self, pipeline, mock_llm_provider, mock_connector
    ):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "operation_call")
        mock_llm_provider.route(MATCHER_PROMPT, "getTopSellingProducts")
        mock_llm_provider.route(EXTRACTOR_PROMPT, "{}")
        mock_llm_provider.fail_on(COMPOSER_PROMPT, ModelError("mock", "overloaded"))
        mock_connector.execute.return_value = make_query_result(TOP_SELLERS)

        result = await pipeline.run("What are the top selling products?")

        assert result.kind == "operation"
        assert result.response_text.startswith("Found 2 results for your query about")

    @pytest.mark.asyncio
    async def test_schema_discovery_crash_uses_fallback_schema(
        self, pipeline, mock_llm_provider, mock_connector
    ):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "ad_hoc_query")
        mock_llm_provider.route(COMPLETENESS_PROMPT, "COMPLETE")
        mock_llm_provider.route(SYNTHESIZER_PROMPT, "SELECT AVG(selling_price) FROM products")
        mock_llm_provider.route(COMPOSER_PROMPT, "The average price is 4.20.")
        mock_connector.describe_schema.side_effect = asyncpg.InterfaceError("pool is closing")
        mock_connector.execute.return_value = make_query_result([{"avg": 4.2}])

        result = await pipeline.run("What is the average product price?")

        assert result.kind == "ad_hoc"
        assert result.response_text == "The average price is 4.20."
        synth_prompt = next(p for p in mock_llm_provider.prompts() if SYNTHESIZER_PROMPT in p)
        assert FALLBACK_SCHEMA_DESCRIPTION in synth_prompt

    @pytest.mark.asyncio
    async def test_closing_pool_ends_in_error_result(self, mock_llm_provider):
        connector = PostgresConnector(
            host="localhost", port=5432, database="store", user="stella", password="secret"
        )
        pool = MagicMock()
        pool.acquire.return_value.__aenter__ = AsyncMock(
            side_effect=asyncpg.InterfaceError("pool is closing")
        )
        pool.acquire.return_value.__aexit__ = AsyncMock(return_value=False)
        connector._pool = pool
        connector._connected = True
        pipeline = AssistantPipeline(
            connector=connector,
            catalog=build_default_catalog(),
            llm_provider=mock_llm_provider,
        )
        mock_llm_provider.route(CLASSIFIER_PROMPT, "ad_hoc_query")
        mock_llm_provider.route(COMPLETENESS_PROMPT, "COMPLETE")
        mock_llm_provider.route(SYNTHESIZER_PROMPT, "SELECT 1")

        result = await pipeline.run("What is the average margin per category?")

        assert result.kind == "error"
        assert result.response_text == "I'm sorry, I encountered an error: pool is closing"


class TestRoutingModes:
    @pytest.fixture
    def two_tier_pipeline(self, monkeypatch, mock_connector, mock_llm_provider):
        monkeypatch.setenv("PIPELINE_ROUTING_MODE", "two_tier")
        return AssistantPipeline(
            connector=mock_connector,
            catalog=build_default_catalog(),
            llm_provider=mock_llm_provider,
            settings=Settings(),
        )

    @pytest.mark.asyncio
    async def test_two_tier_data_query_goes_to_sql(
        self, two_tier_pipeline, mock_llm_provider, mock_connector
    ):
        mock_llm_provider.route(CLASSIFIER_PROMPT, "data_query")
        mock_llm_provider.route(COMPLETENESS_PROMPT, "COMPLETE")
        mock_llm_provider.route(SYNTHESIZER_PROMPT, "SELECT name FROM products WHERE current_stock < 5")
        mock_llm_provider.route(COMPOSER_PROMPT, "Two products are running low.")
        mock_connector.execute.return_value = make_query_result([{"name": "A"}, {"name": "B"}])

        result = await two_tier_pipeline.run("What products are running low?")

        assert result.kind == "ad_hoc"
        assert result.operation_used == DYNAMIC_SQL_OPERATION
        assert mock_llm_provider.calls_for(MATCHER_PROMPT) == 0
        classifier_prompt = mock_llm_provider.prompts()[0]
        assert "data_query or conversational" in classifier_prompt

    @pytest.mark.asyncio
    async def test_completeness_check_can_be_disabled(
        self, monkeypatch, mock_connector, mock_llm_provider
    ):
        monkeypatch.setenv("PIPELINE_COMPLETENESS_CHECK_ENABLED", "false")
        pipeline = AssistantPipeline(
            connector=mock_connector,
            catalog=build_default_catalog(),
            llm_provider=mock_llm_provider,
            settings=Settings(),
        )
        mock_llm_provider.route(CLASSIFIER_PROMPT, "ad_hoc_query")
        mock_llm_provider.route(SYNTHESIZER_PROMPT, "SELECT 1")

        await pipeline.run("Average basket size")

        assert mock_llm_provider.calls_for(COMPLETENESS_PROMPT) == 0


@pytest.mark.asyncio
async def test_create_pipeline_requires_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(ValueError, match="DATABASE_URL"):
        await create_pipeline(Settings())
