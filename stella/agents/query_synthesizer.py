"""
QuerySynthesizerAgent: turns an ad-hoc question into one PostgreSQL statement.

Common phrasings are answered from a fixed shortcut table without a model
call. Everything else is generated from the schema description with the
rules in agents/query_synthesizer.md. The result is untrusted: the execution
guard checks it before it reaches the database.
"""

import logging
import re

from stella.agents.base import LLMAgent
from stella.database.introspector import FALLBACK_SCHEMA_DESCRIPTION, SchemaIntrospector
from stella.models.agent import AgentInput, SynthesisError
from stella.utils.text import strip_code_fences

logger = logging.getLogger(__name__)

_ALL_PRODUCTS = (
    "SELECT p.name, p.sku, c.name AS company, cat.name AS category, "
    "p.selling_price, p.current_stock "
    "FROM products p "
    "LEFT JOIN companies c ON c.id = p.company_id "
    "LEFT JOIN categories cat ON cat.id = p.category_id "
    "ORDER BY p.name "
    "LIMIT 50"
)
_ALL_COMPANIES = "SELECT c.name, c.country FROM companies c ORDER BY c.name LIMIT 50"
_ALL_CATEGORIES = (
    "SELECT c.name, c.description FROM categories c ORDER BY c.name LIMIT 50"
)
_ALL_ADMINS = (
    "SELECT a.full_name, a.username, a.email, a.role, a.location "
    "FROM admins a ORDER BY a.full_name LIMIT 50"
)
_RECENT_TRANSACTIONS = (
    "SELECT t.transaction_id, p.name AS product, t.quantity, t.total_amount, "
    "t.customer_location, t.transaction_time "
    "FROM transactions t "
    "JOIN products p ON p.id = t.product_id "
    "ORDER BY t.transaction_time DESC "
    "LIMIT 20"
)

SHORTCUTS: dict[str, str] = {
    "list all products": _ALL_PRODUCTS,
    "show all products": _ALL_PRODUCTS,
    "list all companies": _ALL_COMPANIES,
    "show all companies": _ALL_COMPANIES,
    "list all categories": _ALL_CATEGORIES,
    "show all categories": _ALL_CATEGORIES,
    "list all admins": _ALL_ADMINS,
    "show all admins": _ALL_ADMINS,
    "show recent transactions": _RECENT_TRANSACTIONS,
    "list recent transactions": _RECENT_TRANSACTIONS,
}

_TRAILING_PUNCTUATION = re.compile(r"[\s?!.]+$")


def normalize_phrase(query: str) -> str:
    """Lowercase, collapse whitespace and drop trailing punctuation."""
    collapsed = " ".join(query.lower().split())
    return _TRAILING_PUNCTUATION.sub("", collapsed)


def lookup_shortcut(query: str) -> str | None:
    return SHORTCUTS.get(normalize_phrase(query))


def clean_statement(text: str) -> str:
    """Strip code fences, surrounding whitespace and trailing terminators."""
    sql = strip_code_fences(text).strip()
    while sql.endswith(";"):
        sql = sql[:-1].rstrip()
    return sql


class SynthesisInput(AgentInput):
    # None means describe the schema through the agent's introspector.
    schema_description: str | None = None


class QuerySynthesizerAgent(LLMAgent):
    """
    Generates read-only SQL; failures here end the request.

    The schema is only described when the question misses the shortcut table.
    """

    error_class = SynthesisError
    provider_role = "sql"
    model_type = "main"

    def __init__(
        self,
        llm_provider=None,
        shortcuts_enabled: bool | None = None,
        introspector: SchemaIntrospector | None = None,
    ):
        super().__init__(name="QuerySynthesizerAgent", llm_provider=llm_provider)
        self.shortcuts_enabled = (
            self.config.pipeline.shortcuts_enabled if shortcuts_enabled is None else shortcuts_enabled
        )
        self.row_limit = self.config.pipeline.default_row_limit
        self.introspector = introspector

    async def execute(self, input: SynthesisInput) -> str:
        if self.shortcuts_enabled:
            shortcut = lookup_shortcut(input.query)
            if shortcut is not None:
                logger.info(f"[{self.name}] Shortcut hit", extra={"phrase": normalize_phrase(input.query)})
                return shortcut

        schema = input.schema_description
        if schema is None:
            schema = (
                await self.introspector.describe()
                if self.introspector is not None
                else FALLBACK_SCHEMA_DESCRIPTION
            )

        try:
            reply = await self._ask(
                "agents/query_synthesizer.md",
                schema=schema,
                query=input.query,
                mentions=input.mentions,
                row_limit=self.row_limit,
            )
        except Exception as e:
            raise SynthesisError(self.name, str(e)) from e

        sql = clean_statement(reply)
        if not sql:
            raise SynthesisError(self.name, "The model returned an empty query")

        logger.info(f"[{self.name}] Generated SQL", extra={"sql": sql[:500]})
        return sql
