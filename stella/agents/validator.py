"""
SQLGuard: rule-based checks applied to every statement before execution.

NO LLM calls. Generated statements are untrusted, so the guard enforces the
read-only shape at the execution boundary:
- Exactly one statement
- SELECT, or WITH ... SELECT
- No write, DDL or privilege keywords anywhere in the statement
- No server-side functions that sleep or touch the filesystem
- A row cap on the top-level statement
"""

import logging
import re

import sqlparse
from sqlparse.sql import Statement, Where
from sqlparse.tokens import Keyword

from stella.models.agent import ExecutionError

logger = logging.getLogger(__name__)

FORBIDDEN_KEYWORDS = frozenset(
    {
        "INSERT",
        "UPDATE",
        "DELETE",
        "DROP",
        "ALTER",
        "CREATE",
        "TRUNCATE",
        "GRANT",
        "REVOKE",
        "COPY",
        "CALL",
        "DO",
        "MERGE",
        "VACUUM",
        "INTO",
    }
)

DANGEROUS_FUNCTIONS = re.compile(
    r"\b(pg_sleep\w*|pg_read_file|pg_read_binary_file|pg_ls_dir|pg_stat_file|"
    r"lo_import|lo_export|dblink\w*|pg_terminate_backend|pg_cancel_backend)\s*\(",
    re.IGNORECASE,
)

ROW_CAP_KEYWORDS = frozenset({"LIMIT", "FETCH"})


def _top_level_tokens(statement: Statement):
    """Statement tokens outside parentheses."""
    for token in statement.tokens:
        yield token
        # sqlparse keeps a trailing FETCH inside the WHERE group
        if isinstance(token, Where):
            yield from token.tokens


class SQLGuard:
    """Validates statement shape and caps result size."""

    name = "SQLGuard"

    def __init__(self, max_rows: int = 1000):
        self.max_rows = max_rows

    def prepare(self, sql: str) -> str:
        """
        Return the statement ready to execute.

        Comments and trailing terminators are removed, the statement is
        checked and a LIMIT is appended when it has none.

        Raises:
            ExecutionError: If the statement is not a single read-only query
        """
        cleaned = sqlparse.format(sql, strip_comments=True).strip().rstrip(";").strip()
        statement = self.check(cleaned)
        return self.enforce_limit(cleaned, statement)

    def check(self, sql: str) -> Statement:
        """
        Validate a statement and return its parse tree.

        Raises:
            ExecutionError: On any violation
        """
        statements = [stmt for stmt in sqlparse.parse(sql) if str(stmt).strip(" \n\t;")]
        if not statements:
            self._reject("Empty query", sql)
        if len(statements) > 1:
            self._reject("Multiple SQL statements detected - only a single SELECT is allowed", sql)

        statement = statements[0]
        statement_type = statement.get_type()
        if statement_type != "SELECT":
            self._reject(f"Only SELECT queries are allowed, found: {statement_type}", sql)

        for token in statement.flatten():
            if token.ttype in Keyword and token.normalized.upper() in FORBIDDEN_KEYWORDS:
                self._reject(f"Forbidden keyword in query: {token.normalized.upper()}", sql)

        match = DANGEROUS_FUNCTIONS.search(sql)
        if match:
            self._reject(f"Forbidden function in query: {match.group(1)}", sql)

        return statement

    def enforce_limit(self, sql: str, statement: Statement | None = None) -> str:
        """Append LIMIT max_rows unless the top-level statement already caps rows."""
        if statement is None:
            statement = sqlparse.parse(sql)[0]
        for token in _top_level_tokens(statement):
            if token.ttype in Keyword and token.normalized.upper() in ROW_CAP_KEYWORDS:
                return sql
        logger.debug(f"[{self.name}] Appending LIMIT {self.max_rows}")
        return f"{sql}\nLIMIT {self.max_rows}"

    def _reject(self, message: str, sql: str) -> None:
        logger.warning(f"[{self.name}] Rejected query: {message}", extra={"sql": sql[:500]})
        raise ExecutionError(self.name, message, context={"sql": sql[:500]})
