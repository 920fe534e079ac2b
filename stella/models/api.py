"""
API Request/Response Models

Pydantic models for the FastAPI endpoints. Wire field names are camelCase
(`conversationId`, `functionUsed`) to match the chat front end.
"""

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from stella.models.agent import ConversationTurn, EntityMention, ResolutionResult

MENTION_PATTERN = re.compile(r"@(product|company|category|admin):([^@\s]+)")


def parse_mentions(text: str) -> list[EntityMention]:
    """Extract `@type:name` tokens typed into a message."""
    return [EntityMention(type=kind, name=name) for kind, name in MENTION_PATTERN.findall(text)]


class ChatRequest(BaseModel):
    """Request model for the chat endpoint. Either `message` or `query` is required."""

    message: str | None = Field(None, description="User's question")
    query: str | None = Field(None, description="Alias of `message` for older clients")
    history: list[ConversationTurn] = Field(
        default_factory=list, description="Previous turns, oldest first"
    )
    conversation_id: str | None = Field(
        None, alias="conversationId", description="Echoed back in the response"
    )
    mentions: list[EntityMention] = Field(
        default_factory=list, description="Entities the question is about"
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "message": "What are the top selling products?",
                "history": [{"sender": "user", "content": "Hi"}],
                "conversationId": "conv_123",
                "mentions": [{"type": "product", "name": "Galaxy S24", "id": "a1b2"}],
            }
        },
    )

    @model_validator(mode="after")
    def require_text(self) -> "ChatRequest":
        if not (self.message or "").strip() and not (self.query or "").strip():
            raise ValueError("No message or query provided")
        return self

    @property
    def text(self) -> str:
        return ((self.message or "").strip() or (self.query or "")).strip()

    def resolved_mentions(self) -> list[EntityMention]:
        """Caller-supplied mentions, or the ones typed inline as `@type:name`."""
        return self.mentions or parse_mentions(self.text)


class ChatResponse(BaseModel):
    """Response model for the chat endpoint."""

    content: str = Field(..., description="Answer text")
    type: Literal["conversational", "data", "error"] = Field(..., description="Answer kind")
    function_used: str | None = Field(
        None,
        serialization_alias="functionUsed",
        description="Catalog operation name, or dynamic_sql_query for generated SQL",
    )
    conversation_id: str | None = Field(None, serialization_alias="conversationId")
    clarification_needed: bool | None = Field(
        None,
        serialization_alias="clarificationNeeded",
        description="True when the answer asks the user for more detail",
    )

    @classmethod
    def from_result(
        cls, result: ResolutionResult, conversation_id: str | None = None
    ) -> "ChatResponse":
        return cls(
            content=result.response_text,
            type=result.response_type,
            function_used=result.operation_used,
            conversation_id=conversation_id,
            clarification_needed=True if result.clarification_needed else None,
        )


class ErrorResponse(BaseModel):
    """Envelope for failures outside the pipeline."""

    content: str
    type: Literal["error"] = "error"


class OperationParameterInfo(BaseModel):
    name: str
    type: str
    required: bool
    description: str
    default: str | int | float | bool | None = None


class OperationInfo(BaseModel):
    """Catalog entry as exposed by GET /operations."""

    name: str
    description: str
    category: str
    parameters: list[OperationParameterInfo]
    examples: list[str]


class OperationListResponse(BaseModel):
    operations: list[OperationInfo]
    categories: list[str]
    total: int


class SuggestionsResponse(BaseModel):
    suggestions: list[str]


class HealthResponse(BaseModel):
    """Response model for the liveness endpoint."""

    status: str = Field(..., description="'healthy'")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp (ISO 8601)")


class ReadinessResponse(BaseModel):
    """Response model for the readiness endpoint."""

    status: str = Field(..., description="'ready' or 'not_ready'")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp (ISO 8601)")
    checks: dict[str, bool] = Field(..., description="Individual readiness checks")
