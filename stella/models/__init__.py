"""Shared pydantic models and the pipeline error taxonomy."""

from stella.models.agent import (
    AgentError,
    AgentInput,
    AgentMetadata,
    ClassificationError,
    CompositionError,
    ConversationTurn,
    EntityMention,
    ExecutionError,
    IncompleteQuery,
    IntentLabel,
    LLMError,
    NoOperationMatch,
    OperationNotImplementedError,
    ResolutionResult,
    StageResult,
    SynthesisError,
)
from stella.models.api import ChatRequest, ChatResponse, ErrorResponse, parse_mentions

__all__ = [
    "AgentError",
    "AgentInput",
    "AgentMetadata",
    "ChatRequest",
    "ChatResponse",
    "ClassificationError",
    "CompositionError",
    "ConversationTurn",
    "EntityMention",
    "ErrorResponse",
    "ExecutionError",
    "IncompleteQuery",
    "IntentLabel",
    "LLMError",
    "NoOperationMatch",
    "OperationNotImplementedError",
    "ResolutionResult",
    "StageResult",
    "SynthesisError",
    "parse_mentions",
]
