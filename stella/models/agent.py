"""
Agent I/O Models

Conversation inputs, per-stage results and the error taxonomy shared by
every agent in the pipeline.
"""

from datetime import datetime, timezone
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")

IntentLabel = Literal["conversational", "operation_call", "ad_hoc_query", "data_query"]
MentionType = Literal["product", "company", "category", "admin"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Request-scoped inputs
# ============================================================================


class ConversationTurn(BaseModel):
    """
    One prior message supplied by the caller.

    Accepts `{sender, content}`, `{role, content}` and the chat-UI shape
    `{role, parts: [{text}]}`.
    """

    sender: str
    content: str
    timestamp: datetime | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def normalize_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "sender" not in data:
            role = data.pop("role", "user")
            data["sender"] = "assistant" if role == "model" else role
        if "content" not in data and "parts" in data:
            parts = data.pop("parts") or []
            data["content"] = " ".join(
                str(part.get("text", "")) if isinstance(part, dict) else str(part)
                for part in parts
            ).strip()
        return data


class EntityMention(BaseModel):
    """Caller hint that the question is about a specific entity."""

    type: MentionType
    name: str = Field(..., min_length=1)
    id: str | None = None

    model_config = ConfigDict(frozen=True)

    def describe(self) -> str:
        if self.id:
            return f"{self.type} '{self.name}' (id: {self.id})"
        return f"{self.type} '{self.name}'"


class AgentInput(BaseModel):
    """Base input passed to every agent."""

    query: str = Field(..., min_length=1, description="User's question")
    history: list[ConversationTurn] = Field(default_factory=list)
    mentions: list[EntityMention] = Field(default_factory=list)

    model_config = ConfigDict(arbitrary_types_allowed=True)


# ============================================================================
# Stage results
# ============================================================================


class AgentMetadata(BaseModel):
    """Timing for one agent invocation."""

    agent_name: str
    started_at: datetime = Field(default_factory=_utcnow)
    duration_ms: float | None = None
    error: str | None = None


class StageResult(BaseModel, Generic[T]):
    """
    Outcome of one pipeline stage.

    success:   `value` is the stage output
    recovered: the stage failed recoverably and `value` is its safe default
    fatal:     the stage failed and the request path ends; `error` says why
    """

    status: Literal["success", "recovered", "fatal"]
    value: T | None = None
    error: Any = None
    metadata: AgentMetadata | None = None

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @property
    def ok(self) -> bool:
        return self.status != "fatal"

    @classmethod
    def success(cls, value: T, metadata: AgentMetadata | None = None) -> "StageResult[T]":
        return cls(status="success", value=value, metadata=metadata)

    @classmethod
    def recovered(
        cls, value: T, error: "AgentError", metadata: AgentMetadata | None = None
    ) -> "StageResult[T]":
        return cls(status="recovered", value=value, error=error, metadata=metadata)

    @classmethod
    def fatal(cls, error: "AgentError", metadata: AgentMetadata | None = None) -> "StageResult[T]":
        return cls(status="fatal", error=error, metadata=metadata)


class ResolutionResult(BaseModel):
    """
    Final outcome of one pipeline run.

    kind "clarification" is sent on the wire as type "data" with clarificationNeeded set.
    """

    response_text: str
    kind: Literal["conversational", "operation", "ad_hoc", "clarification", "error"]
    operation_used: str | None = None
    error: str | None = None

    @property
    def response_type(self) -> Literal["conversational", "data", "error"]:
        if self.kind == "conversational":
            return "conversational"
        if self.kind == "error":
            return "error"
        return "data"

    @property
    def clarification_needed(self) -> bool:
        return self.kind == "clarification"


# ============================================================================
# Errors
# ============================================================================


class AgentError(Exception):
    """
    Base exception for pipeline stage failures.

    Attributes:
        agent: Name of the agent that raised the error
        message: Error description
        recoverable: Whether the stage can substitute a safe default
        context: Additional context for debugging
    """

    def __init__(
        self,
        agent: str,
        message: str,
        recoverable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        self.agent = agent
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(f"[{agent}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "agent": self.agent,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class ClassificationError(AgentError):
    """Intent model call failed or returned no known label."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=True, context=context)


class NoOperationMatch(AgentError):
    """No catalog operation fits the question."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=True, context=context)


class IncompleteQuery(AgentError):
    """The question lacks information needed to answer it."""

    def __init__(
        self,
        agent: str,
        message: str,
        missing: list[str] | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.missing = missing or []
        super().__init__(agent, message, recoverable=True, context=context)


class SynthesisError(AgentError):
    """The model did not produce a usable SQL statement."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=False, context=context)


class ExecutionError(AgentError):
    """The statement was rejected by the guard or failed in the database."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=False, context=context)


class OperationNotImplementedError(ExecutionError):
    """A catalog operation has no query template."""

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        super().__init__(
            "executor",
            f"Function {operation_name} not implemented",
            context={"operation": operation_name},
        )


class CompositionError(AgentError):
    """Summarizing results failed."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=True, context=context)


class LLMError(AgentError):
    """A model reply could not be used (usually recoverable with a default)."""

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(agent, message, recoverable=True, context=context)
