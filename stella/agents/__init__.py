"""
Stella Agents Module

One agent per pipeline stage. Calling an agent returns a StageResult.

Available Agents:
    - ClassifierAgent: conversational / operation / ad-hoc routing
    - ConversationalAgent: small-talk replies
    - OperationMatcherAgent: picks a catalog operation
    - ParameterExtractorAgent: typed arguments with defaults
    - CompletenessAgent: asks whether a data question needs more detail
    - QuerySynthesizerAgent: shortcut table, then generated SQL
    - ExecutorAgent: guarded, read-only execution (SQLGuard, no LLM)
    - ResponseComposerAgent: natural-language summary of rows
"""

from stella.agents.base import BaseAgent, LLMAgent
from stella.agents.classifier import ClassifierAgent
from stella.agents.completeness import CompletenessAgent
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

__all__ = [
    "BaseAgent",
    "ClassifierAgent",
    "CompletenessAgent",
    "CompositionInput",
    "ConversationalAgent",
    "ExecutionInput",
    "ExecutorAgent",
    "ExtractionInput",
    "LLMAgent",
    "OperationMatcherAgent",
    "ParameterExtractorAgent",
    "QuerySynthesizerAgent",
    "ResponseComposerAgent",
    "SQLGuard",
    "SynthesisInput",
]
