"""
Pipeline package for Stella.

Contains the LangGraph orchestrator that connects the agents into one request flow.
"""

from stella.pipeline.orchestrator import AssistantPipeline, PipelineState, create_pipeline

__all__ = ["AssistantPipeline", "PipelineState", "create_pipeline"]
