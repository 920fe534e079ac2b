"""Prompt templates and loader."""

from stella.prompts.loader import PromptLoader

__all__ = ["PromptLoader"]
