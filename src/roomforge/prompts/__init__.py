"""Prompt templates and rendering."""

from roomforge.prompts.registry import PromptRegistry, compile_template, get_prompt_registry
from roomforge.prompts.schema import STATIC_SCHEMA

__all__ = ["PromptRegistry", "STATIC_SCHEMA", "compile_template", "get_prompt_registry"]
