import logging
import re
from typing import Any, Optional

from roomforge.prompts.templates import PROMPTS

logger = logging.getLogger(__name__)

_CONDITIONAL = re.compile(r"\{\{#(\w+)\}\}(.*?)\{\{/\1\}\}", re.DOTALL)
_INVERTED = re.compile(r"\{\{\^(\w+)\}\}(.*?)\{\{/\1\}\}", re.DOTALL)
_VARIABLE = re.compile(r"\{\{(\w+)\}\}")
_BLANK_RUNS = re.compile(r"\n{3,}")


def compile_template(template: str, **variables: Any) -> str:
    """Render a Mustache-style template."""

    def replace_conditional(match: re.Match) -> str:
        if variables.get(match.group(1)):
            return compile_template(match.group(2), **variables)
        return ""

    def replace_inverted(match: re.Match) -> str:
        if not variables.get(match.group(1)):
            return compile_template(match.group(2), **variables)
        return ""

    def replace_var(match: re.Match) -> str:
        value = variables.get(match.group(1), "")
        return str(value) if value is not None else ""

    result = _CONDITIONAL.sub(replace_conditional, template)
    result = _INVERTED.sub(replace_inverted, result)
    result = _VARIABLE.sub(replace_var, result)
    return result


class PromptRegistry:
    """Named prompt lookup with optional per-deployment overrides."""

    def __init__(self, overrides: Optional[dict[str, str]] = None):
        self._templates = dict(PROMPTS)
        if overrides:
            self._templates.update(overrides)

    def get(self, name: str, **variables: Any) -> str:
        """Get a compiled prompt by name."""
        template = self.get_template(name)
        return _BLANK_RUNS.sub("\n\n", compile_template(template, **variables)).strip()

    def get_template(self, name: str) -> str:
        template = self._templates.get(name)
        if template is None:
            raise ValueError(f"Prompt '{name}' not found")
        return template


_registry: Optional[PromptRegistry] = None


def get_prompt_registry() -> PromptRegistry:
    global _registry
    if _registry is None:
        _registry = PromptRegistry()
    return _registry
