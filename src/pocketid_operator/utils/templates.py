"""
Placeholder substitution for credentials secret templates.

Templates use Go-style field references such as ``{{ .ClientID }}``.
Only the fields of TemplateContext are recognized; anything else is left
in place untouched.
"""

import re
from dataclasses import asdict, dataclass

_PLACEHOLDER = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")


@dataclass(frozen=True)
class TemplateContext:
    """Values available to secret templates."""

    ClientID: str
    ClientSecret: str
    ClientName: str = ""
    Namespace: str = ""
    ResourceName: str = ""


def render_template(template: str, context: TemplateContext) -> str:
    """
    Replace recognized placeholders in a template string.

    Substitution is a single pass over the input, so values that themselves
    look like placeholders are never expanded again.

    Args:
        template: Template string
        context: Values to substitute

    Returns:
        Rendered string
    """
    values = asdict(context)

    def _substitute(match: re.Match[str]) -> str:
        field = match.group(1)
        if field in values:
            return values[field]
        return match.group(0)

    return _PLACEHOLDER.sub(_substitute, template)
