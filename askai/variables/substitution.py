"""
Placeholder substitution for prompt templates.

Resolves ${name} against a flat parameter mapping; $$ escapes a literal $.
"""

import re
from typing import Any, Dict, List, Set


class VariableSubstitutor:
    """
    Resolves ${name} placeholders in one pass.

    Names are flat (e.g. ${language}, ${tone}). Escapes and placeholders are
    matched by the same scan, so inserted values are never rescanned or
    rewritten and user text containing ${...}, $$ or any other character is
    kept as is.
    """

    # '$$' escape, or a ${name} placeholder
    TOKEN_PATTERN = re.compile(r'\$\$|\$\{([^}]+)\}')

    def __init__(self):
        self.undefined_vars: Set[str] = set()

    def find_variables(self, template: str) -> List[str]:
        """
        Placeholder names referenced by a template, first occurrence order.

        Escaped placeholders ($${name}) are not reported.
        """
        names: List[str] = []
        for match in self.TOKEN_PATTERN.finditer(template):
            if match.group(1) is None:
                continue
            name = match.group(1).strip()
            if name not in names:
                names.append(name)
        return names

    def substitute(
        self,
        template: str,
        values: Dict[str, Any],
        track_undefined: bool = True,
        unescape: bool = True
    ) -> str:
        """
        Replace placeholders with their values.

        Args:
            template: Text with ${name} placeholders
            values: Parameter values by name
            track_undefined: Raise when a placeholder has no value
            unescape: Collapse $$ to $ in the result

        Returns:
            The rendered text; unknown placeholders are left as written

        Raises:
            ValueError: If a placeholder has no value and track_undefined is set
        """
        self.undefined_vars = set()

        def resolve(match) -> str:
            if match.group(1) is None:
                return '$' if unescape else '$$'
            name = match.group(1).strip()
            if values.get(name) is None:
                self.undefined_vars.add(name)
                return match.group(0)
            return self._render_value(values[name])

        rendered = self.TOKEN_PATTERN.sub(resolve, template)

        if track_undefined and self.undefined_vars:
            raise ValueError(f"Undefined variables: {sorted(self.undefined_vars)}")
        return rendered

    @staticmethod
    def _render_value(value: Any) -> str:
        if isinstance(value, bool):
            return 'true' if value else 'false'
        return str(value)
