"""
Prompt template library.

Maps operation identifiers to instruction templates and renders the final
prompt from instruction, user text and parameters.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..providers.types import FailureKind, make_error
from ..variables.substitution import VariableSubstitutor


logger = logging.getLogger(__name__)

CUSTOM_OPERATION = "custom"
TEXT_VARIABLES = ("text", "selected_text")
TEXT_DELIMITER = "\n\n"


@dataclass(frozen=True)
class Operation:
    """
    Named text transformation.

    Attributes:
        name: Operation identifier (e.g., 'improve', 'translate')
        template: Instruction template; ${text} marks where the input goes
        title: Menu label
        description: One-line description
        category: Grouping (writing, translation, analysis)
        defaults: Default parameter values
        strip_prefixes: Boilerplate lead-ins removed from responses
    """
    name: str
    template: str
    title: str = ""
    description: str = ""
    category: str = "general"
    defaults: Dict[str, str] = field(default_factory=dict)
    strip_prefixes: Tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return self.title or self.name


_TRANSLATION_PREFIXES = ("Here's the translation", "Here is the translation", "The translation is", "Translation")

BUILTIN_OPERATIONS = (
    Operation(
        name="improve",
        title="Improve Writing",
        description="Enhance grammar, clarity, and style",
        category="writing",
        template="Please improve the writing of the following text, making it clearer, "
                 "more concise, and better structured:\n\n${text}",
    ),
    Operation(
        name="translate",
        title="Translate",
        description="Translate text to a given language",
        category="translation",
        template="Please translate the following text to ${language}:\n\n${text}",
        strip_prefixes=_TRANSLATION_PREFIXES,
    ),
    Operation(
        name="translate_en",
        title="Translate to English",
        description="Translate text to English",
        category="translation",
        template="Please provide only one of the most precise English translation "
                 "of the following text:\n\n${text}",
        strip_prefixes=_TRANSLATION_PREFIXES,
    ),
    Operation(
        name="translate_zh",
        title="Translate to Chinese",
        description="Translate text to Chinese",
        category="translation",
        template="Please provide only one of the most precise Chinese translation "
                 "of the following text:\n\n${text}",
        strip_prefixes=_TRANSLATION_PREFIXES,
    ),
    Operation(
        name="summarize",
        title="Summarize",
        description="Create a concise summary",
        category="analysis",
        template="Please provide a concise summary of the following text:\n\n${text}",
        strip_prefixes=("Here's a summary", "Here is a summary", "Summary"),
    ),
    Operation(
        name="explain",
        title="Explain",
        description="Explain the content clearly",
        category="analysis",
        template="Please explain the following text in simple, clear terms:\n\n${text}",
    ),
    Operation(
        name="fix_grammar",
        title="Fix Grammar",
        description="Fix grammar and spelling errors",
        category="writing",
        template="Please fix any grammar and spelling errors in the following text:\n\n${text}",
        strip_prefixes=(
            "Here's the corrected text",
            "Here is the corrected version",
            "The corrected text is",
            "Corrected text",
        ),
    ),
    Operation(
        name="tone",
        title="Change Tone",
        description="Rewrite in a given tone",
        category="writing",
        template="Please rewrite the following text in a ${tone} tone:\n\n${text}",
        defaults={"tone": "professional"},
    ),
    Operation(
        name="tone_professional",
        title="Make Professional",
        description="Change tone to professional",
        category="writing",
        template="Please rewrite the following text in a professional tone:\n\n${text}",
    ),
    Operation(
        name="tone_casual",
        title="Make Casual",
        description="Change tone to casual/friendly",
        category="writing",
        template="Please rewrite the following text in a casual, friendly tone:\n\n${text}",
    ),
    Operation(
        name="continue",
        title="Continue Writing",
        description="Extend and continue the text",
        category="writing",
        template="Please continue writing the following text in the same style and context:\n\n${text}",
    ),
    Operation(
        name=CUSTOM_OPERATION,
        title="Custom Prompt",
        description="Use your own instruction",
        category="custom",
        template="Please help with the following text:\n\n${text}",
    ),
)


class PromptLibrary:
    """Static table of operations plus prompt rendering."""

    def __init__(self, operations: Optional[List[Operation]] = None):
        """
        Initialize library.

        Args:
            operations: Operations overriding/extending the built-ins
        """
        self._operations: Dict[str, Operation] = {op.name: op for op in BUILTIN_OPERATIONS}
        for op in operations or []:
            self._operations[op.name] = op

    @classmethod
    def from_config(cls, prompts_config: Optional[Dict[str, Dict[str, Any]]] = None) -> 'PromptLibrary':
        """
        Build a library from the 'prompts' configuration section.

        Args:
            prompts_config: Mapping of operation id to {template, title, ...}
        """
        return cls(cls.parse_operations(prompts_config))

    @staticmethod
    def parse_operations(prompts_config: Optional[Dict[str, Dict[str, Any]]] = None) -> List[Operation]:
        """Convert validated 'prompts' entries into operations."""
        operations = []
        for name, config in (prompts_config or {}).items():
            operations.append(Operation(
                name=name,
                template=config["template"],
                title=config.get("title", ""),
                description=config.get("description", ""),
                category=config.get("category", "general"),
                defaults={str(k): str(v) for k, v in (config.get("defaults") or {}).items()},
                strip_prefixes=tuple(config.get("strip_prefixes") or ()),
            ))
        return operations

    def get(self, name: str) -> Optional[Operation]:
        return self._operations.get(name)

    def exists(self, name: str) -> bool:
        return name in self._operations

    def list_operations(self) -> List[Operation]:
        """Operations sorted by title for menus."""
        return sorted(self._operations.values(), key=lambda op: op.label)

    def required_parameters(self, name: str) -> List[str]:
        """Template parameters without defaults (text placeholders excluded)."""
        op = self._operations.get(name)
        if op is None:
            return []
        names = VariableSubstitutor().find_variables(op.template)
        return [n for n in names if n not in TEXT_VARIABLES and n not in op.defaults]

    def render(
        self,
        operation_id: str,
        text: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
        """
        Render the prompt for an operation.

        Args:
            operation_id: Operation identifier
            text: User text, inserted verbatim
            params: Template parameters (e.g. language); 'prompt' for custom

        Returns:
            Tuple of (prompt, error_dict) - error_dict is None if successful
        """
        params = params or {}

        op = self._operations.get(operation_id) if operation_id else None
        if op is None:
            return None, make_error(
                FailureKind.UNKNOWN_OPERATION,
                f"Unknown operation: {operation_id}",
                operation=operation_id,
            )

        if not text or not text.strip():
            return None, make_error(
                FailureKind.EMPTY_INPUT,
                "No input text provided",
                operation=operation_id,
            )

        if op.name == CUSTOM_OPERATION and params.get("prompt"):
            # Caller owns the whole instruction
            return f"{str(params['prompt']).rstrip()}{TEXT_DELIMITER}{text}", None

        substitutor = VariableSubstitutor()
        values: Dict[str, Any] = dict(op.defaults)
        values.update({k: v for k, v in params.items() if v is not None and v != ""})

        referenced = substitutor.find_variables(op.template)
        missing = [n for n in referenced if n not in TEXT_VARIABLES and n not in values]
        if missing:
            return None, make_error(
                FailureKind.MISSING_PARAMETER,
                f"Missing parameter '{missing[0]}' for operation '{op.name}'",
                operation=op.name,
                missing_parameters=missing,
            )

        for name in TEXT_VARIABLES:
            values[name] = text

        # Single pass: inserted values are never rescanned
        prompt = substitutor.substitute(op.template, values, track_undefined=False)

        if not any(name in referenced for name in TEXT_VARIABLES):
            prompt = f"{prompt.rstrip()}{TEXT_DELIMITER}{text}"

        logger.debug(f"Rendered '{op.name}' prompt ({len(prompt)} chars)")
        return prompt, None

    def clean_response(self, operation_id: str, response: str) -> str:
        """
        Strip boilerplate lead-ins such as 'Here's the translation:'.

        Args:
            operation_id: Operation the response belongs to
            response: Provider output

        Returns:
            Cleaned response (unchanged if nothing matched)
        """
        cleaned = response.strip()
        op = self._operations.get(operation_id)
        if op is None or not op.strip_prefixes:
            return cleaned

        for prefix in op.strip_prefixes:
            pattern = re.compile(r'^' + re.escape(prefix) + r'\s*:\s*', re.IGNORECASE)
            stripped = pattern.sub('', cleaned, count=1).strip()
            if stripped != cleaned and stripped:
                return stripped

        return cleaned
