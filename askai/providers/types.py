"""
Provider type definitions.

Defines provider specs, resolved invocations and the tagged invocation result
shared by the executor and the engine.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple, Any
from enum import Enum


PROMPT_PLACEHOLDER = "${PROMPT}"


class FailureKind(str, Enum):
    """Failure taxonomy returned with every unsuccessful result."""
    NO_OPERATION_SPECIFIED = "NoOperationSpecified"
    NO_TEXT_PROVIDED = "NoTextProvided"
    UNKNOWN_OPERATION = "UnknownOperation"
    EMPTY_INPUT = "EmptyInput"
    MISSING_PARAMETER = "MissingParameter"
    UNKNOWN_PROVIDER = "UnknownProvider"
    NO_PROVIDER_CONFIGURED = "NoProviderConfigured"
    TIMEOUT = "Timeout"
    PROCESS_ERROR = "ProcessError"
    EMPTY_RESPONSE = "EmptyResponse"
    CANCELLED = "Cancelled"


def make_error(kind: FailureKind, message: str, **context: Any) -> Dict[str, Any]:
    """Build an error dict in the {type, message, context} shape."""
    return {
        "type": kind,
        "message": message,
        "context": context,
    }


@dataclass(frozen=True)
class ProviderSpec:
    """
    Provider command definition.

    Attributes:
        name: Provider identifier (e.g., 'claude', 'gemini')
        command: Command template array; ${PROMPT} marks the prompt argument
        enabled: Whether the provider may be invoked
        priority: Fallback rank, lower runs first
        timeout_sec: Per-provider timeout override
    """
    name: str
    command: Tuple[str, ...]
    enabled: bool = True
    priority: int = 100
    timeout_sec: Optional[float] = None

    @property
    def program(self) -> str:
        return self.command[0] if self.command else ""

    def validate(self) -> List[str]:
        """
        Validate provider configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.command:
            errors.append(f"Provider '{self.name}': command cannot be empty")
        elif not self.command[0]:
            errors.append(f"Provider '{self.name}': program name cannot be empty")

        placeholders = sum(1 for token in self.command if PROMPT_PLACEHOLDER in token)
        if placeholders > 1:
            errors.append(
                f"Provider '{self.name}': ${{PROMPT}} may appear at most once"
            )

        if self.timeout_sec is not None and self.timeout_sec <= 0:
            errors.append(f"Provider '{self.name}': timeout must be positive")

        return errors

    def build_argv(self, prompt: str) -> List[str]:
        """Render the argument list; the prompt goes last when no placeholder exists."""
        argv = []
        substituted = False
        for token in self.command:
            if PROMPT_PLACEHOLDER in token:
                # Prompt content is literal; nothing else is scanned after insertion
                argv.append(token.replace(PROMPT_PLACEHOLDER, prompt))
                substituted = True
            else:
                argv.append(token)
        if not substituted:
            argv.append(prompt)
        return argv


@dataclass
class ProviderInvocation:
    """
    Resolved provider invocation ready for execution.

    Attributes:
        provider: Provider name
        argv: Fully resolved command array
        timeout_sec: Execution timeout
        env: Child process environment (None inherits)
    """
    provider: str
    argv: List[str]
    timeout_sec: float
    env: Optional[Dict[str, str]] = None


@dataclass
class InvocationResult:
    """Outcome of one attempt, or of a whole chain."""
    success: bool
    text: str = ""
    provider: str = ""
    duration_ms: int = 0
    error: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, text: str, provider: str = "", duration_ms: int = 0) -> 'InvocationResult':
        return cls(success=True, text=text, provider=provider, duration_ms=duration_ms)

    @classmethod
    def failure(
        cls,
        kind: FailureKind,
        message: str,
        provider: str = "",
        duration_ms: int = 0,
        **context: Any
    ) -> 'InvocationResult':
        return cls(
            success=False,
            provider=provider,
            duration_ms=duration_ms,
            error=make_error(kind, message, **context),
        )

    @property
    def kind(self) -> Optional[FailureKind]:
        return self.error["type"] if self.error else None

    @property
    def message(self) -> str:
        if self.success:
            return self.text
        return self.error["message"] if self.error else ""

    def as_tuple(self) -> Tuple[bool, str]:
        return self.success, self.message
