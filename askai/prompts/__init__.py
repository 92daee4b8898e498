"""
Prompt templates for text operations.
"""

from .library import Operation, PromptLibrary, BUILTIN_OPERATIONS, CUSTOM_OPERATION

__all__ = [
    "Operation",
    "PromptLibrary",
    "BUILTIN_OPERATIONS",
    "CUSTOM_OPERATION",
]
