"""
Variable substitution module.
Implements ${name} resolution for prompt templates.
"""

from .substitution import VariableSubstitutor

__all__ = ['VariableSubstitutor']
