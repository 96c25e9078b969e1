"""
Resource limits for expression parsing and evaluation.

These limits protect against resource exhaustion from overly long or
deeply nested formulas.
"""

from dataclasses import dataclass
from typing import Optional

from .errors import LimitExceededError, NestingDepthError


@dataclass(frozen=True)
class ExpressionLimits:
    """Expression limits configuration."""

    # Maximum expression string length in characters
    max_expression_length: int = 4096

    # Maximum number of values on the evaluation stack
    max_stack_depth: int = 100

    # Maximum nesting of parentheses and function calls
    max_nesting_depth: int = 64

    def __post_init__(self) -> None:
        for name in ("max_expression_length", "max_stack_depth", "max_nesting_depth"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")


# Default expression limits.
#
# The nesting ceiling keeps parser recursion well below the interpreter's
# default recursion limit.
DEFAULT_EXPRESSION_LIMITS = ExpressionLimits()


def check_expression_length(
    expression: str, limits: Optional[ExpressionLimits] = None
) -> None:
    """Validates that expression length is within limits."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if len(expression) > limits.max_expression_length:
        raise LimitExceededError(
            "expression length", limits.max_expression_length, len(expression)
        )


def check_nesting_depth(depth: int, limits: Optional[ExpressionLimits] = None) -> None:
    """Validates parenthesis and call nesting during parsing."""
    limits = limits or DEFAULT_EXPRESSION_LIMITS
    if depth > limits.max_nesting_depth:
        raise NestingDepthError(limits.max_nesting_depth)
