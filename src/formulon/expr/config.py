"""
Configuration model and factory for evaluators.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

from .evaluator import Evaluator
from .limits import DEFAULT_EXPRESSION_LIMITS, ExpressionLimits
from .numeric import get_number_system

NumberSystemName = Literal["float64", "float32", "longdouble"]


class EvaluatorConfig(BaseModel):
    """
    Configuration for creating an Evaluator.

    Supports both camelCase and snake_case property names.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    # Numeric type used for literals, variables and results
    number_system: NumberSystemName = Field(default="float64", alias="numberSystem")

    # Maximum expression string length in characters
    max_expression_length: int = Field(
        default=DEFAULT_EXPRESSION_LIMITS.max_expression_length,
        ge=1,
        alias="maxExpressionLength",
    )

    # Maximum number of values on the evaluation stack
    max_stack_depth: int = Field(
        default=DEFAULT_EXPRESSION_LIMITS.max_stack_depth,
        ge=1,
        alias="maxStackDepth",
    )

    # Maximum nesting of parentheses and function calls
    max_nesting_depth: int = Field(
        default=DEFAULT_EXPRESSION_LIMITS.max_nesting_depth,
        ge=1,
        alias="maxNestingDepth",
    )

    # Seed for rand(); None draws from system entropy
    random_seed: Optional[int] = Field(default=None, alias="randomSeed")

    # Initial variables
    variables: dict[str, Union[StrictInt, StrictFloat]] = Field(default_factory=dict)

    def to_limits(self) -> ExpressionLimits:
        return ExpressionLimits(
            max_expression_length=self.max_expression_length,
            max_stack_depth=self.max_stack_depth,
            max_nesting_depth=self.max_nesting_depth,
        )


def _normalize_config(
    config: EvaluatorConfig | dict[str, Any] | None,
) -> EvaluatorConfig:
    """Normalize configuration into an EvaluatorConfig."""
    if config is None:
        return EvaluatorConfig()
    if isinstance(config, EvaluatorConfig):
        return config
    return EvaluatorConfig.model_validate(config)


def create_evaluator(
    config: EvaluatorConfig | dict[str, Any] | None = None,
    expression: str = "",
) -> Evaluator:
    """
    Creates an Evaluator from configuration.

    Args:
        config: An EvaluatorConfig, a plain dict in either naming style, or
            None for defaults
        expression: Initial expression text

    Raises:
        pydantic.ValidationError: If the configuration is invalid
    """
    normalized = _normalize_config(config)
    return Evaluator(
        expression,
        normalized.variables,
        number_system=get_number_system(normalized.number_system),
        limits=normalized.to_limits(),
        seed=normalized.random_seed,
    )
