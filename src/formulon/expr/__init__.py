"""
Arithmetic formula engine.

This module evaluates user-supplied arithmetic formulas with named
variables, constants and an extensible function table.
"""

# Builtins
from .builtins import (
    MAX_FIXED_ARITY,
    VARIADIC,
    Function,
    FunctionCallable,
    FunctionTable,
    default_functions,
)

# Configuration
from .config import EvaluatorConfig, create_evaluator
from .errors import (
    ArgumentCountError,
    BuiltinError,
    DivisionByZeroError,
    EvaluationError,
    ExcessStackDepthError,
    ExpressionError,
    InvalidArgumentError,
    InvalidNumberLiteralError,
    InvalidVariableError,
    LimitExceededError,
    NestingDepthError,
    NoFinalValueError,
    ParseError,
    StackOverflowError,
    StackUnderflowError,
    UnexpectedTokenError,
    UnknownFunctionError,
    UnknownIdentifierError,
)

# Evaluator
from .evaluator import (
    EvaluationResult,
    Evaluator,
    evaluate,
    evaluate_many,
    evaluate_named,
    try_evaluate,
)
from .limits import (
    DEFAULT_EXPRESSION_LIMITS,
    ExpressionLimits,
    check_expression_length,
    check_nesting_depth,
)

# Number systems
from .numeric import (
    FLOAT32,
    FLOAT64,
    LONGDOUBLE,
    NUMBER_SYSTEMS,
    FloatNumbers,
    Number,
    NumberSystem,
    NumpyNumbers,
    get_number_system,
)
from .resolver import IdentifierResolver, default_constants, widen_variables
from .stack import ValueStack

# Tokenizer
from .tokenizer import (
    Token,
    Tokenizer,
    TokenType,
    tokenize,
)

__all__ = [
    # Errors
    "ExpressionError",
    "ParseError",
    "UnexpectedTokenError",
    "InvalidNumberLiteralError",
    "EvaluationError",
    "UnknownIdentifierError",
    "UnknownFunctionError",
    "ArgumentCountError",
    "BuiltinError",
    "InvalidArgumentError",
    "DivisionByZeroError",
    "InvalidVariableError",
    "StackUnderflowError",
    "ExcessStackDepthError",
    "NoFinalValueError",
    "LimitExceededError",
    "StackOverflowError",
    "NestingDepthError",
    # Limits
    "ExpressionLimits",
    "DEFAULT_EXPRESSION_LIMITS",
    "check_expression_length",
    "check_nesting_depth",
    # Number systems
    "Number",
    "NumberSystem",
    "FloatNumbers",
    "NumpyNumbers",
    "FLOAT64",
    "FLOAT32",
    "LONGDOUBLE",
    "NUMBER_SYSTEMS",
    "get_number_system",
    # Tokenizer
    "Token",
    "TokenType",
    "Tokenizer",
    "tokenize",
    # Stack
    "ValueStack",
    # Builtins
    "VARIADIC",
    "MAX_FIXED_ARITY",
    "Function",
    "FunctionCallable",
    "FunctionTable",
    "default_functions",
    # Resolver
    "IdentifierResolver",
    "default_constants",
    "widen_variables",
    # Evaluator
    "Evaluator",
    "EvaluationResult",
    "evaluate",
    "evaluate_many",
    "evaluate_named",
    "try_evaluate",
    # Configuration
    "EvaluatorConfig",
    "create_evaluator",
]
