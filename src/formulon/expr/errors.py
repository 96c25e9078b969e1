"""
Error types for the formula evaluation engine.

All expression errors extend ExpressionError for consistent handling.
"""

from typing import Optional


class ExpressionError(Exception):
    """
    Base error class for all expression-related errors.
    """

    def __init__(
        self,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.position = position
        self.expression = expression

    def format_with_context(self) -> str:
        """
        Returns a formatted error message with position context.
        """
        if self.expression is None or self.position is None:
            return self.message

        pointer = " " * self.position + "^"
        return f"{self.message}\n  {self.expression}\n  {pointer}"

    def with_context(self, position: Optional[int], expression: str) -> "ExpressionError":
        """Fills in position and source when the raiser did not know them."""
        if self.position is None:
            self.position = position
        if self.expression is None:
            self.expression = expression
        return self


class ParseError(ExpressionError):
    """
    Error thrown when the token stream does not match the grammar.
    """

    pass


class UnexpectedTokenError(ParseError):
    """
    Error thrown when the grammar cannot consume the current token.
    """

    def __init__(
        self,
        token: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        if token:
            message = f'Unexpected token "{token}"'
        else:
            message = "Unexpected end of expression"
        super().__init__(message, position, expression)
        self.token = token


class InvalidNumberLiteralError(ParseError):
    """
    Error thrown when a number literal cannot be parsed.
    """

    def __init__(
        self,
        text: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f'Invalid number literal "{text}"', position, expression)
        self.text = text


class EvaluationError(ExpressionError):
    """
    Error thrown during evaluation (runtime error).
    """

    pass


class UnknownIdentifierError(EvaluationError):
    """
    Error thrown when an identifier is neither a constant nor a variable.
    """

    def __init__(
        self,
        name: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f'Unknown identifier "{name}"', position, expression)
        self.name = name


class UnknownFunctionError(EvaluationError):
    """
    Error thrown when a called function is not registered.
    """

    def __init__(
        self,
        name: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(f'Unknown function "{name}"', position, expression)
        self.name = name


class ArgumentCountError(EvaluationError):
    """
    Error thrown when a call site passes the wrong number of arguments.

    ``expected`` is None for variadic functions, which accept one or more.
    """

    def __init__(
        self,
        function_name: str,
        expected: Optional[int],
        actual: int,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        if expected is None:
            requirement = "expects at least one argument"
        else:
            requirement = f"expects exactly {expected} argument(s)"
        message = (
            f'Incorrect number of arguments for function "{function_name}"; '
            f"{requirement}, got {actual}"
        )
        super().__init__(message, position, expression)
        self.function_name = function_name
        self.expected = expected
        self.actual = actual


class BuiltinError(EvaluationError):
    """
    Error thrown when a registered function encounters an error.
    """

    def __init__(
        self,
        function_name: str,
        message: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        full_message = f"{function_name}: {message}"
        super().__init__(full_message, position, expression)
        self.function_name = function_name


class InvalidArgumentError(BuiltinError):
    """
    Error thrown when a function rejects arguments of the correct count.
    """

    def __init__(
        self,
        function_name: str,
        reason: str,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__(function_name, reason, position, expression)
        self.reason = reason


class DivisionByZeroError(EvaluationError):
    """
    Error thrown when the right operand of '/' is zero.
    """

    def __init__(
        self,
        position: Optional[int] = None,
        expression: Optional[str] = None,
    ):
        super().__init__("Division by zero", position, expression)


class InvalidVariableError(EvaluationError):
    """
    Error thrown when a variable value cannot be converted to a number.
    """

    def __init__(self, name: str, reason: str):
        super().__init__(f'Invalid value for variable "{name}": {reason}')
        self.name = name
        self.reason = reason


class StackUnderflowError(EvaluationError):
    """
    Error thrown when popping from an empty value stack.
    """

    def __init__(self):
        super().__init__("Pop called on an empty value stack")


class ExcessStackDepthError(EvaluationError):
    """
    Error thrown when more than one value remains after parsing.
    """

    def __init__(self, depth: int, expression: Optional[str] = None):
        super().__init__(
            f"Final stack too deep: {depth} values remain, expected 1",
            expression=expression,
        )
        self.depth = depth


class NoFinalValueError(EvaluationError):
    """
    Error thrown when no value remains after parsing.
    """

    def __init__(self, expression: Optional[str] = None):
        super().__init__("No final value on stack", expression=expression)


class LimitExceededError(ExpressionError):
    """
    Error thrown when expression limits are exceeded.
    """

    def __init__(self, limit_name: str, limit: int, actual: int):
        message = f"Limit exceeded: {limit_name} (limit: {limit}, actual: {actual})"
        super().__init__(message)
        self.limit_name = limit_name
        self.limit = limit
        self.actual = actual


class StackOverflowError(LimitExceededError):
    """
    Error thrown when a push would exceed the maximum stack depth.
    """

    def __init__(self, max_depth: int):
        super().__init__("stack depth", max_depth, max_depth + 1)
        self.max_depth = max_depth


class NestingDepthError(LimitExceededError):
    """
    Error thrown when parentheses or calls nest deeper than allowed.
    """

    def __init__(self, max_depth: int):
        super().__init__("nesting depth", max_depth, max_depth + 1)
        self.max_depth = max_depth
