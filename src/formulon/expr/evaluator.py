"""
Recursive-descent formula evaluator.

Parses and evaluates in a single pass: each grammar rule pushes its
operands onto a bounded value stack and binary operators pop their two
operands (right first) and push the result. No syntax tree is built.

Precedence (lowest to highest):
1. Additive: +, -
2. Multiplicative: *, /
3. Unary sign: +, -
4. Primary: number literals, identifiers, calls, parentheses

Grammar:
    expression := term (('+' | '-') term)*
    term       := factor (('*' | '/') factor)*
    factor     := ('+' | '-')? (primary | '(' expression ')')
    primary    := NUMBER | IDENTIFIER ['(' arglist ')']
    arglist    := (expression (',' expression)*)?
"""

import logging
import numbers
import random
from dataclasses import dataclass
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    Hashable,
    Iterable,
    List,
    Mapping,
    Optional,
    TypeVar,
)

from .builtins import FunctionCallable, FunctionTable, default_functions
from .errors import (
    ArgumentCountError,
    BuiltinError,
    DivisionByZeroError,
    ExcessStackDepthError,
    ExpressionError,
    InvalidArgumentError,
    InvalidNumberLiteralError,
    NoFinalValueError,
    UnexpectedTokenError,
    UnknownFunctionError,
    UnknownIdentifierError,
)
from .limits import (
    DEFAULT_EXPRESSION_LIMITS,
    ExpressionLimits,
    check_expression_length,
    check_nesting_depth,
)
from .numeric import FLOAT64, Number, NumberSystem
from .resolver import IdentifierResolver, default_constants, widen_variables
from .stack import ValueStack
from .tokenizer import Token, Tokenizer, TokenType

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)

# Tokens that can never begin a further top-level expression.
_TRAILING_GARBAGE = (TokenType.RPAREN, TokenType.COMMA, TokenType.UNKNOWN)


@dataclass
class EvaluationResult:
    """Result of a non-raising evaluation."""

    value: Optional[Number]
    """The evaluated value."""

    success: bool
    """Whether evaluation succeeded."""

    error: Optional[str] = None
    """Error message if evaluation failed."""


class Evaluator:
    """
    Stateful formula evaluator.

    Holds the expression text, the variables, the value stack and the
    function table between calls, so one instance can evaluate the same
    formula repeatedly against new variables. Instances are not safe for
    concurrent use; give each thread its own.

    ``seed`` seeds the ``rand()`` of the default function table and cannot
    be combined with an explicit ``functions`` table.
    """

    def __init__(
        self,
        expression: str = "",
        variables: Optional[Mapping[str, Any]] = None,
        *,
        number_system: Optional[NumberSystem] = None,
        limits: Optional[ExpressionLimits] = None,
        functions: Optional[FunctionTable] = None,
        seed: Optional[int] = None,
    ):
        # A supplied table keeps whatever random source its rand() captured.
        if functions is not None and seed is not None:
            raise ValueError("seed only applies to the default function table")
        self._number_system = number_system or FLOAT64
        self._limits = limits or DEFAULT_EXPRESSION_LIMITS
        self._random = random.Random(seed)
        if functions is None:
            self._functions = default_functions(self._number_system, self._random)
        else:
            self._functions = functions.copy()
        self._constants = default_constants(self._number_system)
        self._resolver = IdentifierResolver(
            self._constants, widen_variables(variables, self._number_system)
        )
        self._expression = expression
        self._tokenizer = Tokenizer(expression)
        self._token = Token(TokenType.EOF, "", 0)
        self._stack: ValueStack[Number] = ValueStack(self._limits.max_stack_depth)
        self._nesting_depth = 0

    # ============================================================
    # Public API
    # ============================================================

    @property
    def expression(self) -> str:
        return self._expression

    @property
    def variables(self) -> Mapping[str, Number]:
        return MappingProxyType(dict(self._resolver.variables))

    @property
    def constants(self) -> Mapping[str, Number]:
        return self._constants

    @property
    def functions(self) -> FunctionTable:
        return self._functions

    @property
    def number_system(self) -> NumberSystem:
        return self._number_system

    @property
    def limits(self) -> ExpressionLimits:
        return self._limits

    def set_variables(self, variables: Mapping[str, Any]) -> None:
        """Replaces all variables, widening them into the number system."""
        self._resolver.variables = widen_variables(variables, self._number_system)

    def evaluate(
        self,
        expression: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> Number:
        """
        Evaluates an expression.

        Args:
            expression: New expression text, or None to reuse the current one
            variables: New variables (replacing the current ones), or None

        Returns:
            The value of the expression; zero for empty text

        Raises:
            ExpressionError: If parsing or evaluation fails
        """
        if expression is not None:
            self._expression = expression
        if variables is not None:
            self.set_variables(variables)

        try:
            value = self._run()
        except ExpressionError as error:
            error.with_context(self._token.position, self._expression)
            logger.debug(
                "expression_failed",
                extra={"expression": self._expression, "error": error.message},
            )
            raise

        logger.debug(
            "expression_evaluated",
            extra={"expression": self._expression, "result": value},
        )
        return value

    def evaluate_many(
        self,
        expressions: Iterable[str],
        variables: Optional[Mapping[str, Any]] = None,
    ) -> List[Number]:
        """Evaluates expressions in order, stopping at the first failure."""
        if variables is not None:
            self.set_variables(variables)
        return [self.evaluate(expression) for expression in expressions]

    def evaluate_named(
        self,
        expressions: Mapping[K, str],
        variables: Optional[Mapping[str, Any]] = None,
    ) -> Dict[K, Number]:
        """
        Evaluates a mapping of expressions, keeping the input keys.

        Either every entry succeeds or the first failure is raised and no
        results are returned.
        """
        if variables is not None:
            self.set_variables(variables)
        return {key: self.evaluate(text) for key, text in expressions.items()}

    def register_function(
        self, name: str, arity: Optional[int], fn: FunctionCallable
    ) -> None:
        """
        Registers or replaces a function on this evaluator.

        Args:
            name: Function name as written in expressions
            arity: 0 to 4, or VARIADIC for one or more arguments
            fn: Positional callable, or a callable taking one list if variadic
        """
        self._functions.register(name, arity, fn)
        logger.debug("function_registered", extra={"function": name, "arity": arity})

    def unregister_function(self, name: str) -> None:
        """Removes a function; unknown names are ignored."""
        self._functions.unregister(name)
        logger.debug("function_unregistered", extra={"function": name})

    # ============================================================
    # Session
    # ============================================================

    def _run(self) -> Number:
        source = self._expression
        check_expression_length(source, self._limits)

        self._tokenizer.reset(source)
        self._stack.clear()
        self._nesting_depth = 0
        self._advance()

        if self._token.type == TokenType.EOF:
            return self._number_system.zero

        self._parse_expression()

        # Juxtaposed operands ("1 2") are evaluated and rejected below by
        # the stack-depth check.
        while self._token.type != TokenType.EOF:
            if self._token.type in _TRAILING_GARBAGE:
                raise self._unexpected()
            self._parse_expression()

        depth = len(self._stack)
        if depth == 0:
            raise NoFinalValueError(source)
        if depth > 1:
            raise ExcessStackDepthError(depth, source)
        return self._stack.pop()

    # ============================================================
    # Token Helpers
    # ============================================================

    def _advance(self) -> None:
        self._token = self._tokenizer.next_token()

    def _unexpected(self) -> UnexpectedTokenError:
        return UnexpectedTokenError(
            self._token.value, self._token.position, self._expression
        )

    def _consume(self, token_type: TokenType) -> None:
        if self._token.type != token_type:
            raise self._unexpected()
        self._advance()

    def _enter_nesting(self) -> None:
        self._nesting_depth += 1
        check_nesting_depth(self._nesting_depth, self._limits)

    def _leave_nesting(self) -> None:
        self._nesting_depth -= 1

    # ============================================================
    # Grammar (by precedence, lowest to highest)
    # ============================================================

    def _parse_expression(self) -> None:
        """Parses additive: +, -"""
        self._parse_term()

        while self._token.type in (TokenType.PLUS, TokenType.MINUS):
            operator = self._token.type
            self._advance()
            self._parse_term()

            b = self._stack.pop()
            a = self._stack.pop()
            self._stack.push(a + b if operator == TokenType.PLUS else a - b)

    def _parse_term(self) -> None:
        """Parses multiplicative: *, /"""
        self._parse_factor()

        while self._token.type in (TokenType.STAR, TokenType.SLASH):
            operator = self._token
            self._advance()
            self._parse_factor()

            b = self._stack.pop()
            a = self._stack.pop()
            if operator.type == TokenType.STAR:
                self._stack.push(a * b)
            else:
                if b == 0:
                    raise DivisionByZeroError(operator.position, self._expression)
                self._stack.push(a / b)

    def _parse_factor(self) -> None:
        """Parses an optionally signed primary or parenthesized expression."""
        negate = False
        if self._token.type == TokenType.PLUS:
            self._advance()
        elif self._token.type == TokenType.MINUS:
            negate = True
            self._advance()

        if self._token.type == TokenType.LPAREN:
            self._enter_nesting()
            self._advance()
            self._parse_expression()
            self._consume(TokenType.RPAREN)
            self._leave_nesting()
        else:
            self._parse_primary()

        if negate:
            self._stack.push(-self._stack.pop())

    def _parse_primary(self) -> None:
        """Parses number literals, identifiers and function calls."""
        token = self._token

        if token.type == TokenType.NUMBER:
            try:
                value = self._number_system.parse(token.value)
            except (ValueError, ArithmeticError):
                raise InvalidNumberLiteralError(
                    token.value, token.position, self._expression
                ) from None
            self._stack.push(value)
            self._advance()
            return

        if token.type == TokenType.IDENTIFIER:
            self._advance()

            if self._token.type == TokenType.LPAREN:
                self._parse_call(token)
                return

            value = self._resolver.resolve(token.value)
            if value is None:
                raise UnknownIdentifierError(
                    token.value, token.position, self._expression
                )
            self._stack.push(value)
            return

        raise self._unexpected()

    def _parse_call(self, name_token: Token) -> None:
        """Parses a call; the current token is the opening parenthesis."""
        name = name_token.value
        function = self._functions.lookup(name)
        if function is None:
            raise UnknownFunctionError(name, name_token.position, self._expression)

        self._enter_nesting()
        self._advance()
        count = self._parse_argument_list()
        self._leave_nesting()

        if not function.accepts(count):
            raise ArgumentCountError(
                name, function.arity, count, name_token.position, self._expression
            )

        args = self._stack.pop_many(count)
        try:
            result = function.invoke(args)
        except ExpressionError as error:
            error.with_context(name_token.position, self._expression)
            raise
        except (ValueError, ArithmeticError) as e:
            raise InvalidArgumentError(
                name,
                str(e) or type(e).__name__,
                name_token.position,
                self._expression,
            ) from e
        except Exception as e:
            raise BuiltinError(
                name,
                f"{type(e).__name__}: {e}",
                name_token.position,
                self._expression,
            ) from e

        if isinstance(result, bool) or not isinstance(result, numbers.Real):
            raise BuiltinError(
                name,
                f"returned {type(result).__name__}, expected a number",
                name_token.position,
                self._expression,
            )
        self._stack.push(self._number_system.convert(result))

    def _parse_argument_list(self) -> int:
        """Parses call arguments up to and including ')' and counts them."""
        count = 0

        if self._token.type != TokenType.RPAREN:
            self._parse_expression()
            count += 1
            while self._token.type == TokenType.COMMA:
                self._advance()
                self._parse_expression()
                count += 1

        self._consume(TokenType.RPAREN)
        return count


# ============================================================
# One-shot helpers
# ============================================================


def evaluate(
    expression: str,
    variables: Optional[Mapping[str, Any]] = None,
    *,
    number_system: Optional[NumberSystem] = None,
    limits: Optional[ExpressionLimits] = None,
    functions: Optional[FunctionTable] = None,
) -> Number:
    """
    Evaluates a single expression.

    Args:
        expression: The formula text
        variables: Name to value bindings; integers are widened
        number_system: Numeric type to evaluate in (default FLOAT64)
        limits: Optional expression limits
        functions: Function table to use instead of the defaults

    Returns:
        The value of the expression

    Raises:
        ExpressionError: If parsing or evaluation fails
    """
    evaluator = Evaluator(
        expression,
        variables,
        number_system=number_system,
        limits=limits,
        functions=functions,
    )
    return evaluator.evaluate()


def evaluate_many(
    expressions: Iterable[str],
    variables: Optional[Mapping[str, Any]] = None,
    *,
    number_system: Optional[NumberSystem] = None,
    limits: Optional[ExpressionLimits] = None,
) -> List[Number]:
    """Evaluates several expressions against the same variables."""
    evaluator = Evaluator(variables=variables, number_system=number_system, limits=limits)
    return evaluator.evaluate_many(expressions)


def evaluate_named(
    expressions: Mapping[K, str],
    variables: Optional[Mapping[str, Any]] = None,
    *,
    number_system: Optional[NumberSystem] = None,
    limits: Optional[ExpressionLimits] = None,
) -> Dict[K, Number]:
    """Evaluates a mapping of expressions, returning results under the same keys."""
    evaluator = Evaluator(variables=variables, number_system=number_system, limits=limits)
    return evaluator.evaluate_named(expressions)


def try_evaluate(
    expression: str,
    variables: Optional[Mapping[str, Any]] = None,
    *,
    number_system: Optional[NumberSystem] = None,
    limits: Optional[ExpressionLimits] = None,
    functions: Optional[FunctionTable] = None,
) -> EvaluationResult:
    """
    Evaluates an expression without raising.

    Returns:
        The evaluation result with value and success status
    """
    try:
        value = evaluate(
            expression,
            variables,
            number_system=number_system,
            limits=limits,
            functions=functions,
        )
        return EvaluationResult(value=value, success=True)
    except ExpressionError as error:
        return EvaluationResult(value=None, success=False, error=str(error))
