"""
Tests for the recursive-descent evaluator.
"""

import logging
import math

import pytest

from formulon.expr import (
    DivisionByZeroError,
    EvaluationResult,
    Evaluator,
    ExcessStackDepthError,
    ExpressionError,
    ExpressionLimits,
    FunctionTable,
    InvalidArgumentError,
    InvalidNumberLiteralError,
    InvalidVariableError,
    LimitExceededError,
    NestingDepthError,
    Number,
    StackOverflowError,
    UnexpectedTokenError,
    UnknownFunctionError,
    UnknownIdentifierError,
    evaluate,
    evaluate_many,
    evaluate_named,
    try_evaluate,
)


def eval_expr(expression: str, variables: dict | None = None) -> Number:
    """Helper to evaluate an expression with optional variables."""
    return evaluate(expression, variables or {})


class TestArithmetic:
    """Tests for operators and precedence."""

    def test_addition(self):
        assert eval_expr("1 + 2") == 3

    def test_multiplication_binds_tighter(self):
        assert eval_expr("1 + 2 * 3") == 7

    def test_parentheses_override_precedence(self):
        assert eval_expr("(1 + 2) * 3") == 9

    def test_subtraction_is_left_associative(self):
        assert eval_expr("10 - 4 - 3") == 3

    def test_division_is_left_associative(self):
        assert eval_expr("100 / 10 / 5") == 2

    def test_mixed_precedence(self):
        assert eval_expr("2 + 12 / 4 * 3 - 1") == 10

    def test_decimal_literals(self):
        assert eval_expr("0.5 + .25") == 0.75

    def test_without_whitespace(self):
        assert eval_expr("2*(3+4)") == 14

    def test_single_token(self):
        assert eval_expr("10") == 10

    def test_result_is_float(self):
        assert isinstance(eval_expr("1 + 2"), float)

    def test_division_by_zero(self):
        with pytest.raises(DivisionByZeroError) as exc_info:
            eval_expr("1 / 0")
        assert exc_info.value.position == 2

    def test_division_by_computed_zero(self):
        with pytest.raises(DivisionByZeroError):
            eval_expr("1 / (2 - 2)")


class TestUnaryOperators:
    """Tests for sign prefixes."""

    def test_unary_minus(self):
        assert eval_expr("-5") == -5

    def test_unary_plus(self):
        assert eval_expr("+5") == 5

    def test_unary_minus_on_parentheses(self):
        assert eval_expr("-(2 + 3)") == -5

    def test_unary_minus_after_operator(self):
        assert eval_expr("2 * -3") == -6

    def test_unary_minus_binds_to_factor(self):
        assert eval_expr("-2 * 3 + 1") == -5

    def test_double_sign_is_rejected(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            eval_expr("--1")
        assert exc_info.value.token == "-"


class TestIdentifiers:
    """Tests for constants and variables."""

    def test_variables(self):
        variables = {"x": 1.0, "y": 2.0, "z": 3.0}
        assert eval_expr("x + y", variables) == 3
        assert eval_expr("x + y * z", variables) == 7
        assert eval_expr("(x + y) * z", variables) == 9

    def test_constants(self):
        assert eval_expr("pi") == math.pi
        assert eval_expr("e") == pytest.approx(2.71828182845904523536)
        assert eval_expr("180 * rad") == pytest.approx(math.pi)
        assert eval_expr("pi * deg") == pytest.approx(180.0)

    def test_constants_shadow_variables(self):
        assert eval_expr("pi", {"pi": 3}) == math.pi

    def test_unknown_identifier(self):
        with pytest.raises(UnknownIdentifierError) as exc_info:
            eval_expr("sdafaf")
        assert exc_info.value.name == "sdafaf"

    def test_unknown_function(self):
        with pytest.raises(UnknownFunctionError) as exc_info:
            eval_expr("sdafaf(4)")
        assert exc_info.value.name == "sdafaf"

    def test_unknown_function_reported_before_arguments(self):
        with pytest.raises(UnknownFunctionError):
            eval_expr("foo(bar)")

    def test_integer_variables_match_float_variables(self):
        ints = eval_expr("x / y + z", {"x": 1, "y": 2, "z": 3})
        floats = eval_expr("x / y + z", {"x": 1.0, "y": 2.0, "z": 3.0})
        assert ints == floats
        assert isinstance(ints, float)

    def test_boolean_variable_is_rejected(self):
        with pytest.raises(InvalidVariableError) as exc_info:
            eval_expr("x", {"x": True})
        assert exc_info.value.name == "x"

    def test_non_numeric_variable_is_rejected(self):
        with pytest.raises(InvalidVariableError, match="str"):
            eval_expr("x", {"x": "1"})

    def test_integer_too_large_to_widen(self):
        with pytest.raises(InvalidVariableError):
            eval_expr("x", {"x": 10**400})


class TestEmptyExpressions:
    """Tests for empty input."""

    def test_empty_expression_is_zero(self):
        assert eval_expr("") == 0

    def test_whitespace_expression_is_zero(self):
        assert eval_expr("   \t ") == 0


class TestMalformedExpressions:
    """Tests for syntax errors and final stack shape."""

    def test_trailing_operator(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            eval_expr("10+")
        assert exc_info.value.token == ""
        assert "end of expression" in str(exc_info.value)

    def test_juxtaposed_numbers(self):
        with pytest.raises(ExcessStackDepthError) as exc_info:
            eval_expr("1 2")
        assert exc_info.value.depth == 2

    def test_juxtaposed_parenthesized_expression(self):
        with pytest.raises(ExcessStackDepthError):
            eval_expr("1 (2)")

    def test_unbalanced_closing_parenthesis(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            eval_expr("1)")
        assert exc_info.value.token == ")"
        assert exc_info.value.position == 1

    def test_missing_closing_parenthesis(self):
        with pytest.raises(UnexpectedTokenError):
            eval_expr("(1 + 2")

    def test_empty_parentheses(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            eval_expr("()")
        assert exc_info.value.token == ")"

    def test_trailing_comma_in_call(self):
        with pytest.raises(UnexpectedTokenError):
            eval_expr("max(1,)")

    def test_unterminated_call(self):
        with pytest.raises(UnexpectedTokenError):
            eval_expr("max(1, 2")

    def test_unknown_character(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            eval_expr("2 % 3")
        assert exc_info.value.token == "%"

    def test_underscore_in_name(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            eval_expr("my_var", {"my": 1})
        assert exc_info.value.token == "_"

    @pytest.mark.parametrize("literal", ["1.2.3", ".", "1..2"])
    def test_invalid_number_literal(self, literal):
        with pytest.raises(InvalidNumberLiteralError) as exc_info:
            eval_expr(f"1 + {literal}")
        assert exc_info.value.text == literal
        assert exc_info.value.position == 4


class TestErrorContext:
    """Tests for error positions and formatting."""

    def test_errors_share_base_class(self):
        with pytest.raises(ExpressionError):
            eval_expr("foo")

    def test_format_with_context(self):
        with pytest.raises(UnknownIdentifierError) as exc_info:
            eval_expr("1 + foo")
        assert exc_info.value.format_with_context() == (
            'Unknown identifier "foo"\n  1 + foo\n      ^'
        )

    def test_function_errors_point_at_call(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            eval_expr("1 + clamp(2, 3, 1)")
        assert exc_info.value.position == 4
        assert exc_info.value.expression == "1 + clamp(2, 3, 1)"


class TestLimits:
    """Tests for resource limits."""

    def test_stack_overflow(self):
        evaluator = Evaluator(limits=ExpressionLimits(max_stack_depth=2))
        assert evaluator.evaluate("1 + 2 + 3 + 4") == 10
        with pytest.raises(StackOverflowError) as exc_info:
            evaluator.evaluate("1 + (2 + 3)")
        assert exc_info.value.max_depth == 2

    def test_nesting_depth(self):
        evaluator = Evaluator(limits=ExpressionLimits(max_nesting_depth=3))
        assert evaluator.evaluate("(((1)))") == 1
        with pytest.raises(NestingDepthError):
            evaluator.evaluate("((((1))))")

    def test_function_calls_count_towards_nesting(self):
        evaluator = Evaluator(limits=ExpressionLimits(max_nesting_depth=2))
        assert evaluator.evaluate("abs(abs(-1))") == 1
        with pytest.raises(NestingDepthError):
            evaluator.evaluate("abs((abs(-1)))")

    def test_deep_nesting_fails_cleanly_with_defaults(self):
        expression = "(" * 1000 + "1" + ")" * 1000
        with pytest.raises(NestingDepthError):
            eval_expr(expression)

    def test_expression_length(self):
        evaluator = Evaluator(limits=ExpressionLimits(max_expression_length=5))
        with pytest.raises(LimitExceededError) as exc_info:
            evaluator.evaluate("1 + 2 + 3")
        assert exc_info.value.limit == 5
        assert exc_info.value.actual == 9

    def test_limits_must_be_positive(self):
        with pytest.raises(ValueError):
            ExpressionLimits(max_stack_depth=0)


class TestStatefulEvaluator:
    """Tests for reusing an Evaluator instance."""

    def test_constructed_expression(self):
        assert Evaluator("1 + 2").evaluate() == 3

    def test_repeated_invocations(self):
        evaluator = Evaluator("1 + 2")
        assert evaluator.evaluate() == 3
        assert evaluator.evaluate() == 3

    def test_new_variables_replace_old(self):
        evaluator = Evaluator("a + b", {"a": 2, "b": 3})
        assert evaluator.evaluate() == 5
        assert evaluator.evaluate(variables={"a": 10, "b": 1}) == 11
        assert evaluator.evaluate() == 11
        assert dict(evaluator.variables) == {"a": 10.0, "b": 1.0}

    def test_variables_are_replaced_wholesale(self):
        evaluator = Evaluator("a", {"a": 2})
        evaluator.evaluate(variables={"b": 1})
        with pytest.raises(UnknownIdentifierError):
            evaluator.evaluate()

    def test_new_expression_is_kept(self):
        evaluator = Evaluator("1", {"a": 2, "b": 3})
        assert evaluator.evaluate("a * b") == 6
        assert evaluator.expression == "a * b"
        assert evaluator.evaluate() == 6

    def test_recovers_after_error(self):
        evaluator = Evaluator()
        with pytest.raises(UnexpectedTokenError):
            evaluator.evaluate("1 + (2 *")
        assert evaluator.evaluate("1 + 1") == 2

    def test_variables_view_is_read_only(self):
        evaluator = Evaluator(variables={"a": 1})
        with pytest.raises(TypeError):
            evaluator.variables["a"] = 2.0

    def test_constants_are_exposed(self):
        assert Evaluator().constants["pi"] == math.pi


class TestBatchEvaluation:
    """Tests for evaluate_many and evaluate_named."""

    def test_evaluate_many(self):
        assert evaluate_many(["1 + 2", "3 + 4"]) == [3, 7]

    def test_evaluate_many_with_variables(self):
        evaluator = Evaluator()
        assert evaluator.evaluate_many(["a + b", "a * b"], {"a": 2, "b": 3}) == [5, 6]
        assert evaluator.evaluate("a") == 2

    def test_evaluate_many_stops_at_first_failure(self):
        calls = []
        evaluator = Evaluator()
        evaluator.register_function("mark", 1, lambda x: calls.append(x) or x)
        with pytest.raises(UnknownIdentifierError):
            evaluator.evaluate_many(["mark(1)", "nope", "mark(2)"])
        assert calls == [1.0]

    def test_evaluate_named(self):
        result = evaluate_named({"a": "1 + 2", "b": "3 + 4"})
        assert result == {"a": 3, "b": 7}

    def test_evaluate_named_preserves_keys(self):
        result = evaluate_named({1: "x", (2, 3): "x * 2"}, {"x": 4})
        assert result == {1: 4, (2, 3): 8}

    def test_evaluate_named_uses_given_variables(self):
        evaluator = Evaluator(variables={"a": 1})
        assert evaluator.evaluate_named({"sum": "a + 1"}, {"a": 5}) == {"sum": 6}

    def test_evaluate_named_is_atomic(self):
        with pytest.raises(UnknownIdentifierError):
            evaluate_named({"ok": "1", "bad": "foo"})


class TestTryEvaluate:
    """Tests for non-raising evaluation."""

    def test_success(self):
        assert try_evaluate("2 * x", {"x": 4}) == EvaluationResult(
            value=8.0, success=True
        )

    def test_failure(self):
        result = try_evaluate("foo")
        assert result.success is False
        assert result.value is None
        assert result.error == 'Unknown identifier "foo"'

    def test_failure_from_raising_function(self):
        functions = FunctionTable()
        functions.register("boom", 0, lambda: {}["missing"])
        result = try_evaluate("boom() + 1", functions=functions)
        assert result.success is False
        assert result.value is None
        assert result.error.startswith("boom: KeyError")


class TestLogging:
    """Tests for debug logging."""

    def test_logs_successful_evaluation(self, caplog):
        caplog.set_level(logging.DEBUG, logger="formulon.expr.evaluator")
        evaluate("1 + 2")
        records = [r for r in caplog.records if r.getMessage() == "expression_evaluated"]
        assert len(records) == 1
        assert records[0].expression == "1 + 2"
        assert records[0].result == 3

    def test_logs_failure(self, caplog):
        caplog.set_level(logging.DEBUG, logger="formulon.expr.evaluator")
        with pytest.raises(UnknownIdentifierError):
            evaluate("foo")
        records = [r for r in caplog.records if r.getMessage() == "expression_failed"]
        assert len(records) == 1
        assert records[0].error == 'Unknown identifier "foo"'
