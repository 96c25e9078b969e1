"""
Function table and default built-in functions.

Each entry pairs an arity with a callable. Fixed-arity functions (0 to 4
arguments) receive their arguments positionally; variadic functions
accept one or more arguments and receive them as a single list. In both
cases arguments arrive in left-to-right source order.
"""

import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from .errors import InvalidArgumentError
from .numeric import Number, NumberSystem

# Arity marker for functions accepting one or more arguments.
VARIADIC: Optional[int] = None

MAX_FIXED_ARITY = 4

# Signature of a registered function. Variadic functions take one list.
FunctionCallable = Callable[..., Number]


def _is_valid_name(name: str) -> bool:
    return bool(name) and name[0].isalpha() and name.isalnum()


@dataclass(frozen=True)
class Function:
    """A callable together with the number of arguments it accepts."""

    arity: Optional[int]
    fn: FunctionCallable

    def __post_init__(self) -> None:
        if self.arity is not None and not 0 <= self.arity <= MAX_FIXED_ARITY:
            raise ValueError(
                f"arity must be between 0 and {MAX_FIXED_ARITY} or VARIADIC, "
                f"got {self.arity}"
            )
        if not callable(self.fn):
            raise ValueError("fn must be callable")

    @property
    def is_variadic(self) -> bool:
        return self.arity is None

    def accepts(self, count: int) -> bool:
        """Checks whether a call site with ``count`` arguments matches."""
        if self.arity is None:
            return count >= 1
        return count == self.arity

    def invoke(self, args: Sequence[Number]) -> Number:
        """Calls the function with arguments in left-to-right order."""
        if self.arity is None:
            return self.fn(list(args))
        return self.fn(*args)


class FunctionTable:
    """Mutable mapping of function names to entries."""

    def __init__(self, functions: Optional[Dict[str, Function]] = None):
        self._functions: Dict[str, Function] = dict(functions or {})

    def lookup(self, name: str) -> Optional[Function]:
        return self._functions.get(name)

    def register(self, name: str, arity: Optional[int], fn: FunctionCallable) -> Function:
        """Inserts or replaces a function."""
        if not _is_valid_name(name):
            raise ValueError(
                f"Invalid function name: {name!r} (must start with a letter and "
                "contain only letters and digits)"
            )
        entry = Function(arity, fn)
        self._functions[name] = entry
        return entry

    def unregister(self, name: str) -> None:
        """Removes a function; unknown names are ignored."""
        self._functions.pop(name, None)

    def names(self) -> List[str]:
        return sorted(self._functions)

    def copy(self) -> "FunctionTable":
        return FunctionTable(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions


# ============================================================
# Defaults
# ============================================================


def _clamp(x: Number, lower: Number, upper: Number) -> Number:
    """clamp(x, lo, hi) - Limits x to the closed range [lo, hi]."""
    if lower > upper:
        raise InvalidArgumentError("clamp", "lower bound exceeds upper bound")
    if x < lower:
        return lower
    if x > upper:
        return upper
    return x


def _min(values: List[Number]) -> Number:
    """min(a, ...) - Smallest argument."""
    result = values[0]
    for value in values[1:]:
        if value < result:
            result = value
    return result


def _max(values: List[Number]) -> Number:
    """max(a, ...) - Largest argument."""
    result = values[0]
    for value in values[1:]:
        if value > result:
            result = value
    return result


# Arity of each default function taken from the number system.
MATH_FUNCTION_ARITIES: Dict[str, int] = {
    "abs": 1,
    "sin": 1,
    "cos": 1,
    "tan": 1,
    "asin": 1,
    "acos": 1,
    "atan": 1,
    "sqrt": 1,
    "cbrt": 1,
    "atan2": 2,
    "pow": 2,
}


def default_functions(
    number_system: NumberSystem, rng: Optional[random.Random] = None
) -> FunctionTable:
    """
    Builds the default function table for a number system.

    Args:
        number_system: Supplies the math functions and random values
        rng: Random source for ``rand()``; a fresh unseeded one if omitted

    Returns:
        A new table the caller may modify freely
    """
    rng = rng or random.Random()
    math_functions = number_system.math_functions()

    table = FunctionTable()
    table.register("rand", 0, lambda: number_system.random(rng))
    for name, arity in MATH_FUNCTION_ARITIES.items():
        table.register(name, arity, math_functions[name])
    table.register("min", VARIADIC, _min)
    table.register("max", VARIADIC, _max)
    table.register("clamp", 3, _clamp)
    return table
