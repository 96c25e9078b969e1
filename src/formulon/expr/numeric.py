"""
Number systems for the formula engine.

A number system is the numeric collaborator of the evaluator: it parses
literals, widens integer variables and supplies the transcendental
functions and constants. The default is Python's float backed by the
math module; NumPy scalar types provide the other floating-point widths.
"""

import math
import random
from typing import Callable, Dict, Union

import numpy as np

# Runtime value type produced by every number system.
Number = Union[float, np.floating]

# Enough digits for the widest supported type.
PI_TEXT = "3.14159265358979323846264338327950288"
E_TEXT = "2.71828182845904523536"


class NumberSystem:
    """Base class for numeric types usable by the evaluator."""

    name: str = ""

    @property
    def zero(self) -> Number:
        return self.convert(0)

    @property
    def pi(self) -> Number:
        return self.parse(PI_TEXT)

    @property
    def e(self) -> Number:
        return self.parse(E_TEXT)

    def parse(self, text: str) -> Number:
        """Parses a literal. Raises ValueError when the text is malformed."""
        raise NotImplementedError

    def convert(self, value: Union[int, float]) -> Number:
        """Widens a Python number into this system."""
        raise NotImplementedError

    def random(self, rng: random.Random) -> Number:
        """Returns a uniform random value in [0, 1)."""
        raise NotImplementedError

    def math_functions(self) -> Dict[str, Callable[..., Number]]:
        """Returns the unary and binary math functions keyed by name."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class FloatNumbers(NumberSystem):
    """Double precision using Python floats and the math module."""

    name = "float64"

    @property
    def pi(self) -> Number:
        return math.pi

    @property
    def e(self) -> Number:
        return math.e

    def parse(self, text: str) -> Number:
        return float(text)

    def convert(self, value: Union[int, float]) -> Number:
        return float(value)

    def random(self, rng: random.Random) -> Number:
        return rng.random()

    def math_functions(self) -> Dict[str, Callable[..., Number]]:
        return {
            "abs": abs,
            "sin": math.sin,
            "cos": math.cos,
            "tan": math.tan,
            "asin": math.asin,
            "acos": math.acos,
            "atan": math.atan,
            "atan2": math.atan2,
            "pow": math.pow,
            "sqrt": math.sqrt,
            "cbrt": math.cbrt,
        }


class NumpyNumbers(NumberSystem):
    """
    A NumPy floating-point scalar type.

    Math functions run under ``np.errstate(all="raise")`` so domain and
    overflow problems surface as FloatingPointError instead of NaN or inf.
    """

    def __init__(self, dtype: type, name: str):
        self.dtype = dtype
        self.name = name

    def parse(self, text: str) -> Number:
        return self.dtype(text)

    def convert(self, value: Union[int, float]) -> Number:
        return self.dtype(value)

    def random(self, rng: random.Random) -> Number:
        value = self.dtype(rng.random())
        # Narrow types can round values just below 1 up to exactly 1.
        if value >= 1:
            value = np.nextafter(self.dtype(1), self.dtype(0))
        return value

    def _strict(self, ufunc: Callable[..., Number]) -> Callable[..., Number]:
        dtype = self.dtype

        def call(*args: Number) -> Number:
            with np.errstate(all="raise"):
                return dtype(ufunc(*(dtype(arg) for arg in args)))

        call.__name__ = getattr(ufunc, "__name__", "ufunc")
        return call

    def math_functions(self) -> Dict[str, Callable[..., Number]]:
        return {
            "abs": self._strict(np.abs),
            "sin": self._strict(np.sin),
            "cos": self._strict(np.cos),
            "tan": self._strict(np.tan),
            "asin": self._strict(np.arcsin),
            "acos": self._strict(np.arccos),
            "atan": self._strict(np.arctan),
            "atan2": self._strict(np.arctan2),
            "pow": self._strict(np.power),
            "sqrt": self._strict(np.sqrt),
            "cbrt": self._strict(np.cbrt),
        }


FLOAT64 = FloatNumbers()
FLOAT32 = NumpyNumbers(np.float32, "float32")
LONGDOUBLE = NumpyNumbers(np.longdouble, "longdouble")

NUMBER_SYSTEMS: Dict[str, NumberSystem] = {
    FLOAT64.name: FLOAT64,
    FLOAT32.name: FLOAT32,
    LONGDOUBLE.name: LONGDOUBLE,
}


def get_number_system(name: str) -> NumberSystem:
    """Looks up a number system by name ("float64", "float32", "longdouble")."""
    try:
        return NUMBER_SYSTEMS[name]
    except KeyError:
        known = ", ".join(sorted(NUMBER_SYSTEMS))
        raise ValueError(f"Unknown number system: {name} (known: {known})") from None
