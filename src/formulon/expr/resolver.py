"""
Identifier resolution: constants first, then caller-supplied variables.
"""

import numbers
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidVariableError
from .numeric import Number, NumberSystem


@lru_cache(maxsize=None)
def default_constants(number_system: NumberSystem) -> Mapping[str, Number]:
    """Returns the shared, read-only constant table for a number system."""
    pi = number_system.pi
    half_turn = number_system.convert(180)
    return MappingProxyType(
        {
            "pi": pi,
            "e": number_system.e,
            "deg": half_turn / pi,
            "rad": pi / half_turn,
        }
    )


def widen_variables(
    variables: Optional[Mapping[str, Any]], number_system: NumberSystem
) -> Dict[str, Number]:
    """
    Converts caller-supplied variables into the number system.

    Integers (and any other real numbers) are widened with the system's
    conversion. Booleans and non-numeric values are rejected.

    Raises:
        InvalidVariableError: If a value is not a real number or does not fit
    """
    widened: Dict[str, Number] = {}
    for name, value in (variables or {}).items():
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidVariableError(
                name, f"expected a real number, got {type(value).__name__}"
            )
        try:
            widened[name] = number_system.convert(value)
        except OverflowError as e:
            raise InvalidVariableError(name, str(e)) from e
    return widened


class IdentifierResolver:
    """Looks up identifiers in a constant table and a variable mapping."""

    def __init__(
        self,
        constants: Mapping[str, Number],
        variables: Optional[Mapping[str, Number]] = None,
    ):
        self._constants = constants
        self._variables: Mapping[str, Number] = variables or {}

    @property
    def variables(self) -> Mapping[str, Number]:
        return self._variables

    @variables.setter
    def variables(self, variables: Mapping[str, Number]) -> None:
        self._variables = variables

    def resolve(self, name: str) -> Optional[Number]:
        # Constants shadow variables of the same name.
        if name in self._constants:
            return self._constants[name]
        return self._variables.get(name)
