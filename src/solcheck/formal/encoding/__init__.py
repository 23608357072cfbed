"""Symbolic state tracking and expression encoding."""

from .context import EncodingContext
from .expr_encoder import ExpressionEncoder
from .symbolic_types import (
    max_value,
    min_value,
    smt_sort,
    type_constraints,
    wrap,
    zero_value,
)
from .symbolic_variables import SymbolicVariable

__all__ = [
    "EncodingContext",
    "ExpressionEncoder",
    "SymbolicVariable",
    "max_value",
    "min_value",
    "smt_sort",
    "type_constraints",
    "wrap",
    "zero_value",
]
