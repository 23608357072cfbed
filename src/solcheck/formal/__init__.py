"""
CHC-based formal verification of smart contracts.

This package encodes type-checked contract programs as Constrained Horn
Clauses and uses a Horn-clause solver to prove assertions safe.
"""

__version__ = "0.1.0"

from .solver import (
    CHCSolverInterface,
    CHCSmtLib2Solver,
    QueryResult,
    SolverResult,
    Z3CHCSolver,
)
from .chc import CHCEncoder
from .config import CHCSettings, create_solver_interface
from .checker import CHCReport, check_source_unit
from .errors import InternalEncodingError
from .reporting import ErrorReporter

__all__ = [
    "CHCSolverInterface",
    "CHCSmtLib2Solver",
    "QueryResult",
    "SolverResult",
    "Z3CHCSolver",
    "CHCEncoder",
    "CHCSettings",
    "create_solver_interface",
    "CHCReport",
    "check_source_unit",
    "InternalEncodingError",
    "ErrorReporter",
]
