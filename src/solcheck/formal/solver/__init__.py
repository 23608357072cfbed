"""Horn-clause solver backends."""

from .base import CHCSolverInterface
from .horn import close_rule, free_constants
from .result import QueryResult, SolverResult
from .smtlib2_chc import CHCSmtLib2Solver, query_hash
from .z3_chc import Z3CHCSolver

__all__ = [
    "CHCSolverInterface",
    "CHCSmtLib2Solver",
    "QueryResult",
    "SolverResult",
    "Z3CHCSolver",
    "close_rule",
    "free_constants",
    "query_hash",
]
