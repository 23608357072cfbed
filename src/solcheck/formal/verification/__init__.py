"""External solver invocation.

Solvers are run as subprocesses over SMT-LIBv2 text; the textual CHC
backend uses this to forward queries it has no stored answer for.
"""

from .solver_runner import (
    SolverSpec,
    SolverRunResult,
    resolve_solver,
    first_response,
    run_solver,
    run_solver_on_text,
    make_query_callback,
)

__all__ = [
    "SolverSpec",
    "SolverRunResult",
    "resolve_solver",
    "first_response",
    "run_solver",
    "run_solver_on_text",
    "make_query_callback",
]
