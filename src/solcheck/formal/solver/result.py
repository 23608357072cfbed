"""
Query result types.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List


class SolverResult(Enum):
    """Answer to a reachability query.

    SAT means the queried predicate is reachable, UNSAT that it is not.
    CONFLICTING is reported when several solvers disagree and ERROR when
    the solver could not be invoked.
    """
    SAT = "sat"
    UNSAT = "unsat"
    UNKNOWN = "unknown"
    CONFLICTING = "conflicting"
    ERROR = "error"


@dataclass
class QueryResult:
    """Result of one reachability query.

    Attributes:
        result: Raw solver answer
        witness: Solver-provided answer/model lines, if any
        solver_time_ms: Time taken by the solver in milliseconds
        solver_name: Name of the backend that answered
    """
    result: SolverResult
    witness: List[str] = field(default_factory=list)
    solver_time_ms: float = 0.0
    solver_name: str = "unknown"

    @property
    def proven(self) -> bool:
        return self.result == SolverResult.UNSAT

    def __str__(self) -> str:
        if self.proven:
            return f"Unreachable ({self.solver_name}, {self.solver_time_ms:.2f}ms)"
        return f"{self.result.value} ({self.solver_name}, {self.solver_time_ms:.2f}ms)"
