"""
Abstract interface for CHC solver backends.
"""
from typing import List, Protocol

import z3

from .result import QueryResult


class CHCSolverInterface(Protocol):
    """Protocol defining the interface for Horn-clause solver backends.

    Backends receive relation declarations and rules as z3 terms. Rules
    may contain free constants; backends treat them as universally
    quantified per rule.
    """

    def register_relation(self, relation: z3.FuncDeclRef) -> None:
        """Declare an uninterpreted relation.

        Args:
            relation: z3 function declaration with Bool range
        """
        ...

    def add_rule(self, rule: z3.BoolRef, name: str) -> None:
        """Add a Horn clause `body => head`.

        Args:
            rule: z3 implication
            name: Debug name of the rule
        """
        ...

    def query(self, expr: z3.BoolRef) -> QueryResult:
        """Ask whether a relation application is reachable.

        Returns:
            QueryResult with SAT if reachable, UNSAT if not
        """
        ...

    def unhandled_queries(self) -> List[str]:
        """Queries the backend could not answer (textual backends only)."""
        ...
