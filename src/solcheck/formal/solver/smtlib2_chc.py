"""
Textual SMT-LIB2 Horn-clause backend.

Relations and rules are serialized as an SMT-LIB2 problem in the HORN
logic. Answers come from a table of stored responses keyed by the SHA-256
of the query text or, failing that, from a query callback (usually an
external solver process). Queries nobody answered are kept so callers
can report them or replay them later.
"""
import hashlib
import logging
import time
from typing import Callable, Dict, List, Optional

import z3

from .horn import close_rule
from .result import QueryResult, SolverResult

logger = logging.getLogger(__name__)

QueryCallback = Callable[[str], Optional[str]]


def query_hash(query: str) -> str:
    return hashlib.sha256(query.encode("utf-8")).hexdigest()


class CHCSmtLib2Solver:
    """SMT-LIB2 protocol adapter for Horn-clause queries.

    In the HORN encoding the query is added as a clause `query => false`;
    the solver answering `sat` means the clause set has a model, i.e. the
    queried relation is unreachable.
    """

    name = "smtlib2"

    def __init__(self,
                 responses: Optional[Dict[str, str]] = None,
                 query_callback: Optional[QueryCallback] = None):
        """Initialize the adapter.

        Args:
            responses: Stored solver responses keyed by query hash
            query_callback: Called with the query text when no stored
                response exists; returns the solver's response or None
        """
        self.responses: Dict[str, str] = dict(responses or {})
        self.query_callback = query_callback
        self._relations: Dict[str, z3.FuncDeclRef] = {}
        self._rules: List[str] = []
        self._unhandled_queries: List[str] = []

    def register_relation(self, relation: z3.FuncDeclRef) -> None:
        if relation.name() in self._relations:
            return
        self._relations[relation.name()] = relation

    def add_rule(self, rule: z3.BoolRef, name: str) -> None:
        closed = close_rule(rule, self._relations)
        self._rules.append(f"; {name}\n(assert\n{closed.sexpr()})")

    def query(self, expr: z3.BoolRef) -> QueryResult:
        """Serialize the current problem plus `expr` and obtain an answer."""
        text = self.dump_query(expr)
        start_time = time.time()
        response = self._response_for(text)
        elapsed_ms = (time.time() - start_time) * 1000

        if response is None:
            self._unhandled_queries.append(text)
            return QueryResult(
                result=SolverResult.UNKNOWN,
                solver_time_ms=elapsed_ms,
                solver_name=self.name,
            )

        return QueryResult(
            result=self._parse_response(response),
            witness=[response],
            solver_time_ms=elapsed_ms,
            solver_name=self.name,
        )

    def _response_for(self, text: str) -> Optional[str]:
        key = query_hash(text)
        if key in self.responses:
            return self.responses[key]
        if self.query_callback is not None:
            response = self.query_callback(text)
            if response is not None:
                return response
        logger.debug("no response for query %s", key)
        return None

    @staticmethod
    def _parse_response(response: str) -> SolverResult:
        s = response.strip()
        token = s.split()[0] if s else ""
        if token == "sat":
            return SolverResult.UNSAT
        if token == "unsat":
            return SolverResult.SAT
        if token == "unknown":
            return SolverResult.UNKNOWN
        return SolverResult.ERROR

    def dump_query(self, expr: z3.BoolRef) -> str:
        """Return the complete SMT-LIB2 text for a query."""
        lines: List[str] = ["(set-logic HORN)", ""]
        for relation in self._relations.values():
            lines.append(relation.sexpr())
        lines.append("")
        lines.extend(self._rules)
        lines.append("")
        lines.append("(assert")
        lines.append("(forall ((UNUSED Bool))")
        lines.append(f"(=> {expr.sexpr()} false)))")
        lines.append("(check-sat)")
        return "\n".join(lines) + "\n"

    def unhandled_queries(self) -> List[str]:
        return list(self._unhandled_queries)

    def reset(self) -> None:
        self._relations.clear()
        self._rules.clear()
        self._unhandled_queries.clear()
