"""
Z3 Fixedpoint (Horn-clause) backend implementation.
"""
import logging
import time
from typing import Any, Dict, List, Optional

import z3

from .horn import close_rule
from .result import QueryResult, SolverResult

logger = logging.getLogger(__name__)


class Z3CHCSolver:
    """In-process Horn-clause solver backed by z3's Fixedpoint engine.

    Provides a clean interface to z3's spacer engine: relations are
    registered once, rules are added as closed formulas and every query
    asks whether one relation application is derivable.
    """

    name = "z3"

    def __init__(self,
                 engine: str = "spacer",
                 timeout_ms: Optional[int] = None,
                 params: Optional[Dict[str, Any]] = None):
        """Initialize the Fixedpoint instance.

        Args:
            engine: Fixedpoint engine name
            timeout_ms: Per-query timeout in milliseconds
            params: Additional Fixedpoint parameters
        """
        self.engine = engine
        self.timeout_ms = timeout_ms
        self.params = dict(params or {})
        self._relations: Dict[str, z3.FuncDeclRef] = {}
        self.fixedpoint = self._make_fixedpoint()

    def _make_fixedpoint(self) -> z3.Fixedpoint:
        fp = z3.Fixedpoint()
        fp.set(engine=self.engine)
        for key, value in self.params.items():
            fp.set(key, value)
        if self.timeout_ms is not None:
            try:
                fp.set("timeout", self.timeout_ms)
            except z3.Z3Exception:
                logger.info("fixedpoint rejected 'timeout', setting it globally")
                z3.set_param("timeout", self.timeout_ms)
        return fp

    def register_relation(self, relation: z3.FuncDeclRef) -> None:
        """Register a relation with the Fixedpoint engine.

        Args:
            relation: z3 function declaration with Bool range
        """
        if relation.name() in self._relations:
            return
        self._relations[relation.name()] = relation
        self.fixedpoint.register_relation(relation)

    def add_rule(self, rule: z3.BoolRef, name: str) -> None:
        """Add a rule, quantifying all of its free variables.

        Args:
            rule: z3 implication
            name: Debug name of the rule
        """
        self.fixedpoint.add_rule(close_rule(rule, self._relations), name=name)

    def query(self, expr: z3.BoolRef) -> QueryResult:
        """Check whether `expr` is reachable.

        Returns:
            QueryResult with status and, for reachable queries, the answer
        """
        start_time = time.time()
        try:
            result = self.fixedpoint.query(expr)
        except z3.Z3Exception as e:
            elapsed_ms = (time.time() - start_time) * 1000
            logger.warning("z3 fixedpoint query failed: %s", e)
            return QueryResult(
                result=SolverResult.ERROR,
                solver_time_ms=elapsed_ms,
                solver_name=self.name,
            )
        elapsed_ms = (time.time() - start_time) * 1000

        if result == z3.sat:
            return QueryResult(
                result=SolverResult.SAT,
                witness=self._answer(),
                solver_time_ms=elapsed_ms,
                solver_name=self.name,
            )
        elif result == z3.unsat:
            return QueryResult(
                result=SolverResult.UNSAT,
                solver_time_ms=elapsed_ms,
                solver_name=self.name,
            )
        else:
            logger.info("z3 fixedpoint returned unknown: %s", self.fixedpoint.reason_unknown())
            return QueryResult(
                result=SolverResult.UNKNOWN,
                solver_time_ms=elapsed_ms,
                solver_name=self.name,
            )

    def _answer(self) -> List[str]:
        try:
            return [str(self.fixedpoint.get_answer())]
        except z3.Z3Exception:
            return []

    def unhandled_queries(self) -> List[str]:
        return []

    def reset(self) -> None:
        """Drop all relations and rules."""
        self._relations.clear()
        self.fixedpoint = self._make_fixedpoint()

    @property
    def relations(self) -> List[z3.FuncDeclRef]:
        return list(self._relations.values())
