"""
Main verification API.

Provides a high-level function that encodes a source unit as Horn
clauses, checks every assertion and collects the outcome.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import time

from .ast import FunctionCall, SourceUnit
from .chc.encoder import CHCEncoder
from .config import CHCSettings, create_solver_interface
from .reporting import Diagnostic, ErrorReporter
from .solver.base import CHCSolverInterface
from .solver.result import SolverResult

logger = logging.getLogger(__name__)


@dataclass
class CHCReport:
    """Outcome of checking one source unit.

    Attributes:
        safe: Assertions proven to never fail, ordered by id
        unproven: Checked assertions that could not be proven
        verdicts: Combined solver answer per checked assertion
        diagnostics: Warnings emitted during the run
        unhandled_queries: Textual queries nobody answered
        queries: Number of solver queries issued
        rules: Number of Horn rules emitted
        time_ms: Wall-clock time of the run in milliseconds
    """
    safe: List[FunctionCall] = field(default_factory=list)
    unproven: List[FunctionCall] = field(default_factory=list)
    verdicts: Dict[FunctionCall, SolverResult] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    unhandled_queries: List[str] = field(default_factory=list)
    queries: int = 0
    rules: int = 0
    time_ms: float = 0.0

    def is_safe(self, assertion: FunctionCall) -> bool:
        return any(a is assertion for a in self.safe)

    def __str__(self) -> str:
        return (f"{len(self.safe)} safe, {len(self.unproven)} unproven "
                f"({self.queries} queries, {self.rules} rules, {self.time_ms:.2f}ms)")


def check_source_unit(source: SourceUnit,
                      settings: Optional[CHCSettings] = None,
                      reporter: Optional[ErrorReporter] = None,
                      solver: Optional[CHCSolverInterface] = None) -> CHCReport:
    """Check all assertions reachable from the contracts of `source`.

    Args:
        source: Parsed and type-annotated source unit
        settings: Analysis settings (default: from the environment)
        reporter: Diagnostics sink (default: a fresh collecting reporter)
        solver: Backend to use instead of the one `settings` selects

    Returns:
        CHCReport with safe and unproven assertions

    Example:
        >>> report = check_source_unit(unit)
        >>> for assertion in report.unproven:
        ...     print(f"May fail: {assertion.location}")
    """
    if settings is None:
        settings = CHCSettings.from_env()
    if reporter is None:
        reporter = ErrorReporter()
    if solver is None:
        solver = create_solver_interface(settings)

    start_time = time.time()
    encoder = CHCEncoder(solver, reporter)
    encoder.analyze(source)
    elapsed_ms = (time.time() - start_time) * 1000

    safe = encoder.safe_assertions
    unproven = sorted(
        (a for a in encoder.query_results if not any(a is s for s in safe)),
        key=lambda a: a.id)

    report = CHCReport(
        safe=safe,
        unproven=unproven,
        verdicts=encoder.verdicts,
        diagnostics=list(reporter.diagnostics),
        unhandled_queries=encoder.unhandled_queries(),
        queries=sum(len(r) for r in encoder.query_results.values()),
        rules=len(encoder.rules),
        time_ms=elapsed_ms,
    )
    logger.info("%s", report)
    return report
