"""
Analysis settings and solver backend selection.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
import logging
import os

from .solver.base import CHCSolverInterface
from .solver.smtlib2_chc import CHCSmtLib2Solver
from .solver.z3_chc import Z3CHCSolver
from .verification.solver_runner import make_query_callback

logger = logging.getLogger(__name__)

SOLVER_BACKENDS = ("z3", "smtlib2")


@dataclass
class CHCSettings:
    """Settings of one analysis run.

    Attributes:
        solver: Backend name, "z3" (in-process) or "smtlib2" (textual)
        timeout_ms: Per-query timeout in milliseconds
        engine: z3 Fixedpoint engine
        z3_params: Extra z3 Fixedpoint parameters
        responses: Stored responses for the textual backend, keyed by query hash
        external_solver: Solver run as a subprocess for textual queries
            without a stored response; None disables subprocess solving
    """
    solver: str = "z3"
    timeout_ms: Optional[int] = None
    engine: str = "spacer"
    z3_params: Dict[str, Any] = field(default_factory=dict)
    responses: Dict[str, str] = field(default_factory=dict)
    external_solver: Optional[str] = None

    def __post_init__(self):
        if self.solver not in SOLVER_BACKENDS:
            raise ValueError(f"Unknown CHC solver backend: {self.solver}")
        if self.timeout_ms is not None and self.timeout_ms <= 0:
            raise ValueError(f"Timeout must be positive: {self.timeout_ms}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CHCSettings":
        """Build settings from environment variables.

        Reads SOLCHECK_CHC_SOLVER, SOLCHECK_CHC_TIMEOUT_MS and
        SOLCHECK_SMT_SOLVER.
        """
        env = os.environ if environ is None else environ

        solver = env.get("SOLCHECK_CHC_SOLVER", "z3")

        timeout_ms = None
        raw_timeout = env.get("SOLCHECK_CHC_TIMEOUT_MS")
        if raw_timeout:
            try:
                timeout_ms = int(raw_timeout)
            except ValueError:
                raise ValueError(f"SOLCHECK_CHC_TIMEOUT_MS is not an integer: {raw_timeout}") from None

        external_solver = env.get("SOLCHECK_SMT_SOLVER") or None

        return cls(solver=solver, timeout_ms=timeout_ms, external_solver=external_solver)


def create_solver_interface(settings: CHCSettings) -> CHCSolverInterface:
    """Instantiate the backend selected by `settings`."""
    if settings.solver == "z3":
        return Z3CHCSolver(
            engine=settings.engine,
            timeout_ms=settings.timeout_ms,
            params=settings.z3_params,
        )

    callback = None
    if settings.external_solver is not None:
        timeout_s = settings.timeout_ms / 1000.0 if settings.timeout_ms is not None else None
        callback = make_query_callback(settings.external_solver, timeout_s=timeout_s)
        logger.info("forwarding unanswered queries to %s", settings.external_solver)
    return CHCSmtLib2Solver(responses=settings.responses, query_callback=callback)
