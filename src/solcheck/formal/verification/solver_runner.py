"""Run Horn-clause solvers as subprocesses over SMT-LIBv2 problems.

Solvers are expected to accept the SMT2 file as a positional argument and print
one of: sat/unsat/unknown.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple
import logging
import subprocess
import tempfile
import time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolverSpec:
    """Describes how to invoke an external solver."""

    name: str
    argv: Tuple[str, ...]


@dataclass(frozen=True)
class SolverRunResult:
    response: str
    stdout: str
    stderr: str
    returncode: int
    time_ms: float


_KNOWN_SOLVERS = {
    "z3": SolverSpec("z3", ("z3", "-smt2")),
    "spacer": SolverSpec("spacer", ("z3", "-smt2", "fp.engine=spacer")),
    "eldarica": SolverSpec("eldarica", ("eld", "-hsmt")),
    "golem": SolverSpec("golem", ("golem",)),
}


def resolve_solver(name_or_path: str) -> SolverSpec:
    """Resolve a solver name to an invocation spec."""
    if name_or_path in _KNOWN_SOLVERS:
        return _KNOWN_SOLVERS[name_or_path]

    p = Path(name_or_path)
    return SolverSpec(p.name or str(p), (str(p),))


def first_response(stdout: str) -> str:
    """Return the first non-comment line of a solver's output."""
    for line in stdout.splitlines():
        s = line.strip()
        if not s or s.startswith(";"):
            continue
        return s
    return ""


def run_solver(
    solver: SolverSpec,
    smt2_file: str | Path,
    *,
    timeout_s: Optional[float] = None,
    extra_args: Sequence[str] = (),
) -> SolverRunResult:
    """Run solver on an SMT2 file."""
    smt2_path = Path(smt2_file)
    argv = [*solver.argv, *extra_args, str(smt2_path)]

    t0 = time.time()
    p = subprocess.run(
        argv,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        timeout=timeout_s,
    )
    dt_ms = (time.time() - t0) * 1000.0

    return SolverRunResult(
        response=first_response(p.stdout),
        stdout=p.stdout,
        stderr=p.stderr,
        returncode=p.returncode,
        time_ms=dt_ms,
    )


def run_solver_on_text(
    solver: SolverSpec,
    smt2_text: str,
    *,
    timeout_s: Optional[float] = None,
) -> SolverRunResult:
    """Write `smt2_text` to a temporary file and run the solver on it."""
    with tempfile.TemporaryDirectory(prefix="solcheck-chc-") as td:
        smt2_path = Path(td) / "query.smt2"
        smt2_path.write_text(smt2_text)
        return run_solver(solver, smt2_path, timeout_s=timeout_s)


def make_query_callback(
    solver: str = "z3",
    *,
    timeout_s: Optional[float] = None,
) -> Callable[[str], Optional[str]]:
    """Build a query callback for the SMT-LIB2 backend.

    The callback returns the solver's first response line, or None when
    the solver could not be run or timed out.
    """
    spec = resolve_solver(solver)

    def callback(query: str) -> Optional[str]:
        try:
            rr = run_solver_on_text(spec, query, timeout_s=timeout_s)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("could not run solver %s: %s", spec.name, e)
            return None
        if rr.returncode != 0 and not rr.response:
            logger.warning("solver %s exited with %d: %s", spec.name, rr.returncode, rr.stderr.strip())
            return None
        return rr.response

    return callback
