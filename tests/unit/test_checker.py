"""
Tests for the high-level checking API.
"""
from solcheck.formal import CHCSettings, check_source_unit
from solcheck.formal.solver import SolverResult

from programs import (
    RecordingSolver,
    assert_,
    contract,
    function,
    lit,
    op,
    ref,
    stmt,
    unit,
    var,
)


def test_check_with_z3():
    ok = assert_(lit(True))
    bad = assert_(lit(False))
    source = unit(contract("C", functions=[function("f", stmt(ok)), function("g", stmt(bad))]))

    report = check_source_unit(source, CHCSettings())

    assert report.safe == [ok]
    assert report.unproven == [bad]
    assert report.is_safe(ok)
    assert not report.is_safe(bad)
    assert report.verdicts[bad] == SolverResult.SAT
    assert report.queries == 2
    assert report.rules > 0
    assert report.diagnostics == []


def test_textual_backend_without_answers():
    x = var("x")
    a = assert_(op("==", ref(x), lit(0)))
    source = unit(contract("C", state=[x], functions=[function("f", stmt(a))]))

    report = check_source_unit(source, CHCSettings(solver="smtlib2"))

    assert report.safe == []
    assert report.unproven == [a]
    assert report.verdicts[a] == SolverResult.UNKNOWN
    assert len(report.unhandled_queries) == 1
    assert "(set-logic HORN)" in report.unhandled_queries[0]


def test_explicit_backend():
    a = assert_(lit(True))
    source = unit(contract("C", functions=[function("f", stmt(a))]))
    solver = RecordingSolver(SolverResult.UNKNOWN)

    report = check_source_unit(source, CHCSettings(), solver=solver)

    assert report.safe == []
    assert report.verdicts[a] == SolverResult.UNKNOWN
    assert len(solver.queries) == 1
