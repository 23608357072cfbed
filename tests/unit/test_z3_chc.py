"""
Tests for the z3 Fixedpoint Horn-clause backend.
"""
import z3

from solcheck.formal.solver import SolverResult, Z3CHCSolver, close_rule, free_constants


def counter_system(solver, bound):
    """Inv(0); Inv(x) /\\ x < 10 => Inv(x + 1); Inv(x) /\\ x > bound => Err."""
    inv = z3.Function("Inv", z3.IntSort(), z3.BoolSort())
    err = z3.Function("Err", z3.BoolSort())
    solver.register_relation(inv)
    solver.register_relation(err)

    x = z3.Int("x")
    solver.add_rule(inv(0), "init")
    solver.add_rule(z3.Implies(z3.And(inv(x), x < 10), inv(x + 1)), "step")
    solver.add_rule(z3.Implies(z3.And(inv(x), x > bound), err()), "bad")
    return err()


def test_unreachable_error_is_unsat():
    solver = Z3CHCSolver()
    query = counter_system(solver, 10)

    result = solver.query(query)

    assert result.result == SolverResult.UNSAT
    assert result.proven is True
    assert result.solver_name == "z3"


def test_reachable_error_is_sat():
    solver = Z3CHCSolver()
    query = counter_system(solver, 5)

    result = solver.query(query)

    assert result.result == SolverResult.SAT
    assert result.proven is False
    assert isinstance(result.witness, list)


def test_relations_are_registered_once():
    solver = Z3CHCSolver()
    inv = z3.Function("Inv", z3.IntSort(), z3.BoolSort())
    solver.register_relation(inv)
    solver.register_relation(inv)
    assert [r.name() for r in solver.relations] == ["Inv"]
    assert solver.unhandled_queries() == []


def test_reset_drops_rules():
    solver = Z3CHCSolver()
    counter_system(solver, 5)
    solver.reset()
    assert solver.relations == []


def test_free_constants_skip_relations():
    inv = z3.Function("Inv", z3.IntSort(), z3.BoolSort())
    err = z3.Function("Err", z3.BoolSort())
    x, y = z3.Ints("x y")
    rule = z3.Implies(z3.And(inv(x), y > x, inv(y)), err())

    names = [c.decl().name() for c in free_constants(rule, ["Inv", "Err"])]

    assert names == ["x", "y"]


def test_close_rule_without_variables_is_unchanged():
    err = z3.Function("Err", z3.BoolSort())
    fact = err()
    assert close_rule(fact, ["Err"]).eq(fact)
    closed = close_rule(z3.Implies(z3.Int("x") > 0, err()), ["Err"])
    assert z3.is_quantifier(closed)
