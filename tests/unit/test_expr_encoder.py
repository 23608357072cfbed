"""
Tests for expression encoding: arithmetic, side effects and branch merging.
"""
import pytest
import z3

from solcheck.formal.ast import (
    CallKind,
    Conditional,
    IndexAccess,
    TupleExpression,
    UnaryOperation,
    bool_type,
    int_type,
    mapping_type,
    uint_type,
)
from solcheck.formal.encoding import EncodingContext, ExpressionEncoder

from programs import assign, call, lit, op, ref, var


@pytest.fixture
def ctx():
    return EncodingContext()


@pytest.fixture
def encoder(ctx):
    return ExpressionEncoder(ctx)


def declare(ctx, *decls):
    for d in decls:
        ctx.create_variable(d)


def proves(ctx, *facts):
    """True if the context's assertions imply every fact."""
    s = z3.Solver()
    s.add(ctx.assertions())
    s.add(z3.Not(z3.And(*facts)))
    return s.check() == z3.unsat


def test_unsigned_addition_wraps(ctx, encoder):
    x = var("x", uint_type(8))
    declare(ctx, x)
    value = encoder.encode(op("+", ref(x), lit(1)))
    ctx.add_assertion(ctx.current_value(x) == 255)
    assert proves(ctx, value == 0)


def test_unsigned_subtraction_wraps(ctx, encoder):
    x = var("x", uint_type(8))
    declare(ctx, x)
    value = encoder.encode(op("-", ref(x), lit(1)))
    ctx.add_assertion(ctx.current_value(x) == 0)
    assert proves(ctx, value == 255)


def test_signed_overflow_wraps(ctx, encoder):
    x = var("x", int_type(8))
    declare(ctx, x)
    value = encoder.encode(op("+", ref(x), lit(1)))
    ctx.add_assertion(ctx.current_value(x) == 127)
    assert proves(ctx, value == -128)


def test_signed_division_truncates(ctx, encoder):
    t = int_type()
    minus_seven = UnaryOperation("-", lit(7), type=t)
    value = encoder.encode(op("/", minus_seven, lit(2), t=t))
    assert proves(ctx, value == -3)


def test_signed_modulo_follows_dividend(ctx, encoder):
    t = int_type()
    minus_seven = UnaryOperation("-", lit(7), type=t)
    value = encoder.encode(op("%", minus_seven, lit(2), t=t))
    assert proves(ctx, value == -1)


def test_assignment_creates_new_version(ctx, encoder):
    x = var("x")
    declare(ctx, x)
    before = ctx.variable(x).index
    encoder.encode(assign(ref(x), lit(4)))
    assert ctx.variable(x).index == before + 1
    assert proves(ctx, ctx.current_value(x) == 4)


def test_compound_assignment(ctx, encoder):
    x = var("x")
    declare(ctx, x)
    ctx.add_assertion(ctx.current_value(x) == 10)
    encoder.encode(assign(ref(x), lit(3), operator="+="))
    assert proves(ctx, ctx.current_value(x) == 13)


def test_postfix_increment_returns_old_value(ctx, encoder):
    x = var("x")
    declare(ctx, x)
    ctx.add_assertion(ctx.current_value(x) == 1)
    value = encoder.encode(UnaryOperation("++", ref(x), prefix=False, type=x.type))
    assert proves(ctx, value == 1, ctx.current_value(x) == 2)


def test_delete_resets_to_zero(ctx, encoder):
    x = var("x")
    declare(ctx, x)
    ctx.add_assertion(ctx.current_value(x) == 9)
    encoder.encode(UnaryOperation("delete", ref(x), type=x.type))
    assert proves(ctx, ctx.current_value(x) == 0)


def test_nested_mapping_store(ctx, encoder):
    inner = mapping_type(uint_type(), uint_type())
    m = var("m", mapping_type(uint_type(), inner))
    declare(ctx, m)
    target = IndexAccess(IndexAccess(ref(m), lit(1), type=inner), lit(2), type=uint_type())
    encoder.encode(assign(target, lit(3)))

    current = ctx.current_value(m)
    assert proves(ctx, z3.Select(z3.Select(current, 1), 2) == 3)
    old = ctx.variable(m).value_at_index(0)
    assert proves(ctx, z3.Select(z3.Select(current, 1), 5) == z3.Select(z3.Select(old, 1), 5))


def test_tuple_swap(ctx, encoder):
    a = var("a")
    b = var("b")
    declare(ctx, a, b)
    a0 = ctx.current_value(a)
    b0 = ctx.current_value(b)
    encoder.encode(assign(TupleExpression([ref(a), ref(b)]), TupleExpression([ref(b), ref(a)])))
    assert proves(ctx, ctx.current_value(a) == b0, ctx.current_value(b) == a0)


def test_conditional_merges_side_effects(ctx, encoder):
    c = var("c", bool_type())
    x = var("x")
    declare(ctx, c, x)
    expr = Conditional(ref(c), assign(ref(x), lit(1)), assign(ref(x), lit(2)), type=x.type)
    value = encoder.encode(expr)

    cond = ctx.current_value(c)
    assert proves(ctx, z3.Implies(cond, ctx.current_value(x) == 1))
    assert proves(ctx, z3.Implies(z3.Not(cond), ctx.current_value(x) == 2))
    assert proves(ctx, value == ctx.current_value(x))
    assert ctx.path_conditions == []


def test_short_circuit_skips_side_effect(ctx, encoder):
    c = var("c", bool_type())
    flag = var("flag", bool_type())
    declare(ctx, c, flag)
    old_flag = ctx.current_value(flag)
    encoder.encode(op("&&", ref(c), assign(ref(flag), lit(True))))

    cond = ctx.current_value(c)
    assert proves(ctx, z3.Implies(z3.Not(cond), ctx.current_value(flag) == old_flag))
    assert proves(ctx, z3.Implies(cond, ctx.current_value(flag)))


def test_bitwise_yields_fresh_value_in_range(ctx, encoder):
    x = var("x", uint_type(8))
    declare(ctx, x)
    value = encoder.encode(op("&", ref(x), lit(3)))
    assert proves(ctx, value >= 0, value <= 255)
    assert not proves(ctx, value == 0)


def test_literal_exponent_is_computed(ctx, encoder):
    value = encoder.encode(op("**", lit(2), lit(10), t=uint_type()))
    assert proves(ctx, value == 1024)


def test_type_conversion_passes_value(ctx, encoder):
    x = var("x")
    declare(ctx, x)
    value = encoder.encode(call(CallKind.TYPE_CONVERSION, ref(x), t=uint_type(160)))
    assert value.eq(ctx.current_value(x))


def test_calls_without_handler_get_fresh_results(ctx, encoder):
    result = encoder.encode(call(CallKind.KECCAK256, lit(1), t=uint_type()))
    assert z3.is_const(result)
    assert encoder.encode(call(CallKind.EVENT)) is None


def test_values_are_recorded(ctx, encoder):
    expr = lit(3)
    encoder.encode(expr)
    assert ctx.expressions[expr].eq(z3.IntVal(3))
