"""
Tests for assertion frames and path conditions of the encoding context.
"""
import pytest
import z3

from solcheck.formal.encoding import EncodingContext
from solcheck.formal.errors import InternalEncodingError


def test_frames_stack_and_pop():
    ctx = EncodingContext()
    a, b = z3.Bools("a b")

    ctx.push_solver()
    ctx.add_assertion(a)
    ctx.push_solver()
    ctx.add_assertion(b)
    assert ctx.solver_stack_height() == 2
    assert ctx.assertions().eq(z3.And(a, b))

    ctx.pop_solver()
    assert ctx.solver_stack_height() == 1
    assert ctx.assertions().eq(a)

    ctx.pop_solver()
    assert z3.is_true(ctx.assertions())


def test_base_frame_cannot_be_popped():
    ctx = EncodingContext()
    with pytest.raises(InternalEncodingError):
        ctx.pop_solver()


def test_trivial_assertions_are_dropped():
    ctx = EncodingContext()
    ctx.add_assertion(z3.BoolVal(True))
    assert z3.is_true(ctx.assertions())


def test_path_implied_assertion():
    ctx = EncodingContext()
    c, a = z3.Bools("c a")

    ctx.push_path_condition(c)
    ctx.add_path_implied(a)
    ctx.pop_path_condition()

    assert ctx.assertions().eq(z3.Implies(c, a))
