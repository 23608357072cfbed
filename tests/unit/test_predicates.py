"""
Tests for the predicate registry and predicate signatures.
"""
import pytest
import z3

from solcheck.formal.ast import bool_type, int_type, uint_type
from solcheck.formal.chc import PredicateRegistry, PredicateSort, summary_sort
from solcheck.formal.chc.sorts import block_sort, function_sort
from solcheck.formal.errors import InternalEncodingError

from programs import function, var


@pytest.fixture
def registered():
    return []


@pytest.fixture
def registry(registered):
    return PredicateRegistry(lambda decl: registered.append(decl.name()))


def test_create_registers_relation(registry, registered):
    p = registry.create(PredicateSort((z3.IntSort(),)), "block_0_f")
    assert p.name == "block_0_f_0"
    assert p.handle == 0
    assert registered == ["block_0_f_0"]
    assert registry.lookup(0) is p


def test_increase_index_registers_new_relation(registry, registered):
    p = registry.create(PredicateSort(()), "error_C_1")
    registry.increase_index(p)
    registry.increase_index(p)
    assert p.name == "error_C_1_2"
    assert registered == ["error_C_1_0", "error_C_1_1", "error_C_1_2"]


def test_application_checks_arity(registry):
    p = registry.create(PredicateSort((z3.IntSort(), z3.BoolSort())), "p")
    app = p([z3.Int("a"), z3.Bool("b")])
    assert app.decl().name() == "p_0"
    with pytest.raises(InternalEncodingError):
        p([z3.Int("a")])


def test_unique_prefix_is_monotonic(registry):
    assert [registry.unique_prefix() for _ in range(3)] == ["0", "1", "2"]
    registry.reset()
    assert registry.unique_prefix() == "0"
    assert len(registry) == 0


def test_lookup_unknown_handle(registry):
    with pytest.raises(InternalEncodingError):
        registry.lookup(3)


def test_signatures():
    state = [var("s", bool_type())]
    f = function("f", params=[var("a", int_type(8))], returns=[var("r")])
    locals = [var("l")]

    entry = function_sort(state, f)
    assert entry.domain == (z3.IntSort(), z3.BoolSort(), z3.IntSort(), z3.BoolSort(), z3.IntSort(), z3.IntSort())

    summary = summary_sort(state, f)
    assert summary.domain == (z3.IntSort(), z3.BoolSort(), z3.IntSort(), z3.BoolSort(), z3.IntSort())

    blk = block_sort(state, f, locals)
    assert blk.arity == entry.arity + 1


def test_implicit_constructor_signature():
    state = [var("x", uint_type())]
    assert function_sort(state, None).domain == (z3.IntSort(), z3.IntSort(), z3.IntSort())
