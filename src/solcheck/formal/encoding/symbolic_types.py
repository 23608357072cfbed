"""
Mapping of program types to z3 sorts and values.

Integers and addresses are modeled as unbounded z3 integers; the bit width
only shows up as range constraints on unknown values and as wrap-around
after arithmetic.
"""
import z3

from ..ast.types import SolType, TypeCategory


def smt_sort(t: SolType) -> z3.SortRef:
    """Return the z3 sort used for values of `t`."""
    if t.category == TypeCategory.BOOL:
        return z3.BoolSort()
    if t.is_integer:
        return z3.IntSort()
    if t.has_reference_or_mapping_type:
        return z3.ArraySort(smt_sort(t.key_type), smt_sort(t.value_type))
    raise NotImplementedError(f"Type not yet supported: {t}")


def min_value(t: SolType) -> int:
    if t.signed:
        return -(2 ** (t.bits - 1))
    return 0


def max_value(t: SolType) -> int:
    if t.signed:
        return 2 ** (t.bits - 1) - 1
    return 2 ** t.bits - 1


def zero_value(t: SolType) -> z3.ExprRef:
    """Default value of a freshly declared variable of type `t`."""
    if t.category == TypeCategory.BOOL:
        return z3.BoolVal(False)
    if t.is_integer:
        return z3.IntVal(0)
    if t.has_reference_or_mapping_type:
        return z3.K(smt_sort(t.key_type), zero_value(t.value_type))
    raise NotImplementedError(f"Type not yet supported: {t}")


def type_constraints(t: SolType, value: z3.ExprRef) -> z3.BoolRef:
    """Constraints every value of `t` satisfies."""
    if t.is_integer:
        return z3.And(value >= min_value(t), value <= max_value(t))
    return z3.BoolVal(True)


def wrap(value: z3.ArithRef, t: SolType) -> z3.ArithRef:
    """Apply two's-complement wrap-around of `t` to an arithmetic result."""
    if not t.is_integer:
        return value
    lo = min_value(t)
    hi = max_value(t)
    size = 2 ** t.bits
    if lo == 0:
        return z3.If(z3.Or(value > hi, value < 0), value % size, value)
    return z3.If(z3.Or(value > hi, value < lo), ((value - lo) % size) + lo, value)


def truncating_division(left: z3.ArithRef, right: z3.ArithRef, signed: bool) -> z3.ArithRef:
    """Integer division rounding toward zero.

    z3 integer division is Euclidean, which already truncates when both
    operands are non-negative.
    """
    if not signed:
        return left / right
    return z3.If(
        left >= 0,
        z3.If(right >= 0, left / right, -(left / -right)),
        z3.If(right >= 0, -((-left) / right), (-left) / (-right)))


def truncating_modulo(left: z3.ArithRef, right: z3.ArithRef, signed: bool) -> z3.ArithRef:
    """Remainder whose sign follows the dividend."""
    if not signed:
        return left % right
    magnitude = z3.If(right >= 0, right, -right)
    return z3.If(left >= 0, left % magnitude, -((-left) % magnitude))
