"""Expression to z3 encoder.

Translates expression nodes into z3 terms over the current SSA versions
held by an `EncodingContext`. Side effects (assignments, increments,
`delete`) create new variable versions. Function calls other than type
conversions are handed to a call handler supplied by the owner.

Key semantics:
- Integer arithmetic wraps around according to the result type
- `&&`, `||` and `?:` evaluate their branches under a path condition and
  merge the variable versions afterwards with If-then-else
- Operators without a precise model (bitwise, non-constant exponent)
  yield fresh values constrained only by their type
"""
from typing import Callable, List, Optional
import logging

import z3

from ..ast import (
    Assignment,
    BinaryOperation,
    CallKind,
    Conditional,
    Expression,
    FunctionCall,
    Identifier,
    IndexAccess,
    Literal,
    TupleExpression,
    UnaryOperation,
    VariableDeclaration,
)
from ..ast.types import SolType, bool_type, uint_type
from ..errors import InternalEncodingError
from .context import EncodingContext, Indices
from .symbolic_types import truncating_division, truncating_modulo, wrap, zero_value

logger = logging.getLogger(__name__)

CallHandler = Callable[[FunctionCall], Optional[object]]

ARITHMETIC_OPERATORS = frozenset({"+", "-", "*", "/", "%"})
COMPARISON_OPERATORS = frozenset({"==", "!=", "<", "<=", ">", ">="})
BITWISE_OPERATORS = frozenset({"&", "|", "^", "<<", ">>"})


class ExpressionEncoder:
    """Encodes expressions into z3 terms."""

    def __init__(self, context: EncodingContext, call_handler: Optional[CallHandler] = None):
        self.context = context
        self.call_handler = call_handler

    def encode(self, expr: Expression):
        """Encode `expr` and record its value in the context.

        Returns:
            A z3 term, a list of terms for tuples and multi-value calls,
            or None for expressions without a value
        """
        value = self._encode(expr)
        self.context.expressions[expr] = value
        return value

    def _encode(self, expr: Expression):
        if isinstance(expr, Literal):
            return self._encode_literal(expr)
        elif isinstance(expr, Identifier):
            return self._encode_identifier(expr)
        elif isinstance(expr, UnaryOperation):
            return self._encode_unary(expr)
        elif isinstance(expr, BinaryOperation):
            return self._encode_binary(expr)
        elif isinstance(expr, Assignment):
            return self._encode_assignment(expr)
        elif isinstance(expr, IndexAccess):
            return z3.Select(self.encode(expr.base_expression), self.encode(expr.index_expression))
        elif isinstance(expr, Conditional):
            return self._encode_conditional(expr)
        elif isinstance(expr, TupleExpression):
            values = [self.encode(c) if c is not None else None for c in expr.components]
            if len(values) == 1:
                return values[0]
            return values
        elif isinstance(expr, FunctionCall):
            return self._encode_call(expr)
        else:
            raise NotImplementedError(f"Expression type not yet supported: {type(expr)}")

    def _encode_literal(self, expr: Literal):
        if isinstance(expr.value, bool):
            return z3.BoolVal(expr.value)
        return z3.IntVal(expr.value)

    def _encode_identifier(self, expr: Identifier):
        decl = expr.declaration
        if decl is None:
            raise InternalEncodingError(f"Identifier '{expr.name}' has no declaration")
        if decl.is_constant and decl.value is not None and not self.context.known_variable(decl):
            return self.encode(decl.value)
        return self.context.current_value(decl)

    def _encode_unary(self, expr: UnaryOperation):
        op = expr.operator
        sub = expr.sub_expression
        t = self.type_of(expr)

        if op == "!":
            return z3.Not(self.encode(sub))
        elif op in ("++", "--"):
            old = self.encode(sub)
            new = wrap(old + 1 if op == "++" else old - 1, t)
            self.assign(sub, new, evaluated=True)
            return new if expr.prefix else old
        elif op == "-":
            return wrap(-self.encode(sub), t)
        elif op == "+":
            return self.encode(sub)
        elif op == "delete":
            zero = zero_value(t)
            self.assign(sub, zero)
            return zero
        elif op == "~":
            self.encode(sub)
            return self.context.new_unknown(t, "bitwise")
        else:
            raise NotImplementedError(f"Unary operator not yet supported: {op}")

    def _encode_binary(self, expr: BinaryOperation):
        op = expr.operator
        if op in ("&&", "||"):
            return self._encode_short_circuit(expr)

        left = self.encode(expr.left)
        right = self.encode(expr.right)

        if op in COMPARISON_OPERATORS:
            return self._compare(op, left, right)

        t = self.type_of(expr)
        if op in ARITHMETIC_OPERATORS:
            return self.arithmetic(op, left, right, t)
        elif op == "**":
            if (isinstance(expr.left, Literal) and isinstance(expr.right, Literal)
                    and expr.right.value >= 0):
                return wrap(z3.IntVal(expr.left.value ** expr.right.value), t)
            return self.context.new_unknown(t, "exp")
        elif op in BITWISE_OPERATORS:
            return self.context.new_unknown(t, "bitwise")
        else:
            raise NotImplementedError(f"Binary operator not yet supported: {op}")

    @staticmethod
    def _compare(op: str, left, right) -> z3.BoolRef:
        if op == "==":
            return left == right
        elif op == "!=":
            return left != right
        elif op == "<":
            return left < right
        elif op == "<=":
            return left <= right
        elif op == ">":
            return left > right
        return left >= right

    @staticmethod
    def arithmetic(op: str, left, right, t: SolType):
        """Wrapping arithmetic on values of type `t`."""
        if op == "+":
            value = left + right
        elif op == "-":
            value = left - right
        elif op == "*":
            value = left * right
        elif op == "/":
            value = truncating_division(left, right, t.signed)
        elif op == "%":
            value = truncating_modulo(left, right, t.signed)
        else:
            raise NotImplementedError(f"Arithmetic operator not yet supported: {op}")
        return wrap(value, t)

    def _encode_short_circuit(self, expr: BinaryOperation):
        left = self.encode(expr.left)
        condition = left if expr.operator == "&&" else z3.Not(left)
        before = self.context.copy_indices()
        right, after = self.visit_branch(expr.right, condition)
        self.merge_indices(condition, after, before)
        if expr.operator == "&&":
            return z3.And(left, right)
        return z3.Or(left, right)

    def _encode_conditional(self, expr: Conditional):
        condition = self.encode(expr.condition)
        before = self.context.copy_indices()
        true_value, true_indices = self.visit_branch(expr.true_expression, condition)
        self.context.set_indices(before)
        false_value, false_indices = self.visit_branch(expr.false_expression, z3.Not(condition))
        self.merge_indices(condition, true_indices, false_indices)
        if true_value is None or false_value is None:
            return None
        return z3.If(condition, true_value, false_value)

    def visit_branch(self, expr: Expression, condition: z3.BoolRef):
        """Encode `expr` under an extra path condition.

        Returns:
            Tuple of the branch value and the variable indices at its end
        """
        self.context.push_path_condition(condition)
        value = self.encode(expr)
        self.context.pop_path_condition()
        return value, self.context.copy_indices()

    def merge_indices(self, condition: z3.BoolRef, true_indices: Indices, false_indices: Indices):
        """Join two branches, creating If-then-else versions where they differ."""
        for decl, var in self.context.variables.items():
            true_index = true_indices.get(decl, var.index)
            false_index = false_indices.get(decl, var.index)
            if true_index == false_index:
                var.set_index(true_index)
                continue
            true_value = var.value_at_index(true_index)
            false_value = var.value_at_index(false_index)
            merged = var.increase_index()
            self.context.add_assertion(merged == z3.If(condition, true_value, false_value))

    def _encode_assignment(self, expr: Assignment):
        op = expr.operator
        rhs = self.encode(expr.right_hand_side)
        if op == "=":
            self.assign(expr.left_hand_side, rhs)
            return rhs

        lhs = expr.left_hand_side
        current = self.encode(lhs)
        t = self.type_of(lhs)
        binop = op[:-1]
        if binop in ARITHMETIC_OPERATORS:
            value = self.arithmetic(binop, current, rhs, t)
        elif binop in BITWISE_OPERATORS:
            value = self.context.new_unknown(t, "bitwise")
        else:
            raise NotImplementedError(f"Assignment operator not yet supported: {op}")
        self.assign(lhs, value, evaluated=True)
        return value

    def assign(self, lhs: Expression, value, evaluated: bool = False):
        """Store `value` into an assignable expression.

        Args:
            lhs: Identifier, index access or tuple of those
            value: Value to store (a list for tuples)
            evaluated: Whether `lhs` was just encoded, so the values of
                its sub-expressions can be reused
        """
        if isinstance(lhs, Identifier):
            if lhs.declaration is None:
                raise InternalEncodingError(f"Identifier '{lhs.name}' has no declaration")
            self.assign_variable(lhs.declaration, value)
        elif isinstance(lhs, IndexAccess):
            self._assign_index(lhs, value, evaluated)
        elif isinstance(lhs, TupleExpression):
            self._assign_tuple(lhs, value, evaluated)
        else:
            raise ValueError(f"Unsupported assignment target: {type(lhs)}")

    def assign_variable(self, decl: VariableDeclaration, value):
        new = self.context.new_value(decl)
        self.context.add_assertion(new == value)

    def _assign_index(self, lhs: IndexAccess, value, evaluated: bool):
        base = lhs.base_expression
        if evaluated:
            base_value = self.context.expressions[base]
            index = self.context.expressions[lhs.index_expression]
        else:
            base_value = self.encode(base)
            index = self.encode(lhs.index_expression)
        self.assign(base, z3.Store(base_value, index, value), evaluated=True)

    def _assign_tuple(self, lhs: TupleExpression, value, evaluated: bool):
        components = lhs.components
        if len(components) == 1:
            if components[0] is not None:
                self.assign(components[0], value, evaluated)
            return
        values: List = value if isinstance(value, list) else [value]
        if len(values) != len(components):
            raise InternalEncodingError(
                f"Tuple assignment of {len(values)} values to {len(components)} components")
        for component, v in zip(components, values):
            if component is not None and v is not None:
                self.assign(component, v, evaluated)

    def _encode_call(self, call: FunctionCall):
        if call.kind == CallKind.TYPE_CONVERSION:
            if len(call.arguments) != 1:
                raise InternalEncodingError("Type conversion takes exactly one argument")
            return self.encode(call.arguments[0])
        if self.call_handler is not None:
            return self.call_handler(call)
        return self.unknown_call_result(call)

    def unknown_call_result(self, call: FunctionCall):
        """Encode the arguments of a call and return a fresh result."""
        for arg in call.arguments:
            self.encode(arg)
        if call.type is None:
            return None
        return self.context.new_unknown(call.type, "call")

    def type_of(self, expr: Expression) -> SolType:
        """Best-known type of an expression."""
        if expr.type is not None:
            return expr.type
        if isinstance(expr, Identifier) and expr.declaration is not None:
            return expr.declaration.type
        if isinstance(expr, BinaryOperation):
            if expr.operator in COMPARISON_OPERATORS or expr.operator in ("&&", "||"):
                return bool_type()
            return self.type_of(expr.left)
        if isinstance(expr, UnaryOperation):
            if expr.operator == "!":
                return bool_type()
            return self.type_of(expr.sub_expression)
        if isinstance(expr, IndexAccess):
            base_type = self.type_of(expr.base_expression)
            if base_type.value_type is not None:
                return base_type.value_type
        if isinstance(expr, Assignment):
            return self.type_of(expr.left_hand_side)
        if isinstance(expr, Literal) and isinstance(expr.value, bool):
            return bool_type()
        return uint_type()
