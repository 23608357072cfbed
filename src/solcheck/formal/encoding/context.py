"""
Encoding context shared by the expression encoder and the CHC encoder.

The context owns every symbolic variable, the value computed for each
expression node, the stack of assertion frames that will become the side
constraints of the next rule, and the current path conditions.
"""
import logging
from typing import Callable, Dict, List, Optional

import z3

from ..ast import Expression, VariableDeclaration
from ..ast.types import SolType, uint_type
from ..errors import InternalEncodingError
from .symbolic_types import smt_sort, type_constraints, zero_value
from .symbolic_variables import SymbolicVariable

logger = logging.getLogger(__name__)

Indices = Dict[VariableDeclaration, int]


class EncodingContext:
    """Symbolic state of the encoding in progress."""

    def __init__(self):
        self.variables: Dict[VariableDeclaration, SymbolicVariable] = {}
        self.expressions: Dict[Expression, object] = {}
        self.path_conditions: List[z3.BoolRef] = []
        self._frames: List[List[z3.BoolRef]] = [[]]
        self._fresh_counter = 0

    def reset(self):
        """Drop everything, keeping one empty assertion frame."""
        self.variables.clear()
        self.expressions.clear()
        self.path_conditions.clear()
        self._frames = [[]]
        self._fresh_counter = 0

    # -- variables -----------------------------------------------------

    def create_variable(self, decl: VariableDeclaration) -> bool:
        """Create the symbolic variable for `decl` if it does not exist.

        Returns:
            True if a new variable was created
        """
        if decl in self.variables:
            return False
        self.variables[decl] = SymbolicVariable(decl.type, f"{decl.name}_{decl.id}")
        return True

    def known_variable(self, decl: VariableDeclaration) -> bool:
        return decl in self.variables

    def variable(self, decl: VariableDeclaration) -> SymbolicVariable:
        try:
            return self.variables[decl]
        except KeyError:
            raise InternalEncodingError(f"Unknown variable: {decl.name} ({decl.id})") from None

    def current_value(self, decl: VariableDeclaration) -> z3.ExprRef:
        return self.variable(decl).current_value()

    def new_value(self, decl: VariableDeclaration) -> z3.ExprRef:
        return self.variable(decl).increase_index()

    def set_zero_value(self, decl: VariableDeclaration):
        self.add_assertion(self.current_value(decl) == zero_value(decl.type))

    def set_unknown_value(self, decl: VariableDeclaration):
        self.add_assertion(type_constraints(decl.type, self.current_value(decl)))

    def reset_variable(self, decl: VariableDeclaration):
        self.new_value(decl)
        self.set_unknown_value(decl)

    def reset_variables(self, predicate: Callable[[VariableDeclaration], bool]):
        """Give every variable matching `predicate` a fresh unknown value."""
        for decl in list(self.variables):
            if predicate(decl):
                self.reset_variable(decl)

    def copy_indices(self) -> Indices:
        return {decl: var.index for decl, var in self.variables.items()}

    def set_indices(self, indices: Indices):
        for decl, index in indices.items():
            self.variables[decl].set_index(index)

    # -- fresh values --------------------------------------------------

    def new_unknown(self, type: Optional[SolType], prefix: str = "unknown") -> z3.ExprRef:
        """Return a fresh unconstrained value of `type`, within its range."""
        if type is None:
            type = uint_type()
        self._fresh_counter += 1
        value = z3.Const(f"{prefix}_{self._fresh_counter}", smt_sort(type))
        self.add_assertion(type_constraints(type, value))
        return value

    # -- assertion frames ----------------------------------------------

    def solver_stack_height(self) -> int:
        """Number of frames pushed on top of the base frame."""
        return len(self._frames) - 1

    def push_solver(self):
        self._frames.append([])

    def pop_solver(self):
        if len(self._frames) <= 1:
            raise InternalEncodingError("Popping the last assertion frame")
        self._frames.pop()

    def clear_assertions(self):
        """Drop all frames and start over with one empty frame."""
        self._frames = [[]]

    def add_assertion(self, expr: z3.BoolRef):
        if z3.is_true(expr):
            return
        self._frames[-1].append(expr)

    def assertions(self) -> z3.BoolRef:
        """Conjunction of all assertions in all frames."""
        flat = [a for frame in self._frames for a in frame]
        if not flat:
            return z3.BoolVal(True)
        if len(flat) == 1:
            return flat[0]
        return z3.And(flat)

    # -- path conditions -----------------------------------------------

    def push_path_condition(self, condition: z3.BoolRef):
        self.path_conditions.append(condition)

    def pop_path_condition(self):
        if not self.path_conditions:
            raise InternalEncodingError("Popping an empty path condition stack")
        self.path_conditions.pop()

    def current_path_conditions(self) -> z3.BoolRef:
        if not self.path_conditions:
            return z3.BoolVal(True)
        if len(self.path_conditions) == 1:
            return self.path_conditions[0]
        return z3.And(self.path_conditions)

    def add_path_implied(self, expr: z3.BoolRef):
        """Assert `expr` only on the current path."""
        if not self.path_conditions:
            self.add_assertion(expr)
        else:
            self.add_assertion(z3.Implies(self.current_path_conditions(), expr))
