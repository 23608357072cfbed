"""
SSA-versioned symbolic variables.
"""
import z3

from ..ast.types import SolType
from .symbolic_types import smt_sort


class SymbolicVariable:
    """A program variable with SSA versions.

    Version `i` of the variable is the z3 constant `<unique_name>_<i>`.
    Until `reset_index` is called, `increase_index` always moves to a
    version that has not been handed out before, while `set_index` only
    rewinds to versions that already exist. `reset_index` starts over at
    version 0; each block restarts numbering this way, so the same
    version names recur in rules that are quantified separately.
    """

    def __init__(self, type: SolType, unique_name: str):
        self.type = type
        self.unique_name = unique_name
        self.sort = smt_sort(type)
        self._index = 0
        self._next_free = 1

    @property
    def index(self) -> int:
        return self._index

    def current_value(self) -> z3.ExprRef:
        return self.value_at_index(self._index)

    def value_at_index(self, index: int) -> z3.ExprRef:
        return z3.Const(f"{self.unique_name}_{index}", self.sort)

    def current_name(self) -> str:
        return f"{self.unique_name}_{self._index}"

    def increase_index(self) -> z3.ExprRef:
        self._index = self._next_free
        self._next_free += 1
        return self.current_value()

    def reset_index(self):
        self._index = 0
        self._next_free = 1

    def set_index(self, index: int):
        if index >= self._next_free:
            raise ValueError(f"Index {index} of {self.unique_name} was never allocated")
        self._index = index

    def __repr__(self) -> str:
        return f"SymbolicVariable({self.unique_name}, index={self._index})"
