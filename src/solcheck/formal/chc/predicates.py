"""
Predicate registry.

Predicates are kept in an arena and referred to by a stable integer
handle. A predicate can be re-indexed, which yields a new relation
`<base>_<index>` with the same signature; the error predicate uses this
to get one fresh relation per checked assertion.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence
import logging

import z3

from ..errors import InternalEncodingError
from .sorts import PredicateSort

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Predicate:
    """An uninterpreted relation used as a CFG node or summary.

    Attributes:
        handle: Position in the registry
        base_name: Name without the index suffix
        sort: Argument sorts
        index: Current re-indexing count
    """
    handle: int
    base_name: str
    sort: PredicateSort
    index: int = 0
    _decls: Dict[int, z3.FuncDeclRef] = field(default_factory=dict, repr=False)

    @property
    def name(self) -> str:
        return f"{self.base_name}_{self.index}"

    def function_decl(self) -> z3.FuncDeclRef:
        decl = self._decls.get(self.index)
        if decl is None:
            decl = z3.Function(self.name, *self.sort.domain, z3.BoolSort())
            self._decls[self.index] = decl
        return decl

    def __call__(self, args: Sequence[z3.ExprRef] = ()) -> z3.BoolRef:
        if len(args) != self.sort.arity:
            raise InternalEncodingError(
                f"Predicate {self.name} takes {self.sort.arity} arguments, got {len(args)}")
        return self.function_decl()(*args)


class PredicateRegistry:
    """Creates predicates and declares their relations to a backend."""

    def __init__(self, register_relation: Callable[[z3.FuncDeclRef], None]):
        self._register_relation = register_relation
        self._predicates: List[Predicate] = []
        self._prefix_counter = 0

    def create(self, sort: PredicateSort, base_name: str) -> Predicate:
        predicate = Predicate(handle=len(self._predicates), base_name=base_name, sort=sort)
        self._predicates.append(predicate)
        self._register(predicate)
        return predicate

    def increase_index(self, predicate: Predicate) -> Predicate:
        predicate.index += 1
        self._register(predicate)
        return predicate

    def _register(self, predicate: Predicate):
        logger.debug("relation %s/%d", predicate.name, predicate.sort.arity)
        self._register_relation(predicate.function_decl())

    def unique_prefix(self) -> str:
        prefix = str(self._prefix_counter)
        self._prefix_counter += 1
        return prefix

    def lookup(self, handle: int) -> Predicate:
        if handle < 0 or handle >= len(self._predicates):
            raise InternalEncodingError(f"Unknown predicate handle: {handle}")
        return self._predicates[handle]

    def __len__(self) -> int:
        return len(self._predicates)

    def __iter__(self):
        return iter(self._predicates)

    def reset(self):
        self._predicates.clear()
        self._prefix_counter = 0
