"""
Signatures of the predicates used by the CHC encoder.

Every signature starts from the state vector of a contract. Function
entry blocks take `[error, state@0, inputs@0, state, inputs, outputs]`;
statement blocks append the local variables visible inside the function.
Summaries keep only the initial inputs.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import z3

from ..ast import ContractDefinition, FunctionDefinition, VariableDeclaration
from ..encoding.symbolic_types import smt_sort


@dataclass(frozen=True)
class PredicateSort:
    """Ordered argument sorts of a predicate; the range is always Bool."""
    domain: Tuple[z3.SortRef, ...] = ()

    @property
    def arity(self) -> int:
        return len(self.domain)


def state_variables(contract: ContractDefinition) -> List[VariableDeclaration]:
    """State variables of `contract` and all its bases, most base first.

    Constants are not part of the state.
    """
    result: List[VariableDeclaration] = []
    for base in reversed(contract.linearized_base_contracts):
        result.extend(v for v in base.state_variables if not v.is_constant)
    return result


def _sorts(decls: Iterable[VariableDeclaration]) -> List[z3.SortRef]:
    return [smt_sort(d.type) for d in decls]


def genesis_sort() -> PredicateSort:
    return PredicateSort(())


def interface_sort(state: List[VariableDeclaration]) -> PredicateSort:
    return PredicateSort(tuple(_sorts(state)))


def constructor_sort(state: List[VariableDeclaration]) -> PredicateSort:
    return PredicateSort(tuple([z3.IntSort()] + _sorts(state)))


def function_sort(state: List[VariableDeclaration],
                  function: Optional[FunctionDefinition]) -> PredicateSort:
    """Signature of a function entry block.

    A missing function (implicit constructor) has no inputs or outputs.
    """
    state_sorts = _sorts(state)
    inputs = _sorts(function.parameters) if function is not None else []
    outputs = _sorts(function.return_parameters) if function is not None else []
    return PredicateSort(tuple([z3.IntSort()] + state_sorts + inputs + state_sorts + inputs + outputs))


def block_sort(state: List[VariableDeclaration],
               function: Optional[FunctionDefinition],
               locals: List[VariableDeclaration]) -> PredicateSort:
    """Signature of a statement-level block inside `function`."""
    return PredicateSort(function_sort(state, function).domain + tuple(_sorts(locals)))


def summary_sort(state: List[VariableDeclaration], function: FunctionDefinition) -> PredicateSort:
    """Signature of a function summary: `[error, state@0, inputs, state, outputs]`."""
    state_sorts = _sorts(state)
    return PredicateSort(tuple([z3.IntSort()] + state_sorts + _sorts(function.parameters)
                               + state_sorts + _sorts(function.return_parameters)))
