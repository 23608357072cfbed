"""
Verification targets and the internal call graph.
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Union

import z3

from ..ast import ASTNode, ContractDefinition, FunctionCall, FunctionDefinition

Scope = Union[ContractDefinition, FunctionDefinition]


@dataclass
class VerificationTarget:
    """A point from which assertion failures are checked.

    Attributes:
        scope: Transaction root (a public function, or the contract for
            its construction)
        contract: Contract the target was produced for
        source: Predicate application reached when the transaction ends
        constraints: Extra constraints of the error rule
        error_id: Error code term compared against assertion ids
    """
    scope: Scope
    contract: ContractDefinition
    source: z3.BoolRef
    constraints: z3.BoolRef
    error_id: z3.ArithRef


@dataclass
class CallGraph:
    """Internal calls made by each scope, in first-call order."""
    edges: Dict[ASTNode, List[FunctionDefinition]] = field(default_factory=dict)

    def add_edge(self, caller: ASTNode, callee: FunctionDefinition):
        callees = self.edges.setdefault(caller, [])
        if callee not in callees:
            callees.append(callee)

    def callees(self, caller: ASTNode) -> List[FunctionDefinition]:
        return self.edges.get(caller, [])

    def clear(self):
        self.edges.clear()


def transaction_assertions(graph: CallGraph,
                           root: ASTNode,
                           assertions: Dict[ASTNode, List[FunctionCall]]) -> List[FunctionCall]:
    """Assertions owned by `root` or by anything it transitively calls.

    Returns:
        Assertions without duplicates, ordered by node id
    """
    found: Dict[int, FunctionCall] = {}
    visited = {id(root)}
    queue = deque([root])
    while queue:
        node = queue.popleft()
        for assertion in assertions.get(node, []):
            found[assertion.id] = assertion
        for callee in graph.callees(node):
            if id(callee) not in visited:
                visited.add(id(callee))
                queue.append(callee)
    return [found[k] for k in sorted(found)]
