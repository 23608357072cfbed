"""
Program-construct nodes consumed by the CHC encoder.

The tree is produced by an external parser and type checker: identifiers
already point at their declarations and function calls carry their call
kind and, for internal calls, the resolved callee.

Nodes compare by identity so they can be used as dictionary keys.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Union
import itertools

from .types import SolType

_node_ids = itertools.count(1)


def _next_node_id() -> int:
    return next(_node_ids)


@dataclass(frozen=True)
class SourceLocation:
    """Byte range of a node inside a named source."""
    source_name: str = ""
    start: int = -1
    end: int = -1

    def __str__(self) -> str:
        return f"{self.source_name or '<unknown>'}:{self.start}:{self.end}"


@dataclass(eq=False)
class ASTNode:
    """Base class for all nodes.

    Attributes:
        id: Unique positive node identifier
        location: Source range of the node
    """
    id: int = field(default_factory=_next_node_id, kw_only=True)
    location: SourceLocation = field(default_factory=SourceLocation, kw_only=True, repr=False)


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Expression(ASTNode):
    type: Optional[SolType] = field(default=None, kw_only=True)


class CallKind(Enum):
    """What a function call resolves to."""
    ASSERT = "assert"
    REQUIRE = "require"
    REVERT = "revert"
    INTERNAL = "internal"
    EXTERNAL = "external"
    DELEGATE_CALL = "delegatecall"
    BARE_CALL = "bare_call"
    BARE_CALL_CODE = "bare_callcode"
    BARE_DELEGATE_CALL = "bare_delegatecall"
    BARE_STATIC_CALL = "bare_staticcall"
    CREATION = "creation"
    KECCAK256 = "keccak256"
    ECRECOVER = "ecrecover"
    SHA256 = "sha256"
    RIPEMD160 = "ripemd160"
    BLOCKHASH = "blockhash"
    ADDMOD = "addmod"
    MULMOD = "mulmod"
    EVENT = "event"
    TYPE_CONVERSION = "type_conversion"
    OTHER = "other"


UNKNOWN_CALL_KINDS = frozenset({
    CallKind.EXTERNAL,
    CallKind.DELEGATE_CALL,
    CallKind.BARE_CALL,
    CallKind.BARE_CALL_CODE,
    CallKind.BARE_DELEGATE_CALL,
    CallKind.BARE_STATIC_CALL,
    CallKind.CREATION,
    CallKind.KECCAK256,
    CallKind.ECRECOVER,
    CallKind.SHA256,
    CallKind.RIPEMD160,
    CallKind.BLOCKHASH,
    CallKind.ADDMOD,
    CallKind.MULMOD,
})


@dataclass(eq=False)
class Literal(Expression):
    value: Union[bool, int]


@dataclass(eq=False)
class Identifier(Expression):
    name: str
    declaration: Optional["VariableDeclaration"] = field(default=None, repr=False)


@dataclass(eq=False)
class UnaryOperation(Expression):
    operator: str
    sub_expression: Expression
    prefix: bool = True


@dataclass(eq=False)
class BinaryOperation(Expression):
    operator: str
    left: Expression
    right: Expression


@dataclass(eq=False)
class Assignment(Expression):
    operator: str
    left_hand_side: Expression
    right_hand_side: Expression


@dataclass(eq=False)
class IndexAccess(Expression):
    base_expression: Expression
    index_expression: Expression


@dataclass(eq=False)
class Conditional(Expression):
    condition: Expression
    true_expression: Expression
    false_expression: Expression


@dataclass(eq=False)
class TupleExpression(Expression):
    components: List[Optional[Expression]] = field(default_factory=list)


@dataclass(eq=False)
class FunctionCall(Expression):
    """A call expression.

    Attributes:
        kind: Resolved kind of the callee
        arguments: Arguments in evaluation order
        function: Callee definition for internal calls, when statically known
        name: Callee name, informational only
    """
    kind: CallKind
    arguments: List[Expression] = field(default_factory=list)
    function: Optional["FunctionDefinition"] = field(default=None, repr=False)
    name: str = ""


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class Statement(ASTNode):
    pass


@dataclass(eq=False)
class Block(Statement):
    statements: List[Statement] = field(default_factory=list)


@dataclass(eq=False)
class ExpressionStatement(Statement):
    expression: Expression


@dataclass(eq=False)
class VariableDeclarationStatement(Statement):
    declarations: List[Optional["VariableDeclaration"]]
    initial_value: Optional[Expression] = None


@dataclass(eq=False)
class IfStatement(Statement):
    condition: Expression
    true_body: Statement
    false_body: Optional[Statement] = None


@dataclass(eq=False)
class WhileStatement(Statement):
    condition: Expression
    body: Statement
    is_do_while: bool = False


@dataclass(eq=False)
class ForStatement(Statement):
    body: Statement
    initialization: Optional[Statement] = None
    condition: Optional[Expression] = None
    loop_expression: Optional[ExpressionStatement] = None


@dataclass(eq=False)
class Break(Statement):
    pass


@dataclass(eq=False)
class Continue(Statement):
    pass


@dataclass(eq=False)
class Return(Statement):
    expression: Optional[Expression] = None


def iter_statements(stmt: Optional[Statement]) -> Iterator[Statement]:
    """Yield a statement and all statements nested in it, in lexical order."""
    if stmt is None:
        return
    yield stmt
    if isinstance(stmt, Block):
        for s in stmt.statements:
            yield from iter_statements(s)
    elif isinstance(stmt, IfStatement):
        yield from iter_statements(stmt.true_body)
        yield from iter_statements(stmt.false_body)
    elif isinstance(stmt, WhileStatement):
        yield from iter_statements(stmt.body)
    elif isinstance(stmt, ForStatement):
        yield from iter_statements(stmt.initialization)
        yield from iter_statements(stmt.body)
        yield from iter_statements(stmt.loop_expression)


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class VariableDeclaration(ASTNode):
    name: str
    type: SolType
    value: Optional[Expression] = None
    is_state_variable: bool = False
    is_constant: bool = False

    @property
    def has_reference_or_mapping_type(self) -> bool:
        return self.type.has_reference_or_mapping_type


class FunctionKind(Enum):
    FUNCTION = "function"
    CONSTRUCTOR = "constructor"
    FALLBACK = "fallback"
    RECEIVE = "receive"


class Visibility(Enum):
    PUBLIC = "public"
    EXTERNAL = "external"
    INTERNAL = "internal"
    PRIVATE = "private"


@dataclass(eq=False)
class FunctionDefinition(ASTNode):
    """A function, constructor, fallback or receive function.

    A function without a body is unimplemented.
    """
    name: str
    parameters: List[VariableDeclaration] = field(default_factory=list)
    return_parameters: List[VariableDeclaration] = field(default_factory=list)
    body: Optional[Block] = None
    kind: FunctionKind = FunctionKind.FUNCTION
    visibility: Visibility = Visibility.PUBLIC
    contract: Optional["ContractDefinition"] = field(default=None, repr=False)

    @property
    def is_constructor(self) -> bool:
        return self.kind == FunctionKind.CONSTRUCTOR

    @property
    def is_public(self) -> bool:
        return self.visibility in (Visibility.PUBLIC, Visibility.EXTERNAL)

    @property
    def is_implemented(self) -> bool:
        return self.body is not None

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(str(p.type) for p in self.parameters)})"

    def local_variables(self) -> List[VariableDeclaration]:
        """Variables declared inside the body, in lexical order."""
        result: List[VariableDeclaration] = []
        for stmt in iter_statements(self.body):
            if isinstance(stmt, VariableDeclarationStatement):
                result.extend(d for d in stmt.declarations if d is not None)
        return result


class ContractKind(Enum):
    CONTRACT = "contract"
    LIBRARY = "library"
    INTERFACE = "interface"


@dataclass(eq=False)
class InheritanceSpecifier(ASTNode):
    base: "ContractDefinition"
    arguments: Optional[List[Expression]] = None


@dataclass(eq=False)
class ContractDefinition(ASTNode):
    """A contract, library or interface.

    `base_contracts` are listed in source order ("is A, B"); the
    linearization follows C3 with the right-most base being the most
    derived one.
    """
    name: str
    state_variables: List[VariableDeclaration] = field(default_factory=list)
    functions: List[FunctionDefinition] = field(default_factory=list)
    base_contracts: List[InheritanceSpecifier] = field(default_factory=list)
    kind: ContractKind = ContractKind.CONTRACT

    def __post_init__(self):
        for var in self.state_variables:
            var.is_state_variable = True
        for func in self.functions:
            func.contract = self

    @property
    def is_library(self) -> bool:
        return self.kind == ContractKind.LIBRARY

    @property
    def constructor(self) -> Optional[FunctionDefinition]:
        for func in self.functions:
            if func.is_constructor:
                return func
        return None

    @property
    def linearized_base_contracts(self) -> List["ContractDefinition"]:
        """The contract itself followed by its bases, most derived first."""
        return _c3_linearize(self)

    def base_constructor_arguments(self, base: "ContractDefinition") -> Optional[List[Expression]]:
        for spec in self.base_contracts:
            if spec.base is base:
                return spec.arguments
        return None


def _c3_linearize(contract: ContractDefinition) -> List[ContractDefinition]:
    bases = [spec.base for spec in reversed(contract.base_contracts)]
    sequences = [_c3_linearize(b) for b in bases] + [list(bases)]
    result = [contract]
    while True:
        sequences = [s for s in sequences if s]
        if not sequences:
            return result
        for seq in sequences:
            head = seq[0]
            if not any(head in s[1:] for s in sequences):
                break
        else:
            raise ValueError(f"Linearization of inheritance graph impossible for {contract.name}")
        result.append(head)
        for s in sequences:
            if s[0] is head:
                del s[0]


@dataclass(eq=False)
class SourceUnit(ASTNode):
    nodes: List[ASTNode] = field(default_factory=list)
    referenced_source_units: List["SourceUnit"] = field(default_factory=list, repr=False)

    @property
    def contracts(self) -> List[ContractDefinition]:
        return [n for n in self.nodes if isinstance(n, ContractDefinition)]
