"""CFG to Constrained Horn Clause encoder.

Every function becomes a small control-flow graph of uninterpreted
predicates ("blocks"), one per entry, branch, loop header, loop body and
join point. Each block takes the current SSA versions of all variables
visible at that point as arguments; every edge becomes a Horn rule

    source(args) /\\ side constraints /\\ edge constraints => target(args')

Functions are summarized by a relation over error code, pre/post state,
inputs and outputs, which internal calls assert at the call site.
Contracts get an interface predicate that holds for every state reachable
by a sequence of transactions. Assertions are checked by asking whether
a per-assertion error relation is derivable.

Key semantics:
- `error` is 0 on every successful path and the id of the failed
  assertion otherwise
- State at SSA index 0 is the state at the start of the transaction
- Unknown calls erase the state and all mapping-typed variables
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence
import logging

import z3

from ..ast import (
    UNKNOWN_CALL_KINDS,
    ASTNode,
    Block,
    Break,
    CallKind,
    Continue,
    ContractDefinition,
    ExpressionStatement,
    ForStatement,
    FunctionCall,
    FunctionDefinition,
    IfStatement,
    Return,
    SourceUnit,
    Statement,
    VariableDeclaration,
    VariableDeclarationStatement,
    WhileStatement,
    iter_statements,
)
from ..encoding import EncodingContext, ExpressionEncoder, SymbolicVariable
from ..encoding.symbolic_types import zero_value
from ..ast.types import uint_type
from ..errors import InternalEncodingError
from ..reporting import ErrorReporter
from ..solver.base import CHCSolverInterface
from ..solver.result import QueryResult, SolverResult
from .predicates import Predicate, PredicateRegistry
from .sorts import (
    block_sort,
    constructor_sort,
    function_sort,
    genesis_sort,
    interface_sort,
    state_variables,
    summary_sort,
)
from .targets import CallGraph, VerificationTarget, transaction_assertions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HornRule:
    """A rule as emitted to the backend.

    Attributes:
        name: Debug name, `<source>_to_<target>` for edges
        source: Relation name of the body predicate ("" for facts)
        target: Relation name of the head predicate
        expr: The rule itself
    """
    name: str
    source: str
    target: str
    expr: z3.BoolRef


class CHCEncoder:
    """Encodes source units as Horn clauses and checks their assertions."""

    def __init__(self, solver: CHCSolverInterface, reporter: Optional[ErrorReporter] = None):
        self.solver = solver
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.context = EncodingContext()
        self.expr_encoder = ExpressionEncoder(self.context, self._visit_function_call)
        self.predicates = PredicateRegistry(solver.register_relation)
        self._reset_source_analysis()

    # ------------------------------------------------------------------
    # Analysis state
    # ------------------------------------------------------------------

    def _reset_source_analysis(self):
        self.context.reset()
        self.predicates.reset()
        self.rules: List[HornRule] = []
        self.targets: List[VerificationTarget] = []
        self.query_results: Dict[FunctionCall, List[QueryResult]] = {}
        self.call_graph = CallGraph()
        self._function_assertions: Dict[ASTNode, List[FunctionCall]] = {}
        self._interfaces: Dict[ContractDefinition, Predicate] = {}
        self._summaries: Dict[ContractDefinition, Dict[FunctionDefinition, Predicate]] = {}
        self._errors: Dict[ContractDefinition, Predicate] = {}
        self._genesis: Optional[Predicate] = None
        self._error = SymbolicVariable(uint_type(), "error")
        self._reset_contract_analysis()

    def _reset_contract_analysis(self):
        self._current_contract: Optional[ContractDefinition] = None
        self._current_function: Optional[FunctionDefinition] = None
        self._current_block: Optional[z3.BoolRef] = None
        self._state_variables: List[VariableDeclaration] = []
        self._constructor_summary: Optional[Predicate] = None
        self._implicit_constructor: Optional[Predicate] = None
        self._unknown_function_call_seen = False
        self._break_dest: Optional[Predicate] = None
        self._continue_dest: Optional[Predicate] = None
        self._return_dest: Optional[Callable[[], z3.BoolRef]] = None
        self._error.reset_index()

    @property
    def safe_assertions(self) -> List[FunctionCall]:
        """Assertions whose every query was answered UNSAT, by id."""
        safe = [a for a, results in self.query_results.items()
                if results and all(r.result == SolverResult.UNSAT for r in results)]
        return sorted(safe, key=lambda a: a.id)

    @property
    def verdicts(self) -> Dict[FunctionCall, SolverResult]:
        """One combined answer per checked assertion.

        UNSAT only if all queries were UNSAT; SAT if any query was SAT;
        otherwise the first inconclusive answer.
        """
        verdicts = {}
        for assertion, results in self.query_results.items():
            answers = [r.result for r in results]
            if all(a == SolverResult.UNSAT for a in answers):
                verdicts[assertion] = SolverResult.UNSAT
            elif SolverResult.SAT in answers:
                verdicts[assertion] = SolverResult.SAT
            else:
                verdicts[assertion] = next(a for a in answers if a != SolverResult.UNSAT)
        return verdicts

    def unhandled_queries(self) -> List[str]:
        return self.solver.unhandled_queries()

    # ------------------------------------------------------------------
    # Source units and contracts
    # ------------------------------------------------------------------

    def analyze(self, source: SourceUnit):
        """Encode `source` and everything it references, then check all targets."""
        self._reset_source_analysis()

        self._genesis = self.predicates.create(genesis_sort(), "genesis")
        self._add_rule(self._genesis(), "genesis", source="", target=self._genesis.name)

        sources: Dict[int, SourceUnit] = {source.id: source}
        for ref in source.referenced_source_units:
            sources.setdefault(ref.id, ref)
        ordered = [sources[k] for k in sorted(sources)]

        for unit in ordered:
            self._define_interfaces_and_summaries(unit)
        for unit in ordered:
            for contract in unit.contracts:
                self._visit_contract(contract)

        self.context.clear_assertions()
        self._check_verification_targets()

    def _define_interfaces_and_summaries(self, source: SourceUnit):
        for contract in source.contracts:
            for base in contract.linearized_base_contracts:
                base_state = state_variables(base)
                for var in base_state:
                    self.context.create_variable(var)
                if base not in self._interfaces:
                    self._interfaces[base] = self.predicates.create(
                        interface_sort(base_state),
                        f"interface_{self.predicates.unique_prefix()}_{self._contract_suffix(base)}")
                for function in base.functions:
                    for var in function.parameters + function.return_parameters + function.local_variables():
                        self.context.create_variable(var)
                    self._summaries.setdefault(contract, {})[function] = self.predicates.create(
                        summary_sort(state_variables(contract), function),
                        f"summary_{self.predicates.unique_prefix()}_{self._predicate_name(function, contract)}")

    def _visit_contract(self, contract: ContractDefinition):
        logger.debug("encoding contract %s", contract.name)
        self._reset_contract_analysis()
        self._current_contract = contract
        self._state_variables = state_variables(contract)
        self._clear_indices(contract, None)

        suffix = self._contract_suffix(contract)
        self._errors[contract] = self.predicates.create(genesis_sort(), f"error_{suffix}")
        self._constructor_summary = self.predicates.create(
            constructor_sort(self._state_variables), f"summary_constructor_{suffix}")
        self._implicit_constructor = self.predicates.create(
            interface_sort(self._state_variables), f"implicit_constructor_{suffix}")

        self._set_current_block(self._interfaces[contract], self._current_state())

        for function in self._resolved_functions(contract):
            self._visit_function(function)

        self._end_contract(contract)

    def _end_contract(self, contract: ContractDefinition):
        for var in self._state_variables:
            symb = self.context.variable(var)
            symb.reset_index()
            self.context.add_assertion(symb.current_value() == zero_value(var.type))
            symb.increase_index()
            self.context.add_assertion(symb.current_value() == symb.value_at_index(0))

        implicit = self._implicit_constructor(self._initial_state())
        self._connect_blocks(self._genesis(), implicit)
        self._current_block = implicit
        self.context.add_assertion(self._error.current_value() == 0)

        constructor = contract.constructor
        if constructor is not None:
            self._visit_function(constructor)
        else:
            self._inline_constructor_hierarchy(contract)

        self._connect_blocks(
            self._current_block,
            self._constructor_summary([self._error.current_value()] + self._current_state()))

        self._clear_indices(contract, None)
        self._set_current_block(
            self._constructor_summary, [self._error.current_value()] + self._current_state())

        self.targets.append(VerificationTarget(
            scope=contract,
            contract=contract,
            source=self._current_block,
            constraints=z3.BoolVal(True),
            error_id=self._error.current_value(),
        ))
        self._connect_blocks(self._current_block, self._interface(), self._error.current_value() == 0)

    @staticmethod
    def _resolved_functions(contract: ContractDefinition) -> List[FunctionDefinition]:
        """Implemented functions callable on `contract`, overriding ones first."""
        result: List[FunctionDefinition] = []
        signatures = set()
        for base in contract.linearized_base_contracts:
            for function in base.functions:
                if function.is_constructor or not function.is_implemented:
                    continue
                if function.signature in signatures:
                    continue
                signatures.add(function.signature)
                result.append(function)
        return result

    # ------------------------------------------------------------------
    # Functions and constructors
    # ------------------------------------------------------------------

    def _visit_function(self, function: FunctionDefinition):
        logger.debug("encoding function %s", function.signature)
        self._current_function = function
        self._init_function(function)

        entry = self._create_block(function)
        body_node = function.body if function.body is not None else function
        body = self._create_block(body_node, "body_" if function.body is None else "")

        entry_app = entry(self._current_function_variables())
        if function.is_constructor:
            self._connect_blocks(self._current_block, entry_app)
        else:
            self._connect_blocks(self._genesis(), entry_app)

        self.context.add_assertion(self._error.current_value() == 0)
        for var in self._state_variables:
            symb = self.context.variable(var)
            self.context.add_assertion(symb.value_at_index(0) == symb.current_value())
            self.context.set_unknown_value(var)
        for var in function.parameters:
            symb = self.context.variable(var)
            self.context.add_assertion(symb.value_at_index(0) == symb.current_value())
            self.context.set_unknown_value(var)
        for var in function.return_parameters + function.local_variables():
            self.context.set_zero_value(var)

        self._connect_blocks(entry_app, body(self._current_block_variables()))
        self._set_current_block(body)

        if function.is_constructor:
            exit_block = self.predicates.create(
                constructor_sort(self._state_variables),
                f"constructor_exit_{self._contract_suffix(self._current_contract)}")
            self._return_dest = lambda: exit_block([self._error.current_value()] + self._current_state())
            self._inline_constructor_hierarchy(self._current_contract)
        else:
            exit_block = None
            self._return_dest = lambda: self._summary(function)

        self._visit_statement(function.body)

        if exit_block is not None:
            self._connect_blocks(
                self._current_block, exit_block([self._error.current_value()] + self._current_state()))
            self._clear_indices(self._current_contract, function)
            self._set_current_block(exit_block, [self._error.current_value()] + self._current_state())
        else:
            self._end_function(function)

        self._return_dest = None
        self._current_function = None

    def _init_function(self, function: FunctionDefinition):
        self.context.path_conditions.clear()
        for var in function.parameters + function.return_parameters + function.local_variables():
            self.context.create_variable(var)
        for var in self._constructor_extras(function):
            self.context.create_variable(var)
        self._clear_indices(self._current_contract, function)

    def _end_function(self, function: FunctionDefinition):
        error = self._error.current_value()
        summary = self._summary(function)
        self._connect_blocks(self._current_block, summary)

        iface = self._interface()
        self._set_current_block(self._interfaces[self._current_contract], self._initial_state())

        if function.is_public:
            self.targets.append(VerificationTarget(
                scope=function,
                contract=self._current_contract,
                source=self._current_block,
                constraints=summary,
                error_id=error,
            ))
            self._connect_blocks(self._current_block, iface, z3.And(summary, error == 0))

    def _inline_constructor_hierarchy(self, contract: ContractDefinition):
        """Run base constructors and state initializers of `contract`.

        Bases with implicit constructors are skipped until the first
        explicit one, which is inlined and handles the rest of the
        hierarchy recursively. State variable initializers then run from
        the deepest implicit base up to `contract`.
        """
        hierarchy = self._current_contract.linearized_base_contracts
        position = next((i for i, c in enumerate(hierarchy) if c is contract), None)
        if position is None:
            raise InternalEncodingError(
                f"{contract.name} is not a base of {self._current_contract.name}")

        implicit_bases: List[ContractDefinition] = []
        for base in hierarchy[position + 1:]:
            if base.constructor is not None:
                self._inline_constructor(base.constructor)
                break
            implicit_bases.append(base)

        for base in reversed(implicit_bases):
            self._initialize_state_variables(base)
        self._initialize_state_variables(contract)

    def _inline_constructor(self, constructor: FunctionDefinition):
        base = constructor.contract
        logger.debug("inlining constructor of %s", base.name)

        arguments = None
        for contract in self._current_contract.linearized_base_contracts:
            arguments = contract.base_constructor_arguments(base)
            if arguments:
                break

        if arguments:
            values = [self.expr_encoder.encode(arg) for arg in arguments]
            for param, value in zip(constructor.parameters, values):
                self.expr_encoder.assign_variable(param, value)
        else:
            for param in constructor.parameters:
                self.context.reset_variable(param)
        for var in constructor.return_parameters + constructor.local_variables():
            self.context.new_value(var)
            self.context.set_zero_value(var)

        self._inline_constructor_hierarchy(base)

        outer_return_dest = self._return_dest
        after_block = None
        if any(isinstance(s, Return) for s in iter_statements(constructor.body)):
            after_block = self._create_block(constructor, "base_constructor_after_")
            self._return_dest = lambda: after_block(self._current_block_variables())

        self._visit_statement(constructor.body)

        if after_block is not None:
            self._connect_blocks(self._current_block, after_block(self._current_block_variables()))
            self._set_current_block(after_block)
        self._return_dest = outer_return_dest

    def _initialize_state_variables(self, contract: ContractDefinition):
        for var in contract.state_variables:
            if var.is_constant or var.value is None:
                continue
            value = self.expr_encoder.encode(var.value)
            self.expr_encoder.assign_variable(var, value)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _visit_statement(self, stmt: Optional[Statement]):
        if stmt is None:
            return
        if isinstance(stmt, Block):
            for s in stmt.statements:
                self._visit_statement(s)
        elif isinstance(stmt, ExpressionStatement):
            self.expr_encoder.encode(stmt.expression)
        elif isinstance(stmt, VariableDeclarationStatement):
            self._visit_variable_declaration(stmt)
        elif isinstance(stmt, IfStatement):
            self._visit_if(stmt)
        elif isinstance(stmt, WhileStatement):
            self._visit_while(stmt)
        elif isinstance(stmt, ForStatement):
            self._visit_for(stmt)
        elif isinstance(stmt, Break):
            self._visit_jump(stmt, self._break_dest, "break_ghost_")
        elif isinstance(stmt, Continue):
            self._visit_jump(stmt, self._continue_dest, "continue_ghost_")
        elif isinstance(stmt, Return):
            self._visit_return(stmt)
        else:
            raise NotImplementedError(f"Statement type not yet supported: {type(stmt)}")

    def _visit_variable_declaration(self, stmt: VariableDeclarationStatement):
        if stmt.initial_value is None:
            for decl in stmt.declarations:
                if decl is not None:
                    self.context.new_value(decl)
                    self.context.set_zero_value(decl)
            return

        value = self.expr_encoder.encode(stmt.initial_value)
        if len(stmt.declarations) == 1:
            if stmt.declarations[0] is not None:
                self.expr_encoder.assign_variable(stmt.declarations[0], value)
            return
        if not isinstance(value, list) or len(value) != len(stmt.declarations):
            raise InternalEncodingError("Tuple declaration does not match its initial value")
        for decl, v in zip(stmt.declarations, value):
            if decl is not None and v is not None:
                self.expr_encoder.assign_variable(decl, v)

    def _visit_if(self, stmt: IfStatement):
        unknown_call_was_seen = self._unknown_function_call_seen
        self._unknown_function_call_seen = False

        header = self._create_block(stmt, "if_header_")
        true_block = self._create_block(stmt.true_body, "if_true_")
        false_block = self._create_block(stmt.false_body, "if_false_") if stmt.false_body is not None else None
        after = self._create_block(stmt, "if_after_")

        self._connect_blocks(self._current_block, self._predicate(header))
        self._set_current_block(header)
        condition = self.expr_encoder.encode(stmt.condition)

        self._connect_blocks(self._current_block, self._predicate(true_block), condition)
        if false_block is not None:
            self._connect_blocks(self._current_block, self._predicate(false_block), z3.Not(condition))
        else:
            self._connect_blocks(self._current_block, self._predicate(after), z3.Not(condition))

        self._set_current_block(true_block)
        self._visit_statement(stmt.true_body)
        self._connect_blocks(self._current_block, self._predicate(after))

        if false_block is not None:
            self._set_current_block(false_block)
            self._visit_statement(stmt.false_body)
            self._connect_blocks(self._current_block, self._predicate(after))

        self._set_current_block(after)

        if self._unknown_function_call_seen:
            self._erase_knowledge()
        self._unknown_function_call_seen = unknown_call_was_seen

    def _visit_while(self, stmt: WhileStatement):
        unknown_call_was_seen = self._unknown_function_call_seen
        self._unknown_function_call_seen = False

        prefix = "do_while" if stmt.is_do_while else "while"
        header = self._create_block(stmt, f"{prefix}_header_")
        body = self._create_block(stmt.body, f"{prefix}_body_")
        after = self._create_block(stmt, f"{prefix}_after_")

        outer_break_dest = self._break_dest
        outer_continue_dest = self._continue_dest
        self._break_dest = after
        self._continue_dest = header

        if stmt.is_do_while:
            self._visit_statement(stmt.body)

        self._connect_blocks(self._current_block, self._predicate(header))
        self._set_current_block(header)

        condition = self.expr_encoder.encode(stmt.condition)
        self._connect_blocks(self._current_block, self._predicate(body), condition)
        self._connect_blocks(self._current_block, self._predicate(after), z3.Not(condition))

        self._set_current_block(body)
        self._visit_statement(stmt.body)

        self._break_dest = outer_break_dest
        self._continue_dest = outer_continue_dest

        # back edge
        self._connect_blocks(self._current_block, self._predicate(header))
        self._set_current_block(after)

        if self._unknown_function_call_seen:
            self._erase_knowledge()
        self._unknown_function_call_seen = unknown_call_was_seen

    def _visit_for(self, stmt: ForStatement):
        unknown_call_was_seen = self._unknown_function_call_seen
        self._unknown_function_call_seen = False

        header = self._create_block(stmt, "for_header_")
        body = self._create_block(stmt.body, "for_body_")
        after = self._create_block(stmt, "for_after_")
        post = self._create_block(stmt.loop_expression, "for_post_") if stmt.loop_expression is not None else None

        outer_break_dest = self._break_dest
        outer_continue_dest = self._continue_dest
        self._break_dest = after
        self._continue_dest = post if post is not None else header

        self._visit_statement(stmt.initialization)

        self._connect_blocks(self._current_block, self._predicate(header))
        self._set_current_block(header)

        condition = z3.BoolVal(True)
        if stmt.condition is not None:
            condition = self.expr_encoder.encode(stmt.condition)

        self._connect_blocks(self._current_block, self._predicate(body), condition)
        self._connect_blocks(self._current_block, self._predicate(after), z3.Not(condition))

        self._set_current_block(body)
        self._visit_statement(stmt.body)

        if post is not None:
            self._connect_blocks(self._current_block, self._predicate(post))
            self._set_current_block(post)
            self._visit_statement(stmt.loop_expression)

        self._break_dest = outer_break_dest
        self._continue_dest = outer_continue_dest

        # back edge
        self._connect_blocks(self._current_block, self._predicate(header))
        self._set_current_block(after)

        if self._unknown_function_call_seen:
            self._erase_knowledge()
        self._unknown_function_call_seen = unknown_call_was_seen

    def _visit_jump(self, stmt: Statement, dest: Optional[Predicate], ghost_prefix: str):
        if dest is None:
            raise InternalEncodingError(f"{type(stmt).__name__} outside of a loop")
        self._connect_blocks(self._current_block, self._predicate(dest))
        ghost = self._create_block(stmt, ghost_prefix)
        self._current_block = self._predicate(ghost)

    def _visit_return(self, stmt: Return):
        if self._return_dest is None:
            raise InternalEncodingError("Return outside of a function")
        if stmt.expression is not None:
            value = self.expr_encoder.encode(stmt.expression)
            params = self._current_function.return_parameters if self._current_function is not None else []
            values = value if isinstance(value, list) else [value]
            if len(values) != len(params):
                raise InternalEncodingError(
                    f"Returning {len(values)} values from a function with {len(params)} outputs")
            for param, v in zip(params, values):
                self.expr_encoder.assign_variable(param, v)
        self._connect_blocks(self._current_block, self._return_dest())
        ghost = self._create_block(stmt, "return_ghost_")
        self._current_block = self._predicate(ghost)

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _visit_function_call(self, call: FunctionCall):
        kind = call.kind
        if kind == CallKind.ASSERT:
            self._visit_assert(call)
            return None
        elif kind == CallKind.REQUIRE:
            condition = self.expr_encoder.encode(call.arguments[0])
            for arg in call.arguments[1:]:
                self.expr_encoder.encode(arg)
            self.context.add_path_implied(condition)
            return None
        elif kind == CallKind.REVERT:
            for arg in call.arguments:
                self.expr_encoder.encode(arg)
            self.context.add_path_implied(z3.BoolVal(False))
            return None
        elif kind == CallKind.INTERNAL:
            return self._internal_function_call(call)
        elif kind in UNKNOWN_CALL_KINDS:
            result = self.expr_encoder.unknown_call_result(call)
            self._unknown_function_call()
            return result
        else:
            return self.expr_encoder.unknown_call_result(call)

    def _in_constructor_context(self) -> bool:
        return self._current_function is None or self._current_function.is_constructor

    def _current_scope(self) -> ASTNode:
        if self._in_constructor_context():
            return self._current_contract
        return self._current_function

    def _current_summary(self) -> z3.BoolRef:
        if self._in_constructor_context():
            return self._constructor_summary([self._error.current_value()] + self._current_state())
        return self._summary(self._current_function)

    def _visit_assert(self, call: FunctionCall):
        if len(call.arguments) != 1:
            raise InternalEncodingError("assert takes exactly one argument")
        condition = self.expr_encoder.encode(call.arguments[0])

        self._function_assertions.setdefault(self._current_scope(), []).append(call)

        previous_error = self._error.current_value()
        self._error.increase_index()

        self._connect_blocks(
            self._current_block,
            self._current_summary(),
            z3.And(self.context.current_path_conditions(),
                   z3.Not(condition),
                   self._error.current_value() == call.id))

        self.context.add_assertion(self._error.current_value() == previous_error)

    def _resolve_callee(self, call: FunctionCall) -> Optional[FunctionDefinition]:
        """Virtual lookup of the called function in the current contract."""
        function = call.function
        if function is None:
            return None
        if function.contract is not None and function.contract.is_library:
            return function
        for contract in self._current_contract.linearized_base_contracts:
            for candidate in contract.functions:
                if not candidate.is_constructor and candidate.signature == function.signature:
                    return candidate
        return None

    def _internal_function_call(self, call: FunctionCall):
        function = self._resolve_callee(call)
        if function is None or not function.is_implemented:
            logger.debug("call to %s treated as unknown", call.name or "<unresolved>")
            result = self.expr_encoder.unknown_call_result(call)
            self._unknown_function_call()
            return result

        arguments = [self.expr_encoder.encode(arg) for arg in call.arguments]

        self.call_graph.add_edge(self._current_scope(), function)
        callee_contract = function.contract
        library = callee_contract is not None and callee_contract.is_library
        if library:
            self.context.add_path_implied(self._interface(callee_contract))

        previous_error = self._error.current_value()

        self._error.increase_index()
        args = [self._error.current_value()]
        args += self._state_at(0, callee_contract) if library else self._current_state()
        args += arguments
        if not library:
            for var in self._state_variables:
                self.context.new_value(var)
        args += self._state_at(1, callee_contract) if library else self._current_state()
        returns = [self.context.new_unknown(p.type, f"return_{function.name}") for p in function.return_parameters]
        args += returns

        summaries = self._summaries.get(callee_contract if library else self._current_contract, {})
        if function not in summaries:
            raise InternalEncodingError(f"No summary for {function.signature}")
        self.context.add_path_implied(summaries[function](args))

        self._connect_blocks(
            self._current_block,
            self._current_summary(),
            z3.And(self.context.current_path_conditions(), self._error.current_value() > 0))

        self.context.add_path_implied(self._error.current_value() == 0)
        self._error.increase_index()
        self.context.add_assertion(self._error.current_value() == previous_error)

        if not returns:
            return None
        if len(returns) == 1:
            return returns[0]
        return returns

    def _unknown_function_call(self):
        self._erase_knowledge()
        self._unknown_function_call_seen = True

    def _erase_knowledge(self):
        state = set(self._state_variables)
        self.context.reset_variables(lambda v: v in state or v.has_reference_or_mapping_type)

    # ------------------------------------------------------------------
    # Blocks and rules
    # ------------------------------------------------------------------

    @staticmethod
    def _contract_suffix(contract: ContractDefinition) -> str:
        return f"{contract.name}_{contract.id}"

    def _predicate_name(self, node: ASTNode, contract: Optional[ContractDefinition] = None) -> str:
        if contract is None:
            contract = self._current_contract
        if isinstance(node, FunctionDefinition):
            prefix = f"{node.kind.value}_{node.name}_"
        elif self._current_function is not None:
            prefix = self._current_function.name
        else:
            prefix = ""
        return f"{prefix}_{node.id}_{contract.id}"

    def _create_block(self, node: ASTNode, prefix: str = "") -> Predicate:
        if self._current_contract is None:
            raise InternalEncodingError("Block requested outside of a contract")
        if isinstance(node, FunctionDefinition) and node is self._current_function:
            sort = function_sort(self._state_variables, node)
        else:
            sort = block_sort(self._state_variables, self._current_function, self._block_locals())
        name = f"block_{self.predicates.unique_prefix()}_{prefix}{self._predicate_name(node)}"
        return self.predicates.create(sort, name)

    def _predicate(self, block: Predicate) -> z3.BoolRef:
        return block(self._current_block_variables())

    def _set_current_block(self, block: Predicate, args: Optional[Sequence[z3.ExprRef]] = None):
        if self.context.solver_stack_height() > 0:
            self.context.pop_solver()
        self._clear_indices(self._current_contract, self._current_function)
        self.context.push_solver()
        self._current_block = block(list(args) if args is not None else self._current_block_variables())

    def _connect_blocks(self, source: z3.BoolRef, target: z3.BoolRef, constraints=None):
        body = [source]
        side = self.context.assertions()
        if not z3.is_true(side):
            body.append(side)
        if constraints is not None and not z3.is_true(constraints):
            body.append(constraints)
        antecedent = body[0] if len(body) == 1 else z3.And(body)
        source_name = source.decl().name()
        target_name = target.decl().name()
        self._add_rule(z3.Implies(antecedent, target), f"{source_name}_to_{target_name}",
                       source=source_name, target=target_name)

    def _add_rule(self, rule: z3.BoolRef, name: str, source: str, target: str):
        logger.debug("rule %s", name)
        self.rules.append(HornRule(name=name, source=source, target=target, expr=rule))
        self.solver.add_rule(rule, name)

    def _clear_indices(self, contract: Optional[ContractDefinition], function: Optional[FunctionDefinition]):
        """Move every variable to SSA index 1, keeping index 0 as the entry snapshot."""
        decls: List[VariableDeclaration] = list(self._state_variables)
        if function is not None:
            decls += function.parameters + function.return_parameters + function.local_variables()
        if contract is not None and (function is None or function.is_constructor):
            decls += self._constructor_extras(function)
        for decl in decls:
            if self.context.known_variable(decl):
                var = self.context.variable(decl)
                var.reset_index()
                var.increase_index()

    # ------------------------------------------------------------------
    # Argument vectors
    # ------------------------------------------------------------------

    def _constructor_extras(self, function: Optional[FunctionDefinition]) -> List[VariableDeclaration]:
        """Parameters, outputs and locals of every explicit base constructor."""
        if self._current_contract is None:
            return []
        if function is not None and not function.is_constructor:
            return []
        extras: List[VariableDeclaration] = []
        for base in self._current_contract.linearized_base_contracts[1:]:
            constructor = base.constructor
            if constructor is not None:
                extras += constructor.parameters + constructor.return_parameters + constructor.local_variables()
        return extras

    def _block_locals(self) -> List[VariableDeclaration]:
        locals: List[VariableDeclaration] = []
        if self._current_function is not None:
            locals += self._current_function.local_variables()
        if self._in_constructor_context():
            locals += self._constructor_extras(self._current_function)
        return locals

    def _current_state(self) -> List[z3.ExprRef]:
        return [self.context.current_value(v) for v in self._state_variables]

    def _initial_state(self) -> List[z3.ExprRef]:
        return [self.context.variable(v).value_at_index(0) for v in self._state_variables]

    def _state_at(self, index: int, contract: ContractDefinition) -> List[z3.ExprRef]:
        return [self.context.variable(v).value_at_index(index) for v in state_variables(contract)]

    def _current_function_variables(self) -> List[z3.ExprRef]:
        function = self._current_function
        params = function.parameters if function is not None else []
        returns = function.return_parameters if function is not None else []
        return ([self._error.current_value()]
                + self._initial_state()
                + [self.context.variable(p).value_at_index(0) for p in params]
                + self._current_state()
                + [self.context.current_value(p) for p in params]
                + [self.context.current_value(r) for r in returns])

    def _current_block_variables(self) -> List[z3.ExprRef]:
        return self._current_function_variables() + [self.context.current_value(v) for v in self._block_locals()]

    def _summary(self, function: FunctionDefinition) -> z3.BoolRef:
        """Summary of `function` applied to the current variable versions."""
        contract = function.contract
        library = contract is not None and contract.is_library
        owner = contract if library else self._current_contract
        try:
            predicate = self._summaries[owner][function]
        except KeyError:
            raise InternalEncodingError(f"No summary for {function.signature}") from None
        args = [self._error.current_value()]
        args += self._state_at(0, contract) if library else self._initial_state()
        args += [self.context.variable(p).value_at_index(0) for p in function.parameters]
        args += self._state_at(1, contract) if library else self._current_state()
        args += [self.context.current_value(r) for r in function.return_parameters]
        return predicate(args)

    def _interface(self, contract: Optional[ContractDefinition] = None) -> z3.BoolRef:
        if contract is None:
            contract = self._current_contract
        if contract not in self._interfaces:
            raise InternalEncodingError(f"No interface for {contract.name}")
        if contract is self._current_contract:
            state = self._current_state()
        else:
            state = [self.context.current_value(v) for v in state_variables(contract)]
        return self._interfaces[contract](state)

    # ------------------------------------------------------------------
    # Verification targets
    # ------------------------------------------------------------------

    def _check_verification_targets(self):
        for target in self.targets:
            assertions = transaction_assertions(self.call_graph, target.scope, self._function_assertions)
            for assertion in assertions:
                error_predicate = self.predicates.increase_index(self._errors[target.contract])
                error_app = error_predicate()
                self._connect_blocks(
                    target.source,
                    error_app,
                    z3.And(target.constraints, target.error_id == assertion.id))
                result = self._query(error_app, assertion)
                self.query_results.setdefault(assertion, []).append(result)

    def _query(self, query: z3.BoolRef, assertion: FunctionCall) -> QueryResult:
        result = self.solver.query(query)
        logger.info("assertion %d (%s): %s", assertion.id, assertion.location, result)
        if result.result == SolverResult.CONFLICTING:
            self.reporter.warning(
                assertion.location,
                "At least two SMT solvers provided conflicting answers. Results might not be sound.")
        elif result.result == SolverResult.ERROR:
            self.reporter.warning(assertion.location, "Error trying to invoke SMT solver.")
        return result
