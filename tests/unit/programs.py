"""
Helpers for building small contract ASTs in tests.
"""
from solcheck.formal.ast import (
    Assignment,
    BinaryOperation,
    Block,
    Break,
    CallKind,
    Conditional,
    Continue,
    ContractDefinition,
    ContractKind,
    ExpressionStatement,
    ForStatement,
    FunctionCall,
    FunctionDefinition,
    FunctionKind,
    Identifier,
    InheritanceSpecifier,
    Literal,
    Return,
    SourceUnit,
    VariableDeclaration,
    VariableDeclarationStatement,
    Visibility,
    WhileStatement,
    bool_type,
    uint_type,
)
from solcheck.formal.solver import QueryResult, SolverResult


def var(name, t=None, value=None):
    return VariableDeclaration(name, t if t is not None else uint_type(), value)


def ref(decl):
    return Identifier(decl.name, decl, type=decl.type)


def lit(value):
    return Literal(value, type=bool_type() if isinstance(value, bool) else uint_type())


def op(operator, left, right, t=None):
    if t is None:
        t = bool_type() if operator in ("==", "!=", "<", "<=", ">", ">=", "&&", "||") else left.type
    return BinaryOperation(operator, left, right, type=t)


def assign(lhs, rhs, operator="="):
    return Assignment(operator, lhs, rhs, type=lhs.type)


def call(kind, *args, function=None, t=None, name=""):
    return FunctionCall(kind, list(args), function, name, type=t)


def assert_(condition):
    return call(CallKind.ASSERT, condition, name="assert")


def require(condition):
    return call(CallKind.REQUIRE, condition, name="require")


def external_call(name="ext"):
    return call(CallKind.EXTERNAL, name=name)


def internal_call(function, *args):
    t = function.return_parameters[0].type if len(function.return_parameters) == 1 else None
    return call(CallKind.INTERNAL, *args, function=function, t=t, name=function.name)


def stmt(expr):
    return ExpressionStatement(expr)


def block(*statements):
    return Block(list(statements))


def declare(decl, initial_value=None):
    return VariableDeclarationStatement([decl], initial_value)


def while_(condition, *body):
    return WhileStatement(condition, block(*body))


def do_while(condition, *body):
    return WhileStatement(condition, block(*body), is_do_while=True)


def for_(init, condition, post, *body):
    return ForStatement(block(*body), init, condition, post)


def ternary(condition, true_expr, false_expr):
    return Conditional(condition, true_expr, false_expr, type=true_expr.type)


def break_():
    return Break()


def continue_():
    return Continue()


def return_(expr=None):
    return Return(expr)


def function(name, *body, params=(), returns=(), visibility=Visibility.PUBLIC):
    return FunctionDefinition(
        name,
        list(params),
        list(returns),
        block(*body),
        visibility=visibility,
    )


def constructor(*body, params=()):
    return FunctionDefinition(
        "",
        list(params),
        [],
        block(*body),
        kind=FunctionKind.CONSTRUCTOR,
    )


def contract(name, state=(), functions=(), bases=(), kind=ContractKind.CONTRACT):
    return ContractDefinition(
        name,
        list(state),
        list(functions),
        [b if isinstance(b, InheritanceSpecifier) else InheritanceSpecifier(b) for b in bases],
        kind,
    )


def library(name, functions=()):
    return contract(name, functions=functions, kind=ContractKind.LIBRARY)


def unit(*contracts):
    return SourceUnit(list(contracts))


class RecordingSolver:
    """Backend that records everything and answers with a fixed result."""

    name = "recording"

    def __init__(self, answer: SolverResult = SolverResult.UNSAT):
        self.answer = answer
        self.relations = []
        self.rules = []
        self.queries = []

    def register_relation(self, relation):
        self.relations.append(relation.sexpr())

    def add_rule(self, rule, name):
        self.rules.append((name, rule.sexpr()))

    def query(self, expr):
        self.queries.append(expr.sexpr())
        return QueryResult(result=self.answer, solver_name=self.name)

    def unhandled_queries(self):
        return []
