"""
Program-construct nodes and type annotations consumed by the encoder.
"""

from .types import (
    TypeCategory,
    SolType,
    bool_type,
    uint_type,
    int_type,
    address_type,
    mapping_type,
    array_type,
)
from .nodes import (
    SourceLocation,
    ASTNode,
    Expression,
    CallKind,
    UNKNOWN_CALL_KINDS,
    Literal,
    Identifier,
    UnaryOperation,
    BinaryOperation,
    Assignment,
    IndexAccess,
    Conditional,
    TupleExpression,
    FunctionCall,
    Statement,
    Block,
    ExpressionStatement,
    VariableDeclarationStatement,
    IfStatement,
    WhileStatement,
    ForStatement,
    Break,
    Continue,
    Return,
    iter_statements,
    VariableDeclaration,
    FunctionKind,
    Visibility,
    FunctionDefinition,
    ContractKind,
    InheritanceSpecifier,
    ContractDefinition,
    SourceUnit,
)

__all__ = [
    "TypeCategory",
    "SolType",
    "bool_type",
    "uint_type",
    "int_type",
    "address_type",
    "mapping_type",
    "array_type",
    "SourceLocation",
    "ASTNode",
    "Expression",
    "CallKind",
    "UNKNOWN_CALL_KINDS",
    "Literal",
    "Identifier",
    "UnaryOperation",
    "BinaryOperation",
    "Assignment",
    "IndexAccess",
    "Conditional",
    "TupleExpression",
    "FunctionCall",
    "Statement",
    "Block",
    "ExpressionStatement",
    "VariableDeclarationStatement",
    "IfStatement",
    "WhileStatement",
    "ForStatement",
    "Break",
    "Continue",
    "Return",
    "iter_statements",
    "VariableDeclaration",
    "FunctionKind",
    "Visibility",
    "FunctionDefinition",
    "ContractKind",
    "InheritanceSpecifier",
    "ContractDefinition",
    "SourceUnit",
]
