"""Constrained Horn Clause encoding of contracts."""

from .encoder import CHCEncoder, HornRule
from .predicates import Predicate, PredicateRegistry
from .sorts import PredicateSort, state_variables, summary_sort
from .targets import CallGraph, VerificationTarget, transaction_assertions

__all__ = [
    "CHCEncoder",
    "HornRule",
    "Predicate",
    "PredicateRegistry",
    "PredicateSort",
    "state_variables",
    "summary_sort",
    "CallGraph",
    "VerificationTarget",
    "transaction_assertions",
]
