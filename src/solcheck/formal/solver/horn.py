"""
Helpers shared by the Horn-clause backends.
"""
from typing import Iterable, List

import z3


def free_constants(expr: z3.ExprRef, relations: Iterable[str]) -> List[z3.ExprRef]:
    """Collect uninterpreted constants of `expr` that are not relations.

    Constants are returned in depth-first order of first occurrence so the
    result is stable across runs.
    """
    relation_names = set(relations)
    seen = set()
    found: List[z3.ExprRef] = []
    names = set()

    stack = [expr]
    while stack:
        e = stack.pop()
        eid = e.get_id()
        if eid in seen:
            continue
        seen.add(eid)
        if z3.is_const(e) and e.decl().kind() == z3.Z3_OP_UNINTERPRETED:
            name = e.decl().name()
            if name not in relation_names and name not in names:
                names.add(name)
                found.append(e)
            continue
        if z3.is_app(e):
            stack.extend(reversed(e.children()))
    return found


def close_rule(rule: z3.BoolRef, relations: Iterable[str]) -> z3.BoolRef:
    """Universally quantify all free variables of a rule."""
    variables = free_constants(rule, relations)
    if not variables:
        return rule
    return z3.ForAll(variables, rule)
