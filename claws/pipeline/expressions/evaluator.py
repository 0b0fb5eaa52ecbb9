"""Evaluate compiled expressions against a variable context.

Evaluation is total: missing fields resolve to ``None`` and type mismatches in
comparisons evaluate to ``False``, so a compiled expression never raises.
"""

import dataclasses
import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

from claws.models.node import MappingNode, Node, unwrap

from .functions import FUNCTIONS
from .nodes import Call, Comparison, Expr, FieldRef, ListLiteral, Literal, Logical, Not
from .parser import CompiledExpression


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern)
    except re.error:
        return None


def get_field(value: Any, name: str) -> Any:
    """Look up one field on a model object, parsed node, mapping or dataclass."""
    if value is None:
        return None
    if hasattr(value, "get_field"):
        return value.get_field(name)
    if isinstance(value, MappingNode):
        return value.get(name)
    if isinstance(value, Mapping):
        return value.get(name)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return getattr(value, name, None)
    return None


def _resolve(ref: FieldRef, context: Mapping[str, Any]) -> Any:
    value = context.get(ref.variable)
    for name in ref.path:
        value = get_field(value, name)
        if value is None:
            return None
    return unwrap(value)


def _matches(subject: Any, pattern: Any) -> bool:
    if not isinstance(subject, str) or not isinstance(pattern, str):
        return False
    compiled = _compile_pattern(pattern)
    return compiled is not None and compiled.search(subject) is not None


def _member(item: Any, container: Any) -> bool:
    if container is None:
        return False
    if isinstance(container, str):
        return isinstance(item, str) and item in container
    if isinstance(container, (list, tuple, set, frozenset, Mapping)):
        try:
            return item in container
        except TypeError:
            return False
    return False


def _order(operator: str, left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return False
    try:
        if operator == "<":
            return left < right
        if operator == ">":
            return left > right
        if operator == "<=":
            return left <= right
        return left >= right
    except TypeError:
        return False


def _compare(node: Comparison, context: Mapping[str, Any]) -> bool:
    left = _evaluate(node.left, context)
    right = _evaluate(node.right, context)

    if node.operator == "==":
        return bool(left == right)
    if node.operator == "!=":
        return bool(left != right)
    if node.operator == "=~":
        return _matches(left, right)
    if node.operator == "in":
        return _member(left, right)
    return _order(node.operator, left, right)


def _evaluate(node: Expr, context: Mapping[str, Any]) -> Any:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, ListLiteral):
        return [_evaluate(item, context) for item in node.items]
    if isinstance(node, FieldRef):
        return _resolve(node, context)
    if isinstance(node, Call):
        args = [_evaluate(arg, context) for arg in node.args]
        return FUNCTIONS[node.name](*args)
    if isinstance(node, Not):
        return not _evaluate(node.operand, context)
    if isinstance(node, Logical):
        left = _evaluate(node.left, context)
        if node.operator == "&&":
            return _evaluate(node.right, context) if left else left
        return left if left else _evaluate(node.right, context)
    if isinstance(node, Comparison):
        return _compare(node, context)
    raise TypeError(f"Unknown expression node: {type(node).__name__}")


def evaluate(compiled: CompiledExpression, context: Mapping[str, Any]) -> Any:
    """
    Evaluate a compiled expression.

    Args:
        compiled: Expression returned by ``compile_expression``
        context: Variables visible as ``$name`` (e.g. data, workflow, job, step)

    Returns:
        The expression's value; rules treat it as truthy/falsy
    """
    return _evaluate(compiled.root, context)


def is_truthy(value: Any) -> bool:
    """Truthiness used by the rule engine (empty collections are falsy)."""
    if isinstance(value, Node):
        value = unwrap(value)
    return bool(value)
