"""Rule expression language: compile once, evaluate against a context."""

from .evaluator import evaluate, get_field, is_truthy
from .functions import FUNCTIONS
from .parser import CompiledExpression, ExpressionSyntaxError, compile_expression

__all__ = [
    "FUNCTIONS",
    "CompiledExpression",
    "ExpressionSyntaxError",
    "compile_expression",
    "evaluate",
    "get_field",
    "is_truthy",
]
