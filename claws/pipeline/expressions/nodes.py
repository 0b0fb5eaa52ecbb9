"""Syntax tree for compiled rule expressions."""

from dataclasses import dataclass
from typing import Any


class Expr:
    """Base class for expression nodes."""


@dataclass(frozen=True)
class Literal(Expr):
    value: Any


@dataclass(frozen=True)
class ListLiteral(Expr):
    items: tuple[Expr, ...]


@dataclass(frozen=True)
class FieldRef(Expr):
    """``$variable.field.field``"""

    variable: str
    path: tuple[str, ...] = ()

    def __str__(self) -> str:
        return "$" + ".".join((self.variable,) + self.path)


@dataclass(frozen=True)
class Call(Expr):
    name: str
    args: tuple[Expr, ...]


@dataclass(frozen=True)
class Not(Expr):
    operand: Expr


@dataclass(frozen=True)
class Comparison(Expr):
    """Binary comparison: ``==``, ``!=``, ``=~``, ``in``, ``<``, ``>``, ``<=``, ``>=``."""

    operator: str
    left: Expr
    right: Expr


@dataclass(frozen=True)
class Logical(Expr):
    """Short-circuiting ``&&`` / ``||``."""

    operator: str
    left: Expr
    right: Expr
