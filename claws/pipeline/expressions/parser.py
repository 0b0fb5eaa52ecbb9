"""Recursive-descent parser for rule expressions.

Grammar (lowest precedence first)::

    expression  := or
    or          := and ("||" and)*
    and         := comparison ("&&" comparison)*
    comparison  := unary (("==" | "!=" | "=~" | "in" | "<" | ">" | "<=" | ">=") unary)?
    unary       := "!" unary | primary
    primary     := STRING | NUMBER | "null" | "true" | "false"
                 | "[" [expression ("," expression)*] "]"
                 | "$" NAME ("." NAME)*
                 | NAME "(" [expression ("," expression)*] ")"
                 | "(" expression ")"
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .functions import ARITY
from .nodes import Call, Comparison, Expr, FieldRef, ListLiteral, Literal, Logical, Not
from .tokenizer import Token, TokenizeError, TokenType, tokenize

COMPARISON_OPERATORS = {"==", "!=", "=~", "<", ">", "<=", ">="}
KEYWORDS = {"null": None, "true": True, "false": False}


class ExpressionSyntaxError(Exception):
    """Raised when a rule expression cannot be compiled."""

    def __init__(self, message: str, expression: str, position: int | None = None):
        self.expression = expression
        self.position = position
        location = f" at position {position}" if position is not None else ""
        super().__init__(f"{message}{location} in expression: {expression.strip()}")


@dataclass(frozen=True)
class CompiledExpression:
    """A parsed expression ready for evaluation."""

    text: str
    root: Expr

    def __str__(self) -> str:
        return f"<Expression '{' '.join(self.text.split())}'>"

    def evaluate(self, context: Mapping[str, Any]) -> Any:
        from .evaluator import evaluate

        return evaluate(self, context)


class _Parser:
    def __init__(self, text: str, tokens: list[Token]):
        self.text = text
        self.tokens = tokens
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _error(self, message: str, token: Token | None = None) -> ExpressionSyntaxError:
        token = token or self.current
        return ExpressionSyntaxError(message, self.text, token.position)

    def _advance(self) -> Token:
        token = self.current
        if token.type is not TokenType.END:
            self.index += 1
        return token

    def _check(self, token_type: TokenType, value: str | None = None) -> bool:
        token = self.current
        return token.type is token_type and (value is None or token.value == value)

    def _expect(self, token_type: TokenType, description: str) -> Token:
        if not self._check(token_type):
            found = self.current.value or "end of expression"
            raise self._error(f"Expected {description} but found '{found}'")
        return self._advance()

    def parse(self) -> Expr:
        if self._check(TokenType.END):
            raise self._error("Empty expression")
        expr = self._parse_or()
        if not self._check(TokenType.END):
            raise self._error(f"Unexpected '{self.current.value}'")
        return expr

    def _parse_or(self) -> Expr:
        expr = self._parse_and()
        while self._check(TokenType.OPERATOR, "||"):
            self._advance()
            expr = Logical("||", expr, self._parse_and())
        return expr

    def _parse_and(self) -> Expr:
        expr = self._parse_comparison()
        while self._check(TokenType.OPERATOR, "&&"):
            self._advance()
            expr = Logical("&&", expr, self._parse_comparison())
        return expr

    def _comparison_operator(self) -> str | None:
        token = self.current
        if token.type is TokenType.OPERATOR and token.value in COMPARISON_OPERATORS:
            return token.value
        if token.type is TokenType.IDENTIFIER and token.value == "in":
            return "in"
        return None

    def _parse_comparison(self) -> Expr:
        left = self._parse_unary()
        operator = self._comparison_operator()
        if operator is None:
            return left

        operator_token = self._advance()
        right = self._parse_unary()
        if self._comparison_operator() is not None:
            raise self._error("Comparisons cannot be chained; use parentheses")

        if operator == "=~" and isinstance(right, Literal):
            self._validate_pattern(right.value, operator_token)
        return Comparison(operator, left, right)

    def _validate_pattern(self, pattern: object, token: Token) -> None:
        if not isinstance(pattern, str):
            raise self._error("Right side of '=~' must be a string pattern", token)
        try:
            re.compile(pattern)
        except re.error as e:
            raise self._error(f"Invalid regular expression '{pattern}': {e}", token) from e

    def _parse_unary(self) -> Expr:
        if self._check(TokenType.OPERATOR, "!"):
            self._advance()
            return Not(self._parse_unary())
        return self._parse_primary()

    def _parse_primary(self) -> Expr:
        token = self.current

        if token.type is TokenType.STRING:
            self._advance()
            return Literal(token.value)

        if token.type is TokenType.NUMBER:
            self._advance()
            return Literal(float(token.value) if "." in token.value else int(token.value))

        if token.type is TokenType.VARIABLE:
            return self._parse_field_ref()

        if token.type is TokenType.LBRACKET:
            self._advance()
            items = self._parse_arguments(TokenType.RBRACKET, "']'")
            return ListLiteral(items)

        if token.type is TokenType.LPAREN:
            self._advance()
            expr = self._parse_or()
            self._expect(TokenType.RPAREN, "')'")
            return expr

        if token.type is TokenType.IDENTIFIER:
            return self._parse_identifier()

        found = token.value or "end of expression"
        raise self._error(f"Unexpected '{found}'")

    def _parse_field_ref(self) -> FieldRef:
        variable = self._advance().value
        path: list[str] = []
        while self._check(TokenType.DOT):
            self._advance()
            path.append(self._expect(TokenType.IDENTIFIER, "a field name").value)
        return FieldRef(variable, tuple(path))

    def _parse_identifier(self) -> Expr:
        token = self._advance()
        if token.value in KEYWORDS:
            return Literal(KEYWORDS[token.value])

        if not self._check(TokenType.LPAREN):
            raise self._error(f"Unknown identifier '{token.value}'", token)

        if token.value not in ARITY:
            raise self._error(f"Unknown function '{token.value}'", token)

        self._advance()
        args = self._parse_arguments(TokenType.RPAREN, "')'")
        expected = ARITY[token.value]
        if len(args) != expected:
            raise self._error(
                f"Function '{token.value}' takes {expected} argument(s), got {len(args)}", token
            )
        return Call(token.value, args)

    def _parse_arguments(self, closing: TokenType, description: str) -> tuple[Expr, ...]:
        args: list[Expr] = []
        if self._check(closing):
            self._advance()
            return ()

        args.append(self._parse_or())
        while self._check(TokenType.COMMA):
            self._advance()
            args.append(self._parse_or())
        self._expect(closing, description)
        return tuple(args)


def compile_expression(text: str) -> CompiledExpression:
    """
    Compile an expression string.

    Args:
        text: Expression source, e.g. ``$job.meta.container != null``

    Returns:
        CompiledExpression

    Raises:
        ExpressionSyntaxError: If the expression is malformed
    """
    try:
        tokens = tokenize(text)
    except TokenizeError as e:
        raise ExpressionSyntaxError(e.message, text, e.position) from e

    return CompiledExpression(text=text, root=_Parser(text, tokens).parse())
