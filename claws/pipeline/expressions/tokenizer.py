"""Tokenizer for the rule expression language."""

from dataclasses import dataclass
from enum import Enum


class TokenType(Enum):
    """Kinds of tokens produced by the tokenizer."""

    STRING = "string"
    NUMBER = "number"
    VARIABLE = "variable"  # $name
    IDENTIFIER = "identifier"  # function names, null, true, false
    OPERATOR = "operator"
    DOT = "."
    COMMA = ","
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    END = "end"


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    position: int


class TokenizeError(Exception):
    """Raised on characters the expression language does not understand."""

    def __init__(self, message: str, position: int):
        self.message = message
        self.position = position
        super().__init__(f"{message} at position {position}")


# longest first so "==" wins over "="
OPERATORS = ("==", "!=", "=~", "<=", ">=", "&&", "||", "<", ">", "!")
PUNCTUATION = {
    ".": TokenType.DOT,
    ",": TokenType.COMMA,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
}
ESCAPES = {"\"": "\"", "'": "'", "\\": "\\"}


def _read_string(text: str, start: int) -> tuple[str, int]:
    """Read a quoted string starting at ``start``; return (value, next index).

    Unknown escapes are kept verbatim so regular expressions like ``"\\s"``
    survive untouched.
    """
    quote = text[start]
    chars: list[str] = []
    i = start + 1
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text):
            following = text[i + 1]
            if following in ESCAPES:
                chars.append(ESCAPES[following])
            else:
                chars.append(char + following)
            i += 2
            continue
        if char == quote:
            return "".join(chars), i + 1
        chars.append(char)
        i += 1
    raise TokenizeError("Unterminated string", start)


def _read_while(text: str, start: int, allowed: str) -> int:
    i = start
    while i < len(text) and (text[i].isalnum() or text[i] in allowed):
        i += 1
    return i


def _read_number(text: str, start: int) -> int:
    i = start
    if text[i] == "-":
        i += 1
    seen_dot = False
    while i < len(text) and (text[i].isdigit() or (text[i] == "." and not seen_dot)):
        if text[i] == ".":
            # "1." followed by a non-digit is not part of the number
            if i + 1 >= len(text) or not text[i + 1].isdigit():
                break
            seen_dot = True
        i += 1
    return i


def tokenize(text: str) -> list[Token]:
    """Split an expression into tokens, ending with an END token."""
    tokens: list[Token] = []
    i = 0
    while i < len(text):
        char = text[i]

        if char.isspace():
            i += 1
            continue

        if char in "\"'":
            value, i_next = _read_string(text, i)
            tokens.append(Token(TokenType.STRING, value, i))
            i = i_next
            continue

        if char.isdigit() or (char == "-" and i + 1 < len(text) and text[i + 1].isdigit()):
            end = _read_number(text, i)
            tokens.append(Token(TokenType.NUMBER, text[i:end], i))
            i = end
            continue

        if char == "$":
            end = _read_while(text, i + 1, "_")
            if end == i + 1:
                raise TokenizeError("Expected a variable name after '$'", i)
            tokens.append(Token(TokenType.VARIABLE, text[i + 1:end], i))
            i = end
            continue

        if char.isalpha() or char == "_":
            end = _read_while(text, i, "_")
            tokens.append(Token(TokenType.IDENTIFIER, text[i:end], i))
            i = end
            continue

        operator = next((op for op in OPERATORS if text.startswith(op, i)), None)
        if operator is not None:
            tokens.append(Token(TokenType.OPERATOR, operator, i))
            i += len(operator)
            continue

        if char in PUNCTUATION:
            tokens.append(Token(PUNCTUATION[char], char, i))
            i += 1
            continue

        raise TokenizeError(f"Unexpected character '{char}'", i)

    tokens.append(Token(TokenType.END, "", len(text)))
    return tokens
