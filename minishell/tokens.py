"""Splitting a command line into tokens and giving each token its role."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

_OPERATOR_CHARS = "|<>"
_QUOTES = "\"'"
_REDIRECTIONS = frozenset()  # filled in below, once TokenType exists


class TokenType(IntEnum):
    """Kind of a token on the command line."""

    INPUT = 0
    HERE_DOC = 1
    TRUNCT = 2
    APPEND = 3
    PIPE = 4
    WORD = 5
    CMD = 6
    ARG = 7


_REDIRECTIONS = frozenset(
    {TokenType.INPUT, TokenType.HERE_DOC, TokenType.APPEND, TokenType.TRUNCT}
)


@dataclass
class Token:
    """One token: its role and its text as typed (quotes included)."""

    type: TokenType
    text: str


class UnclosedQuoteError(ValueError):
    """Raised when a quote opened in a word is never closed."""

    def __init__(self, message: str = "Error unclosed quotes") -> None:
        super().__init__(message)


def _read_word(line: str, start: int) -> tuple[str, int]:
    """Return the word starting at ``start`` and the index just past it."""
    end = start
    length = len(line)
    while end < length and line[end] not in _OPERATOR_CHARS and line[end] != " ":
        char = line[end]
        if char in _QUOTES:
            closing = line.find(char, end + 1)
            if closing < 0:
                raise UnclosedQuoteError()
            end = closing
        end += 1
    return line[start:end], end


def _read_operator(line: str, start: int) -> tuple[Token, int]:
    """Return the operator token at ``start`` and the index just past it."""
    char = line[start]
    doubled = line[start + 1 : start + 2] == char
    if char == "<":
        if doubled:
            return Token(TokenType.HERE_DOC, "<<"), start + 2
        return Token(TokenType.INPUT, "<"), start + 1
    if char == ">":
        if doubled:
            return Token(TokenType.APPEND, ">>"), start + 2
        return Token(TokenType.TRUNCT, ">"), start + 1
    return Token(TokenType.PIPE, "|"), start + 1


def tokenize(line: str) -> list[Token]:
    """Split ``line`` into operator and word tokens.

    Words keep their quotes; a word ends at a space or an operator
    character outside quotes. Raises UnclosedQuoteError on an
    unterminated quote.
    """
    tokens: list[Token] = []
    pos = 0
    length = len(line)
    while pos < length:
        if line[pos] in " \t":
            pos += 1
            continue
        if line[pos] in _OPERATOR_CHARS:
            token, pos = _read_operator(line, pos)
            tokens.append(token)
        else:
            text, pos = _read_word(line, pos)
            tokens.append(Token(TokenType.WORD, text))
    return tokens


def classify(tokens: list[Token]) -> list[Token]:
    """Turn WORD tokens into commands and arguments, in place.

    The list is returned for convenience.
    """
    for pos, current in enumerate(tokens):
        nxt = tokens[pos + 1] if pos + 1 < len(tokens) else None
        prev = tokens[pos - 1] if pos >= 1 else None
        prev2 = tokens[pos - 2] if pos >= 2 else None

        if current.type in _REDIRECTIONS and nxt is not None and nxt.type is TokenType.WORD:
            nxt.type = TokenType.ARG
        elif tokens[0].type is TokenType.WORD:
            current.type = TokenType.CMD
        elif current.type is TokenType.WORD and prev is not None and (
            (
                prev.type is TokenType.ARG
                and prev2 is not None
                and prev2.type is TokenType.INPUT
            )
            or prev.type is TokenType.PIPE
        ):
            current.type = TokenType.CMD
        elif current.type is TokenType.WORD and prev is not None:
            if (
                prev.type is TokenType.ARG
                and prev2 is not None
                and prev2.type is TokenType.HERE_DOC
            ):
                current.type = TokenType.CMD
            elif prev.type in (TokenType.CMD, TokenType.ARG):
                current.type = TokenType.ARG
    return tokens


def parse_line(line: str) -> list[Token]:
    """Tokenize ``line`` and classify its words."""
    return classify(tokenize(line))