"""Syntax checks on a classified token list."""

from __future__ import annotations

from itertools import pairwise

from minishell.tokens import Token, TokenType

PIPE_MESSAGE = "syntax error near unexpected token '|'"
NEWLINE_MESSAGE = "syntax error near unexpected token `newline'"

_REDIRECTIONS = frozenset(
    {TokenType.INPUT, TokenType.HERE_DOC, TokenType.TRUNCT, TokenType.APPEND}
)


class ShellSyntaxError(ValueError):
    """A command line that cannot be run; the shell's status becomes 2."""

    exit_code = 2


def check_syntax(tokens: list[Token]) -> list[Token]:
    """Raise ShellSyntaxError if ``tokens`` is not a valid command line.

    Returns the tokens unchanged when they are valid.
    """
    if not tokens:
        return tokens
    first = tokens[0]
    if first.type is TokenType.PIPE:
        raise ShellSyntaxError(PIPE_MESSAGE)
    if len(tokens) == 1 and first.type in _REDIRECTIONS:
        raise ShellSyntaxError(NEWLINE_MESSAGE)
    if first.type is TokenType.INPUT and tokens[1].type is TokenType.TRUNCT:
        raise ShellSyntaxError(NEWLINE_MESSAGE)
    if any(
        cur.type is TokenType.PIPE and nxt.type is TokenType.PIPE
        for cur, nxt in pairwise(tokens)
    ):
        raise ShellSyntaxError(NEWLINE_MESSAGE)
    last = tokens[-1]
    if last.type is TokenType.PIPE or last.type in _REDIRECTIONS:
        raise ShellSyntaxError(NEWLINE_MESSAGE)
    return tokens