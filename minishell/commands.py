"""Building argument vectors and locating programs."""

from __future__ import annotations

import os

from minishell.environment import Environment
from minishell.tokens import Token, TokenType

_FILE_REDIRECTIONS = frozenset({TokenType.APPEND, TokenType.INPUT, TokenType.TRUNCT})


def command_argv(tokens: list[Token], index: int) -> list[str]:
    """Return the argument vector of the command at ``tokens[index]``.

    Collection stops at the next pipe. File redirections and their targets
    are skipped; a here-document adds ``here_doc`` and ends the vector.
    """
    argv = [tokens[index].text]
    pos = index + 1
    while pos < len(tokens) and tokens[pos].type is not TokenType.PIPE:
        token = tokens[pos]
        if token.type in _FILE_REDIRECTIONS:
            pos += 2
            continue
        if token.type is TokenType.HERE_DOC:
            argv.append("here_doc")
            break
        argv.append(token.text)
        pos += 1
    return argv


def count_pipes(tokens: list[Token]) -> int:
    """Return the number of pipe tokens."""
    return sum(1 for token in tokens if token.type is TokenType.PIPE)


def count_commands(tokens: list[Token]) -> int:
    """Return the number of commands in a pipeline: pipes plus one."""
    return count_pipes(tokens) + 1


def has_slash(name: str) -> bool:
    """Whether ``name`` is a path rather than a bare command name."""
    return "/" in name


def find_in_path(name: str, env: Environment) -> str | None:
    """Return the first executable ``dir/name`` for the dirs of PATH.

    Returns None when PATH is unset or no candidate is executable.
    """
    path = env.get("PATH")
    if path is None:
        return None
    for directory in filter(None, path.split(":")):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


def split_pipeline(tokens: list[Token]) -> list[list[Token]]:
    """Split ``tokens`` at the pipes into one list per command."""
    segments: list[list[Token]] = [[]]
    for token in tokens:
        if token.type is TokenType.PIPE:
            segments.append([])
        else:
            segments[-1].append(token)
    return segments