"""Variable expansion and quote removal for command words."""

from __future__ import annotations

from minishell.environment import Environment
from minishell.tokens import Token, TokenType

_QUOTES = "\"'"


def _is_name_start(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalpha())


def _is_name_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def expand_variables(text: str, env: Environment, exit_code: int) -> str:
    """Replace ``$NAME`` and ``$?`` in ``text``.

    Text inside single quotes is left alone; inside double quotes it is
    expanded. An unset variable expands to nothing; a ``$`` not followed
    by a name or ``?`` is kept as it is. Quotes are not removed here.
    """
    out: list[str] = []
    pos = 0
    length = len(text)
    in_double = False
    while pos < length:
        char = text[pos]
        if char == '"':
            in_double = not in_double
            out.append(char)
            pos += 1
        elif char == "'" and not in_double:
            closing = text.find("'", pos + 1)
            end = length if closing < 0 else closing + 1
            out.append(text[pos:end])
            pos = end
        elif char == "$" and pos + 1 < length:
            following = text[pos + 1]
            if following == "?":
                out.append(str(exit_code))
                pos += 2
            elif _is_name_start(following):
                end = pos + 1
                while end < length and _is_name_char(text[end]):
                    end += 1
                value = env.get(text[pos + 1 : end])
                out.append(value if value is not None else "")
                pos = end
            else:
                out.append(char)
                pos += 1
        else:
            out.append(char)
            pos += 1
    return "".join(out)


def remove_quotes(text: str) -> str:
    """Strip the quotes that delimit quoted parts of ``text``.

    A quote of the other kind inside a quoted part is kept literally.
    """
    out: list[str] = []
    pos = 0
    length = len(text)
    while pos < length:
        char = text[pos]
        if char in _QUOTES:
            closing = text.find(char, pos + 1)
            if closing < 0:
                out.append(text[pos + 1 :])
                break
            out.append(text[pos + 1 : closing])
            pos = closing + 1
        else:
            out.append(char)
            pos += 1
    return "".join(out)


def expand_tokens(tokens: list[Token], env: Environment, exit_code: int) -> list[Token]:
    """Expand variables and remove quotes in command and argument tokens.

    The tokens are changed in place; the list is returned for convenience.
    """
    for token in tokens:
        if token.type in (TokenType.ARG, TokenType.CMD):
            token.text = expand_variables(token.text, env, exit_code)
    for token in tokens:
        if token.type in (TokenType.ARG, TokenType.CMD) and any(
            quote in token.text for quote in _QUOTES
        ):
            token.text = remove_quotes(token.text)
    return tokens