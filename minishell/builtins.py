"""Commands the shell runs itself: echo, cd, pwd, export, unset, env, exit."""

from __future__ import annotations

import os
from typing import TextIO

from minishell.environment import ShellState

BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})

_LLONG_MAX = 2**63 - 1


class ExitRequest(Exception):
    """Raised by ``exit`` to ask the shell to stop with ``code``."""

    def __init__(self, code: int) -> None:
        super().__init__(f"exit {code}")
        self.code = code


def is_builtin(name: str) -> bool:
    """Whether ``name`` is a command the shell runs itself."""
    return name in BUILTINS


def _is_name_start(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalpha())


def _is_name_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def _is_n_flag(arg: str) -> bool:
    return len(arg) >= 2 and arg[0] == "-" and set(arg[1:]) == {"n"}


def builtin_echo(args: list[str], out: TextIO) -> int:
    """Print ``args`` separated by spaces; leading ``-n`` flags drop the newline."""
    newline = True
    pos = 0
    while pos < len(args) and _is_n_flag(args[pos]):
        newline = False
        pos += 1
    out.write(" ".join(args[pos:]))
    if newline:
        out.write("\n")
    return 0


def builtin_pwd(out: TextIO, err: TextIO) -> int:
    """Print the current working directory."""
    try:
        out.write(f"{os.getcwd()}\n")
    except OSError as exc:
        err.write(f"getcwd: {exc.strerror}\n")
    return 0


def _current_directory() -> str:
    try:
        return os.getcwd()
    except OSError:
        return ""


def builtin_cd(args: list[str], state: ShellState, err: TextIO) -> int:
    """Change directory to ``args[0]``, or to HOME when no path is given.

    OLDPWD is set to the directory before the change, PWD to the one after.
    """
    env = state.env
    env.set("OLDPWD", _current_directory())
    path = args[0] if args else ""
    if not path:
        home = env.get("HOME")
        if not home:
            err.write("minishell : cd: HOME not set\n")
            return 1
        path = home
    try:
        os.chdir(path)
    except OSError as exc:
        err.write(f"cd: {exc.strerror}\n")
        return 1
    env.set("PWD", _current_directory())
    return 0


def _export_one(arg: str, state: ShellState, err: TextIO) -> int:
    if not arg or not _is_name_start(arg[0]):
        err.write(f"minishell: export: '{arg}': not a valid identifier\n")
        return 1
    end = 1
    while end < len(arg) and _is_name_char(arg[end]):
        end += 1
    if end < len(arg) and arg[end] != "=":
        err.write(f"minishell: export: '{arg}': not a valid identifier\n")
        return 1
    if end < len(arg):
        state.env.set(arg[:end], arg[end + 1 :])
    return 0


def builtin_export(args: list[str], state: ShellState, out: TextIO, err: TextIO) -> int:
    """Set variables given as ``NAME=value``; list them all with no arguments.

    A bare ``NAME`` changes nothing. The status is that of the last argument.
    """
    if not args:
        out.write(state.env.format_export())
        return 0
    status = 0
    for arg in args:
        status = _export_one(arg, state, err)
    return status


def builtin_unset(args: list[str], state: ShellState) -> int:
    """Remove each named variable."""
    for name in args:
        state.env.unset(name)
    return 0


def builtin_env(state: ShellState, out: TextIO) -> int:
    """Print every variable as ``NAME=value``."""
    out.write(state.env.format_env())
    return 0


def parse_exit_code(text: str) -> int:
    """Parse an ``exit`` argument: an optional sign then decimal digits.

    Raises ValueError for other characters or a magnitude beyond the
    largest signed 64-bit value.
    """
    sign = 1
    digits = text
    if digits[:1] in ("-", "+"):
        if digits[0] == "-":
            sign = -1
        digits = digits[1:]
    number = 0
    for char in digits:
        if not ("0" <= char <= "9"):
            raise ValueError(f"not a number: {text!r}")
        digit = ord(char) - ord("0")
        if number > _LLONG_MAX // 10 or (
            number == _LLONG_MAX // 10 and digit > _LLONG_MAX % 10
        ):
            raise ValueError(f"out of range: {text!r}")
        number = number * 10 + digit
    return number * sign


def builtin_exit(args: list[str], state: ShellState, out: TextIO, err: TextIO) -> int:
    """Ask the shell to stop, raising ExitRequest.

    With more than one numeric argument nothing is raised and 1 is returned.
    """
    out.write("exit\n")
    if not args:
        raise ExitRequest(0)
    try:
        code = parse_exit_code(args[0])
    except ValueError:
        err.write("minishell: exit: numeric argument required\n")
        raise ExitRequest(2) from None
    if len(args) > 1:
        err.write("minishell: exit: too many arguments.\n")
        return 1
    raise ExitRequest(code & 0xFF)


def run_builtin(args: list[str], state: ShellState, out: TextIO, err: TextIO) -> int:
    """Run the builtin named by ``args[0]`` with the rest as its arguments.

    The status is stored in ``state.exit_code`` and returned.
    """
    name, rest = args[0], list(args[1:])
    if name == "echo":
        status = builtin_echo(rest, out)
    elif name == "cd":
        status = builtin_cd(rest, state, err)
    elif name == "pwd":
        status = builtin_pwd(out, err)
    elif name == "export":
        status = builtin_export(rest, state, out, err)
    elif name == "unset":
        status = builtin_unset(rest, state)
    elif name == "env":
        status = builtin_env(state, out)
    elif name == "exit":
        status = builtin_exit(rest, state, out, err)
    else:
        raise ValueError(f"not a builtin: {name!r}")
    state.exit_code = status
    return status