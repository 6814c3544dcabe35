"""The interactive shell: reading lines, running them, and the entry point."""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Callable, Mapping

from minishell.builtins import ExitRequest
from minishell.environment import Environment, ShellState
from minishell.executor import RedirectionError, execute, handle_here_docs
from minishell.expansion import expand_tokens
from minishell.syntax import ShellSyntaxError, check_syntax
from minishell.tokens import UnclosedQuoteError, parse_line

PROMPT = "minishell$ "
INTERRUPTED_STATUS = 130


class Shell:
    """A shell session: its environment, its last status and its input."""

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        read_line: Callable[[str], str | None] | None = None,
    ) -> None:
        self.state = ShellState(
            Environment.from_mapping(os.environ if environ is None else environ)
        )
        self.read_line = read_line if read_line is not None else input

    @property
    def exit_code(self) -> int:
        """Status of the last command line."""
        return self.state.exit_code

    def _read(self, prompt: str) -> str | None:
        try:
            return self.read_line(prompt)
        except EOFError:
            return None

    def run_line(self, line: str) -> int:
        """Parse, expand, check and run one command line; return its status.

        ``exit`` raises ExitRequest, which is left to the caller.
        """
        out, err = sys.stdout, sys.stderr
        try:
            tokens = parse_line(line)
        except UnclosedQuoteError as exc:
            err.write(f"minishell: {exc}\n")
            self.state.exit_code = 1
            return 1
        if not tokens:
            return self.state.exit_code
        expand_tokens(tokens, self.state.env, self.state.exit_code)
        try:
            check_syntax(tokens)
        except ShellSyntaxError as exc:
            err.write(f"minishell: {exc}\n")
            self.state.exit_code = exc.exit_code
            return exc.exit_code
        try:
            handle_here_docs(tokens, self._read)
        except RedirectionError as exc:
            err.write(f"{exc}\n")
            self.state.exit_code = exc.exit_code
            return exc.exit_code
        return execute(tokens, self.state, out, err)

    def repl(self) -> int:
        """Read and run lines until end of input or ``exit``; return the status.

        End of input ends the session with status 0. An interrupt while
        reading discards the line and sets the status to 130.
        """
        while True:
            try:
                line = self._read(PROMPT)
            except KeyboardInterrupt:
                sys.stdout.write("\n")
                self.state.exit_code = INTERRUPTED_STATUS
                continue
            if line is None:
                sys.stderr.write("exit\n")
                return 0
            try:
                self.run_line(line)
            except ExitRequest as request:
                return request.code
            except KeyboardInterrupt:
                sys.stdout.write("\n")
                self.state.exit_code = INTERRUPTED_STATUS


def _install_signals() -> None:
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, signal.SIG_IGN)
    if hasattr(signal, "SIGPIPE"):
        signal.signal(signal.SIGPIPE, signal.SIG_IGN)


def main(argv: list[str] | None = None) -> int:
    """Start an interactive session on the process environment."""
    del argv
    try:
        import readline  # noqa: F401  (line editing and history for input())
    except ImportError:
        pass
    _install_signals()
    return Shell().repl()


if __name__ == "__main__":
    raise SystemExit(main())