"""Running classified command lines: redirections, here-documents and pipelines."""

from __future__ import annotations

import io
import os
import subprocess
import tempfile
from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from typing import IO, TextIO

from minishell.builtins import ExitRequest, is_builtin, run_builtin
from minishell.commands import command_argv, count_commands, find_in_path, has_slash
from minishell.environment import Environment, ShellState
from minishell.tokens import Token, TokenType

HERE_DOC_PATH = "here_doc"
HERE_DOC_PROMPT = "> "

_OPEN_FLAGS = {
    TokenType.INPUT: (os.O_RDONLY, "rb"),
    TokenType.TRUNCT: (os.O_WRONLY | os.O_CREAT | os.O_TRUNC, "wb"),
    TokenType.APPEND: (os.O_WRONLY | os.O_CREAT | os.O_APPEND, "ab"),
}


class RedirectionError(Exception):
    """A redirection target that could not be opened; the status becomes 1."""

    exit_code = 1

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(f"minishell: {filename} : {reason}")
        self.filename = filename
        self.reason = reason


def read_here_doc(
    delimiter: str,
    read_line: Callable[[str], str | None],
    path: str = HERE_DOC_PATH,
) -> str:
    """Read lines into ``path`` until ``delimiter`` or end of input.

    Each line is written followed by a newline; the delimiter line itself is
    written too before reading stops. Returns ``path``.
    """
    try:
        handle = open(path, "w", encoding="utf-8")
    except OSError as exc:
        raise RedirectionError(path, exc.strerror or str(exc)) from exc
    with handle:
        while True:
            try:
                line = read_line(HERE_DOC_PROMPT)
            except EOFError:
                break
            if line is None:
                break
            handle.write(f"{line}\n")
            if line == delimiter:
                break
    return path


def handle_here_docs(
    tokens: list[Token],
    read_line: Callable[[str], str | None],
    path: str = HERE_DOC_PATH,
) -> int:
    """Read every here-document of the line, in order; return how many were read."""
    count = 0
    for pos, token in enumerate(tokens):
        if token.type is TokenType.HERE_DOC and pos + 1 < len(tokens):
            read_here_doc(tokens[pos + 1].text, read_line, path)
            count += 1
    return count


def only_redirections(tokens: list[Token]) -> bool:
    """Whether the line holds neither a command nor a here-document."""
    return not any(
        token.type in (TokenType.CMD, TokenType.HERE_DOC) for token in tokens
    )


@dataclass
class _Streams:
    stdin: IO[bytes] | None = None
    stdout: IO[bytes] | None = None

    def close(self) -> None:
        for handle in (self.stdin, self.stdout):
            if handle is not None:
                handle.close()


def _open_target(kind: TokenType, name: str) -> IO[bytes]:
    flags, mode = _OPEN_FLAGS[kind]
    try:
        fd = os.open(name, flags, 0o644)
    except OSError as exc:
        raise RedirectionError(name, exc.strerror or str(exc)) from exc
    return os.fdopen(fd, mode)


@contextmanager
def _redirections(tokens: list[Token]) -> Iterator[_Streams]:
    """Open every file redirection of the line in order; the last of each kind wins."""
    streams = _Streams()
    try:
        for pos, token in enumerate(tokens):
            if token.type not in _OPEN_FLAGS or pos + 1 >= len(tokens):
                continue
            handle = _open_target(token.type, tokens[pos + 1].text)
            if token.type is TokenType.INPUT:
                if streams.stdin is not None:
                    streams.stdin.close()
                streams.stdin = handle
            else:
                if streams.stdout is not None:
                    streams.stdout.close()
                streams.stdout = handle
        yield streams
    finally:
        streams.close()


def run_redirections_only(tokens: list[Token], state: ShellState, err: TextIO) -> int:
    """Open (and create) every redirection target of a line without a command."""
    try:
        with _redirections(tokens):
            pass
    except RedirectionError as exc:
        err.write(f"{exc}\n")
        state.exit_code = exc.exit_code
        return exc.exit_code
    state.exit_code = 0
    return 0


def _fileno(stream: object) -> int | None:
    try:
        return stream.fileno()  # type: ignore[attr-defined]
    except (AttributeError, OSError, ValueError):
        return None


def _exec_failure(path: str, exc: OSError) -> tuple[str, int]:
    if isinstance(exc, PermissionError) and os.access(path, os.X_OK):
        return "Is a directory", 126
    if os.path.exists(path):
        return "Permission denied", 126
    return "no such file or directory", 127


def _returncode_status(code: int) -> int:
    return code if code >= 0 else 128 - code


@dataclass
class _Stage:
    status: int = 0
    process: subprocess.Popen | None = None
    output: IO[bytes] | None = None

    def exit_status(self) -> int:
        if self.process is None:
            return self.status
        return _returncode_status(self.process.returncode)


class _PipelineRun:
    """One run of a chain of commands connected by pipes."""

    def __init__(
        self,
        tokens: list[Token],
        state: ShellState,
        out: TextIO,
        err: TextIO,
        isolated: bool,
        stack: ExitStack,
    ) -> None:
        self.tokens = tokens
        self.state = state
        self.out = out
        self.err = err
        self.isolated = isolated
        self.stack = stack
        self.processes: list[subprocess.Popen] = []
        out_fd = _fileno(out)
        err_fd = _fileno(err)
        self.out_capture = (
            None if out_fd is not None else stack.enter_context(tempfile.TemporaryFile())
        )
        self.err_capture = (
            None if err_fd is not None else stack.enter_context(tempfile.TemporaryFile())
        )
        self.out_target = out_fd if out_fd is not None else self.out_capture
        self.err_target = err_fd if err_fd is not None else self.err_capture

    def run(self, indices: list[int]) -> int:
        previous: IO[bytes] | None = None
        last_stage = _Stage()
        final = len(indices) - 1
        for number, index in enumerate(indices):
            stage = self._run_stage(index, previous, number == 0, number == final)
            if previous is not None:
                previous.close()
            previous = stage.output
            last_stage = stage
        if previous is not None:
            previous.close()
        for process in self.processes:
            process.wait()
        self._copy_captures()
        return last_stage.exit_status()

    def _copy_captures(self) -> None:
        for capture, stream in ((self.out_capture, self.out), (self.err_capture, self.err)):
            if capture is not None:
                capture.seek(0)
                stream.write(capture.read().decode("utf-8", errors="replace"))

    def _resolve(self, name: str) -> str | None:
        if has_slash(name):
            return name
        return find_in_path(name, self.state.env)

    def _run_stage(
        self, index: int, previous: IO[bytes] | None, first: bool, last: bool
    ) -> _Stage:
        argv = command_argv(self.tokens, index)
        name = argv[0]
        path = None
        if not is_builtin(name):
            path = self._resolve(name)
            if path is None:
                self.err.write(f"{name}: command not found\n")
                return _Stage(status=127)
        try:
            with _redirections(self.tokens) as streams:
                if path is None:
                    return self._builtin_stage(argv, streams, last)
                return self._external_stage(argv, path, streams, previous, first, last)
        except RedirectionError as exc:
            self.err.write(f"{exc}\n")
            return _Stage(status=exc.exit_code)

    def _builtin_stage(self, argv: list[str], streams: _Streams, last: bool) -> _Stage:
        if self.isolated:
            state = ShellState(Environment(self.state.env.as_envp()), self.state.exit_code)
        else:
            state = self.state
        to_shell_out = last and streams.stdout is None
        buffer = io.StringIO()
        target = self.out if to_shell_out else buffer
        try:
            status = run_builtin(argv, state, target, self.err)
        except ExitRequest as request:
            if not self.isolated:
                raise
            status = request.code
        finally:
            if last and streams.stdout is not None:
                streams.stdout.write(buffer.getvalue().encode())
        if last:
            return _Stage(status=status)
        piped = self.stack.enter_context(tempfile.TemporaryFile())
        piped.write(buffer.getvalue().encode())
        piped.seek(0)
        return _Stage(status=status, output=piped)

    def _external_stage(
        self,
        argv: list[str],
        path: str,
        streams: _Streams,
        previous: IO[bytes] | None,
        first: bool,
        last: bool,
    ) -> _Stage:
        if first:
            stdin: object = streams.stdin
        else:
            stdin = previous if previous is not None else subprocess.DEVNULL
        if last:
            stdout: object = streams.stdout if streams.stdout is not None else self.out_target
        else:
            stdout = subprocess.PIPE
        self.out.flush()
        self.err.flush()
        try:
            process = subprocess.Popen(
                argv,
                executable=path,
                stdin=stdin,
                stdout=stdout,
                stderr=self.err_target,
                env=self.state.env.as_dict(),
            )
        except OSError as exc:
            reason, status = _exec_failure(path, exc)
            self.err.write(f"{path}:  {reason}\n")
            return _Stage(status=status)
        self.processes.append(process)
        return _Stage(process=process, output=process.stdout)


def _run_commands(
    tokens: list[Token],
    indices: list[int],
    state: ShellState,
    out: TextIO,
    err: TextIO,
    *,
    isolated: bool,
) -> int:
    with ExitStack() as stack:
        return _PipelineRun(tokens, state, out, err, isolated, stack).run(indices)


def execute(tokens: list[Token], state: ShellState, out: TextIO, err: TextIO) -> int:
    """Run a checked, expanded command line and return its status.

    A line of redirections alone only opens its files. A line without pipes
    runs each of its commands in turn, builtins within the shell. A pipeline
    runs every command connected to the next; builtins there work on a copy
    of the environment. ``exit`` outside a pipeline raises ExitRequest.
    """
    if not tokens:
        return state.exit_code
    if only_redirections(tokens):
        return run_redirections_only(tokens, state, err)
    indices = [pos for pos, token in enumerate(tokens) if token.type is TokenType.CMD]
    if count_commands(tokens) == 1:
        for index in indices:
            state.exit_code = _run_commands(
                tokens, [index], state, out, err, isolated=False
            )
    elif indices:
        state.exit_code = _run_commands(tokens, indices, state, out, err, isolated=True)
    return state.exit_code