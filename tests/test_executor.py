import io
import os
import stat

import pytest

from minishell.builtins import ExitRequest
from minishell.environment import Environment, ShellState
from minishell.executor import (
    RedirectionError,
    execute,
    handle_here_docs,
    only_redirections,
    read_here_doc,
    run_redirections_only,
)
from minishell.tokens import parse_line


def _state(path=True):
    mapping = {"HOME": "/"}
    if path:
        mapping["PATH"] = os.environ.get("PATH", "/bin:/usr/bin")
    return ShellState(Environment.from_mapping(mapping))


def _run(line, state=None):
    state = state or _state()
    out, err = io.StringIO(), io.StringIO()
    status = execute(parse_line(line), state, out, err)
    return status, out.getvalue(), err.getvalue(), state


def _reader(lines):
    prompts = []
    feed = iter(lines)

    def read_line(prompt):
        prompts.append(prompt)
        return next(feed, None)

    return read_line, prompts


@pytest.fixture(autouse=True)
def _in_tmp(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def test_read_here_doc_stops_after_delimiter(tmp_path):
    read_line, prompts = _reader(["a", "b", "EOF", "c"])
    target = str(tmp_path / "doc")
    assert read_here_doc("EOF", read_line, target) == target
    with open(target, encoding="utf-8") as handle:
        assert handle.read() == "a\nb\nEOF\n"
    assert prompts == ["> ", "> ", "> "]


def test_read_here_doc_stops_at_end_of_input(tmp_path):
    read_line, _ = _reader(["only"])
    target = str(tmp_path / "doc")
    read_here_doc("END", read_line, target)
    with open(target, encoding="utf-8") as handle:
        assert handle.read() == "only\n"


def test_read_here_doc_accepts_eoferror(tmp_path):
    def read_line(prompt):
        raise EOFError

    target = str(tmp_path / "doc")
    read_here_doc("END", read_line, target)
    with open(target, encoding="utf-8") as handle:
        assert handle.read() == ""


def test_handle_here_docs_reads_each_delimiter():
    read_line, _ = _reader(["x", "END"])
    assert handle_here_docs(parse_line("cat << END"), read_line) == 1
    with open("here_doc", encoding="utf-8") as handle:
        assert handle.read() == "x\nEND\n"


def test_handle_here_docs_without_here_doc():
    read_line, prompts = _reader(["x"])
    assert handle_here_docs(parse_line("echo hi"), read_line) == 0
    assert prompts == []


def test_only_redirections():
    assert only_redirections(parse_line("> out")) is True
    assert only_redirections(parse_line("echo hi")) is False
    assert only_redirections(parse_line("<< END")) is False


def test_run_redirections_only_creates_files(tmp_path):
    state = _state()
    err = io.StringIO()
    assert run_redirections_only(parse_line("> a >> b"), state, err) == 0
    assert (tmp_path / "a").exists() and (tmp_path / "b").exists()
    assert err.getvalue() == ""
    assert state.exit_code == 0


def test_run_redirections_only_missing_input():
    state = _state()
    err = io.StringIO()
    assert run_redirections_only(parse_line("< missing"), state, err) == 1
    assert err.getvalue().startswith("minishell: missing : ")
    assert state.exit_code == 1


def test_redirection_error_message():
    exc = RedirectionError("f", "reason")
    assert str(exc) == "minishell: f : reason"
    assert exc.exit_code == 1


def test_execute_empty_keeps_status():
    state = _state()
    state.exit_code = 7
    assert execute([], state, io.StringIO(), io.StringIO()) == 7


def test_builtin_echo():
    status, out, err, _ = _run("echo hello world")
    assert (status, out, err) == (0, "hello world\n", "")


def test_builtin_output_redirected(tmp_path):
    status, out, _, _ = _run("echo hi > f")
    assert status == 0
    assert out == ""
    assert (tmp_path / "f").read_text() == "hi\n"


def test_export_persists_outside_pipeline():
    _, _, _, state = _run("export FOO=bar")
    assert state.env.get("FOO") == "bar"


def test_export_in_pipeline_is_isolated():
    _, _, _, state = _run("export FOO=bar | cat")
    assert "FOO" not in state.env


def test_external_reads_file(tmp_path):
    (tmp_path / "f").write_text("content\n")
    status, out, _, state = _run("cat f")
    assert (status, out) == (0, "content\n")
    assert state.exit_code == 0


def test_external_input_redirection(tmp_path):
    (tmp_path / "f").write_text("abc\n")
    status, out, _, _ = _run("tr a-z A-Z < f")
    assert (status, out) == (0, "ABC\n")


def test_builtin_into_pipeline():
    status, out, _, _ = _run("echo hello | tr a-z A-Z")
    assert (status, out) == (0, "HELLO\n")


def test_external_pipeline(tmp_path):
    (tmp_path / "f").write_text("abc\n")
    status, out, _, _ = _run("cat f | tr a-z A-Z")
    assert (status, out) == (0, "ABC\n")


def test_here_doc_feeds_command():
    read_line, _ = _reader(["x", "END"])
    tokens = parse_line("cat << END")
    handle_here_docs(tokens, read_line)
    out = io.StringIO()
    assert execute(tokens, _state(), out, io.StringIO()) == 0
    assert out.getvalue() == "x\nEND\n"


def test_command_not_found():
    status, _, err, state = _run("nosuchcmd_xyz")
    assert status == 127
    assert err == "nosuchcmd_xyz: command not found\n"
    assert state.exit_code == 127


def test_command_not_found_without_path():
    status, _, err, _ = _run("cat", _state(path=False))
    assert status == 127
    assert err == "cat: command not found\n"


def test_missing_program_with_slash():
    status, _, err, _ = _run("./missing_prog")
    assert status == 127
    assert err == "./missing_prog:  no such file or directory\n"


def test_directory_as_command(tmp_path):
    (tmp_path / "sub").mkdir()
    status, _, err, _ = _run("./sub")
    assert status == 126
    assert err == "./sub:  Is a directory\n"


def test_non_executable_file(tmp_path):
    (tmp_path / "plain").write_text("data\n")
    status, _, err, _ = _run("./plain")
    assert status == 126
    assert err == "./plain:  Permission denied\n"


def test_external_exit_status(tmp_path):
    script = tmp_path / "fail.sh"
    script.write_text("#!/bin/sh\nexit 3\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    status, _, _, state = _run("./fail.sh")
    assert status == 3
    assert state.exit_code == 3


def test_redirection_failure_blocks_command():
    status, out, err, _ = _run("cat < missing")
    assert status == 1
    assert out == ""
    assert err.startswith("minishell: missing : ")


def test_exit_outside_pipeline_raises():
    out = io.StringIO()
    with pytest.raises(ExitRequest) as info:
        execute(parse_line("exit 3"), _state(), out, io.StringIO())
    assert info.value.code == 3
    assert out.getvalue() == "exit\n"


def test_exit_inside_pipeline_gives_status():
    status, out, _, _ = _run("echo a | exit 5")
    assert status == 5
    assert out == "exit\n"