import builtins

import pytest

from minishell.builtins import ExitRequest
from minishell.shell import Shell, main


def feeder(lines):
    items = iter(lines)

    def read_line(prompt):
        item = next(items, None)
        if isinstance(item, BaseException):
            raise item
        return item

    return read_line


@pytest.fixture
def shell(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return Shell({"HOME": str(tmp_path), "PATH": str(tmp_path)}, feeder([]))


def test_echo_prints_arguments(shell, capsys):
    status = shell.run_line("echo hello world")
    assert status == 0
    assert capsys.readouterr().out == "hello world\n"


def test_unclosed_quote_sets_status_one(shell, capsys):
    status = shell.run_line('echo "abc')
    assert status == 1
    assert shell.exit_code == 1
    assert "Error unclosed quotes" in capsys.readouterr().err


def test_leading_pipe_is_syntax_error(shell, capsys):
    status = shell.run_line("| echo hi")
    assert status == 2
    assert "syntax error near unexpected token '|'" in capsys.readouterr().err


def test_status_is_expanded_after_error(shell, capsys):
    shell.run_line("| echo hi")
    capsys.readouterr()
    shell.run_line("echo $?")
    assert capsys.readouterr().out == "2\n"


def test_export_then_expand(shell, capsys):
    shell.run_line("export FOO=bar")
    shell.run_line('echo "$FOO"')
    assert capsys.readouterr().out == "bar\n"
    assert shell.state.env.get("FOO") == "bar"


def test_unknown_command(shell, capsys):
    status = shell.run_line("nosuchcommand")
    assert status == 127
    assert "nosuchcommand: command not found" in capsys.readouterr().err


def test_empty_line_keeps_status(shell):
    shell.run_line("nosuchcommand")
    assert shell.run_line("   ") == 127
    assert shell.exit_code == 127


def test_exit_raises_request(shell):
    with pytest.raises(ExitRequest) as info:
        shell.run_line("exit 3")
    assert info.value.code == 3


def test_output_redirection_writes_file(shell, tmp_path):
    status = shell.run_line("echo hi > out.txt")
    assert status == 0
    assert shell.exit_code == 0
    assert (tmp_path / "out.txt").read_text() == "hi\n"


def test_redirection_only_creates_file(shell, tmp_path):
    status = shell.run_line("> made.txt")
    assert status == 0
    assert (tmp_path / "made.txt").exists()


def test_here_doc_is_written(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    sh = Shell({"HOME": str(tmp_path)}, feeder(["a", "END", "unused"]))
    sh.run_line("echo x << END")
    assert (tmp_path / "here_doc").read_text() == "a\nEND\n"
    assert capsys.readouterr().out == "x here_doc\n"


def test_repl_stops_at_end_of_input(tmp_path, capsys):
    sh = Shell({"HOME": str(tmp_path)}, feeder(["echo hi"]))
    assert sh.repl() == 0
    captured = capsys.readouterr()
    assert captured.out == "hi\n"
    assert captured.err.endswith("exit\n")


def test_repl_returns_exit_code(tmp_path, capsys):
    sh = Shell({"HOME": str(tmp_path)}, feeder(["exit 5", "echo never"]))
    assert sh.repl() == 5
    assert "never" not in capsys.readouterr().out


def test_repl_interrupt_sets_130(tmp_path, capsys):
    sh = Shell({"HOME": str(tmp_path)}, feeder([KeyboardInterrupt(), "echo $?"]))
    assert sh.repl() == 0
    assert capsys.readouterr().out.endswith("130\n")


def test_repl_eof_error_ends_session(tmp_path, capsys):
    sh = Shell({"HOME": str(tmp_path)}, feeder([EOFError()]))
    assert sh.repl() == 0
    assert capsys.readouterr().err == "exit\n"


def test_main_ends_on_eof(monkeypatch, capsys):
    def no_input(prompt=""):
        raise EOFError

    monkeypatch.setattr(builtins, "input", no_input)
    assert main([]) == 0
    assert capsys.readouterr().err == "exit\n"