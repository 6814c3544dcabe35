# minishell

A small interactive shell. It reads command lines, splits them into words and
operators, expands variables, removes quotes and runs the result, either as a
builtin or as an external program found through `PATH`.

## Features

- Pipelines with `|`
- Redirections: `<` (input), `>` (truncate), `>>` (append) and `<<` (here-document)
- Variable expansion with `$NAME` and `$?` (the last exit status); nothing is
  expanded inside single quotes, an unset variable expands to nothing, and a
  `$` not followed by a name or `?` is kept as it is
- Single and double quotes; a quote that is not closed is reported as
  `minishell: Error unclosed quotes` and sets the status to 1
- Builtins: `echo` (with `-n`), `cd` (updates `PWD` and `OLDPWD`, goes to
  `HOME` without an argument), `pwd`, `export`, `unset`, `env`, `exit`
- Syntax checks for a leading `|`, a doubled `|`, and a line ending in `|` or
  in a redirection with no target; these set the exit status to 2
- `command not found` gives status 127; a program that cannot be started gives
  126 or 127

## Installation

```
pip install .
```

## Usage

Start the interactive prompt:

```
minishell
```

```
minishell$ export GREETING=hello
minishell$ echo "$GREETING world" | cat > out.txt
minishell$ cat < out.txt
hello world
minishell$ echo $?
0
minishell$ exit
```

Press Ctrl-D at the prompt to leave the shell (it prints `exit` and ends with
status 0). Ctrl-C discards the line being typed and sets `$?` to 130.
`exit N` ends the shell with status `N` modulo 256; a non-numeric argument
ends it with status 2.

### Behaviour worth knowing

- The redirections of a line apply to every command on it; when a kind of
  redirection appears several times, every file is opened (and created) but
  the last one is used.
- A line made only of redirections, such as `> new.txt`, just opens and
  creates the files.
- A here-document (`cat << END`) is read line by line with the prompt `> ` into
  a file named `here_doc` in the current directory, up to and including the
  delimiter line. The command receives `here_doc` as its last argument.
- Inside a pipeline, builtins work on a copy of the environment, so
  `export` or `cd` there does not change the shell, and `exit` does not end it.

## Using it from Python

```python
from minishell.shell import Shell

shell = Shell({"PATH": "/usr/bin:/bin", "HOME": "/tmp"})
shell.run_line("export NAME=world")
shell.run_line('echo "hello $NAME"')
print(shell.exit_code)
```

`Shell` takes the initial environment as a mapping (the process environment by
default) and a `read_line` function used for the prompt and for
here-documents (`input` by default). `run_line` writes to `sys.stdout` and
`sys.stderr`; `exit` raises `minishell.builtins.ExitRequest`, whose `code` is
the requested status. `Shell.repl()` runs the read loop.

The lower-level pieces can also be used on their own:

```python
from minishell.tokens import parse_line
from minishell.syntax import check_syntax
from minishell.expansion import expand_tokens
from minishell.environment import Environment

env = Environment(["USER=alice"])
tokens = parse_line("echo '$USER' \"$USER\" | wc -c > count.txt")
expand_tokens(tokens, env, exit_code=0)
check_syntax(tokens)  # raises ShellSyntaxError when the line is invalid
```

- `minishell.tokens`: `tokenize`, `classify`, `parse_line`, `Token`,
  `TokenType`, `UnclosedQuoteError`
- `minishell.environment`: `Environment`, `ShellState`, `split_entry`
- `minishell.expansion`: `expand_variables`, `remove_quotes`, `expand_tokens`
- `minishell.syntax`: `check_syntax`, `ShellSyntaxError`
- `minishell.commands`: `command_argv`, `count_commands`, `count_pipes`,
  `has_slash`, `find_in_path`, `split_pipeline`
- `minishell.builtins`: `is_builtin`, `run_builtin`, the `builtin_*`
  functions, `parse_exit_code`, `ExitRequest`
- `minishell.executor`: `execute`, `handle_here_docs`, `read_here_doc`,
  `only_redirections`, `run_redirections_only`, `RedirectionError`

## What it does not do

The shell only runs interactively: `minishell` ignores its command-line
arguments and cannot run a script file or a `-c` string. There is no `;`,
`&&`, `||`, no globbing, no subshells or grouping, no backslash escapes and no
job control or background commands.

## Running the tests

```
pip install ".[test]"
pytest
```