# minishell

The pieces of a small bash-like shell for POSIX systems: a lexer, variable
expansion, the builtin commands, redirections, heredocs, and execution of
single commands and pipelines with `fork` and `execve`.

## Modules

| Module | What it holds |
| --- | --- |
| `minishell.models` | `Token`, `Redirect`, `Command`, the `TokenType` and `RedirectType` enums, and helpers such as `is_redirect`, `is_pipe`, `redirect_type`, `last_input_redirect` |
| `minishell.env` | `Variable` and `Environment`, an ordered set of shell variables with an exported flag |
| `minishell.shell` | `Shell`, the state of a running shell (environment, last exit code, saved stdin/stdout), its bash-style error messages, and `ShellExit` |
| `minishell.lexer` | `tokenize`, which splits a line into tokens |
| `minishell.expansion` | `expand`, `expand_dollar`, `parse_dollar`, `merge_tokens` |
| `minishell.heredoc` | `collect_heredoc`, `prepare_heredocs`, `expand_heredoc_line`, `is_delimiter` |
| `minishell.builtins` | `echo`, `cd`, `pwd`, `export`, `unset`, `exit_shell`, and a C-style `atoi` |
| `minishell.redirections` | `redirect_in`, `redirect_out`, `redirect_append`, `setup_redirections`, `restore_std_fds` |
| `minishell.external` | `split_path`, `find_command_path`, `validate_command_path`, `run_external` |
| `minishell.executor` | `is_builtin`, `run_builtin`, `run_command`, `run_pipeline`, `execute` |
| `minishell.signals` | SIGINT/SIGQUIT dispositions for the prompt, heredocs and children, and `take_interrupt` |

## Environment

```python
from minishell.env import Environment

env = Environment.from_strings(["HOME=/home/user", "PATH=/usr/bin:/bin"])
env.get("HOME")               # '/home/user'
env.set("EDITOR", "vi", True)
env.exported_strings()        # ['HOME=/home/user', 'PATH=/usr/bin:/bin', 'EDITOR=vi']
```

A bare `KEY` passed to `add_assignment` declares an exported variable without
a value; it shows up in `export` listings but not in `exported_strings` or
`env` output.

## Tokens and expansion

`tokenize` returns a list of `Token`s. Quoted text becomes `SINGLE_QUOTE` or
`DOUBLE_QUOTE` tokens, `$` runs become `DOLLAR` tokens, `<`, `>`, `>>`, `<<`
and `|` get their own types, and `&&`, `||`, `&`, `\`, `;`, `(`, `)` and an
unclosed quote become `ERROR` tokens. A token's `merge` flag marks that it
touches the next one with no space between.

`expand` then replaces `$NAME` and `$?` (not inside single quotes, and not in a
heredoc delimiter), turns quoted tokens into words, drops variables that
expanded to nothing, and joins merged pieces into one word. Each pair of `$`
signs becomes `42`.

```python
from minishell.env import Environment
from minishell.expansion import expand
from minishell.lexer import tokenize
from minishell.shell import Shell

with Shell(Environment.from_strings(["USER=ada"])) as shell:
    words = [t.value for t in expand(shell, tokenize('echo "hi $USER"'))]
    # ['echo', 'hi ada']
```

## Running commands

`execute` takes a list of `Command`s. It first reads every heredoc (from
standard input with the `> ` prompt, or through the `read_line` callable given
to `prepare_heredocs`), then runs one command directly or several as a
pipeline, and returns the exit status, which is also kept in `shell.exitcode`.

```python
from minishell.executor import execute
from minishell.models import Command, Redirect, RedirectType
from minishell.shell import Shell

with Shell() as shell:
    execute(shell, [Command(argv=["echo", "hello"],
                            redirects=[Redirect(RedirectType.OUT, file="out.txt")])])
    execute(shell, [Command(argv=["ls"]), Command(argv=["wc", "-l"])])
```

Builtins (`echo`, `cd`, `pwd`, `export`, `unset`, `env`, `exit`) run in the
shell's own process when alone; everything else is looked up in `PATH` and run
in a child process. A missing command gives 127, a directory or a file that
cannot be executed gives 126, and a program killed by a signal gives 128 plus
the signal number. `exit` raises `ShellExit` carrying the exit code.

## What is not included

- There is no parser that turns tokens into `Command` objects; commands have to
  be built by the caller.
- `tokenize` does not check the order of tokens for syntax errors; it only
  marks unsupported operators and unclosed quotes as `ERROR` tokens.
  `Shell.syntax_error` is there to report such an error.
- There is no interactive read-eval loop, no line history and no command-line
  program to start.

## Tests

The test suite uses pytest and lives in `tests/`:

```
pip install -e .[test]
pytest
```