"""Running parsed command lines: single commands, builtins and pipelines."""

from __future__ import annotations

import os
import signal
import sys
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, NoReturn, Optional, TextIO

from .builtins import cd, echo, exit_shell, export, pwd, unset
from .external import (
    ERR_CMD_NOT_FOUND,
    ERR_DOT_SYNTAX,
    ERR_FILENAME_REQUIRED,
    find_command_path,
    run_external,
    validate_command_path,
)
from .heredoc import prepare_heredocs
from .models import Command, RedirectType, last_input_redirect
from .redirections import STDIN_FD, STDOUT_FD, restore_std_fds, setup_redirections
from .shell import Shell, ShellExit
from .signals import MSG_SIGQUIT, default_signals, interactive_signals

BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})


def _flush(*streams: object) -> None:
    for stream in streams:
        try:
            stream.flush()  # type: ignore[attr-defined]
        except (OSError, ValueError, AttributeError):
            pass


@contextmanager
def _stdout_stream() -> Iterator[TextIO]:
    """A text stream writing straight to descriptor 1, as redirected."""
    _flush(sys.stdout)
    stream = open(
        STDOUT_FD, "w", encoding="utf-8", errors="surrogateescape", closefd=False
    )
    try:
        yield stream
    finally:
        try:
            stream.close()
        except OSError:
            pass


def is_builtin(command: Optional[Command]) -> bool:
    """Return whether the command names a shell builtin."""
    return bool(command and command.argv and command.argv[0] in BUILTINS)


def run_builtin(shell: Shell, command: Command) -> int:
    """Apply the command's redirections and run it as a builtin."""
    if not command.argv:
        return 1
    if setup_redirections(shell, command):
        return shell.exitcode
    argv = command.argv
    with _stdout_stream() as out:
        handlers: dict[str, Callable[[], int]] = {
            "echo": lambda: echo(argv, out),
            "cd": lambda: cd(shell, argv),
            "pwd": lambda: pwd(shell, out),
            "export": lambda: export(shell, argv, out),
            "unset": lambda: unset(shell, argv),
            "env": lambda: shell.env.env_command(argv, out),
            "exit": lambda: exit_shell(shell, argv),
        }
        handler = handlers.get(argv[0])
        if handler is None:
            return shell.exitcode
        return handler()


def run_command(shell: Shell, command: Command) -> int:
    """Run a single command and put the standard descriptors back afterwards."""
    if is_builtin(command):
        shell.exitcode = run_builtin(shell, command)
    else:
        shell.exitcode = run_external(shell, command)
    restore_std_fds(shell)
    return shell.exitcode


def _exit_child(shell: Shell, run: Callable[[], int]) -> NoReturn:
    code = 1
    try:
        code = run()
    except ShellExit as exc:
        code = exc.code
    except BaseException:
        code = 1
    finally:
        _flush(sys.stdout, shell.err)
        os._exit(code & 0xFF)


def _is_invalid(shell: Shell, command: Command) -> bool:
    name = (command.argv or [""])[0]
    if name == ".":
        shell.cmd_error(name, ERR_FILENAME_REQUIRED, 0)
        shell.cmd_error(name, ERR_DOT_SYNTAX, 2)
    elif name == "":
        shell.cmd_error("''", ERR_CMD_NOT_FOUND, 127)
    return shell.exitcode in (2, 127)


def _exec_program(shell: Shell, command: Command) -> int:
    if _is_invalid(shell, command):
        return shell.exitcode
    if setup_redirections(shell, command):
        return shell.exitcode
    argv = command.argv or []
    path = find_command_path(shell, argv[0])
    code = validate_command_path(shell, command, path)
    if code or path is None:
        return code
    if hasattr(signal, "SIGPIPE"):
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)
    environ = {
        v.key: v.value for v in shell.env if v.exported and v.value is not None
    }
    try:
        os.execve(path, argv, environ)
    except OSError:
        pass
    return shell.exitcode


def _setup_child_io(
    in_fd: int, read_fd: Optional[int], write_fd: Optional[int], skip_stdin: bool
) -> None:
    if in_fd != STDIN_FD:
        if not skip_stdin:
            os.dup2(in_fd, STDIN_FD)
        os.close(in_fd)
    if read_fd is not None and write_fd is not None:
        os.close(read_fd)
        os.dup2(write_fd, STDOUT_FD)
        os.close(write_fd)


def _pipeline_child(
    shell: Shell,
    command: Command,
    in_fd: int,
    read_fd: Optional[int],
    write_fd: Optional[int],
) -> int:
    default_signals()
    last_in = last_input_redirect(command.redirects)
    skip_stdin = last_in is not None and (
        last_in.type is RedirectType.IN
        or (last_in.type is RedirectType.HEREDOC and last_in.heredoc_fd is not None)
    )
    _setup_child_io(in_fd, read_fd, write_fd, skip_stdin)
    if not command.argv:
        if setup_redirections(shell, command):
            return shell.exitcode
        return 0
    if is_builtin(command):
        shell.exitcode = run_builtin(shell, command)
        return shell.exitcode
    return _exec_program(shell, command)


def _report_signal(shell: Shell, signum: int) -> None:
    if signum == signal.SIGINT:
        sys.stdout.write("\n")
        _flush(sys.stdout)
    elif signum == getattr(signal, "SIGQUIT", None):
        shell.err.write(MSG_SIGQUIT + "\n")
        _flush(shell.err)


def _wait_all(shell: Shell, pids: list[int]) -> None:
    for index, pid in enumerate(pids):
        try:
            _, status = os.waitpid(pid, 0)
        except OSError:
            break
        if index != len(pids) - 1:
            continue
        if os.WIFSIGNALED(status):
            signum = os.WTERMSIG(status)
            _report_signal(shell, signum)
            shell.exitcode = 128 + signum
        elif os.WIFEXITED(status):
            shell.exitcode = os.WEXITSTATUS(status)


def run_pipeline(shell: Shell, commands: Iterable[Command]) -> int:
    """Run the commands connected by pipes, each in its own process.

    The exit status is that of the last command.
    """
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    commands = list(commands)
    pids: list[int] = []
    in_fd = STDIN_FD
    for index, command in enumerate(commands):
        has_next = index < len(commands) - 1
        read_fd: Optional[int] = None
        write_fd: Optional[int] = None
        if has_next:
            try:
                read_fd, write_fd = os.pipe()
            except OSError as exc:
                return shell.cmd_error("pipe", exc.strerror or str(exc), 1)
        _flush(sys.stdout, shell.err)
        try:
            pid = os.fork()
        except OSError as exc:
            for fd in (read_fd, write_fd):
                if fd is not None:
                    os.close(fd)
            return shell.cmd_error("fork", exc.strerror or str(exc), 254)
        if pid == 0:
            child_in = in_fd
            _exit_child(
                shell,
                lambda: _pipeline_child(shell, command, child_in, read_fd, write_fd),
            )
        pids.append(pid)
        if in_fd != STDIN_FD:
            os.close(in_fd)
        if write_fd is not None and read_fd is not None:
            os.close(write_fd)
            in_fd = read_fd
        else:
            in_fd = STDIN_FD
    _wait_all(shell, pids)
    interactive_signals()
    return shell.exitcode


def execute(shell: Shell, commands: Iterable[Command]) -> int:
    """Run a parsed command line and return its exit status.

    Here-documents are read first; then a single command runs in the
    shell itself (builtins) or a child process, and several commands run
    as a pipeline.
    """
    commands = list(commands)
    if not commands:
        return 0
    shell.exitcode = 0
    for command in commands:
        if prepare_heredocs(shell, command.redirects):
            return shell.exitcode
    if len(commands) > 1:
        shell.exitcode = run_pipeline(shell, commands)
    else:
        command = commands[0]
        if not command.argv and command.redirects:
            if setup_redirections(shell, command):
                restore_std_fds(shell)
                return shell.exitcode
        elif command.argv:
            return run_command(shell, command)
    restore_std_fds(shell)
    return shell.exitcode