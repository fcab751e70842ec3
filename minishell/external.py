"""Finding and running programs that are not built into the shell."""

from __future__ import annotations

import errno
import os
import signal
import sys
from typing import Callable, NoReturn, Optional

from .models import Command
from .redirections import setup_redirections
from .shell import Shell, ShellExit
from .signals import MSG_SIGQUIT, default_signals, interactive_signals

ERR_CMD_NOT_FOUND = "command not found"
ERR_IS_A_DIR = "Is a directory"
ERR_FILENAME_REQUIRED = "filename argument required"
ERR_DOT_SYNTAX = ". filename [arguments]"


def split_path(value: str) -> list[str]:
    """Split a ``PATH`` value on colons, dropping empty entries."""
    return [part for part in value.split(":") if part]


def find_command_path(shell: Shell, name: str) -> Optional[str]:
    """Locate ``name`` in ``PATH``; a name containing ``/`` is returned as is."""
    if "/" in name:
        return name
    value = shell.env.get("PATH")
    if value is None:
        return None
    for directory in split_path(value):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


def _missing_reason(path: str) -> str:
    try:
        os.stat(path)
    except OSError as exc:
        return exc.strerror or os.strerror(errno.ENOENT)
    return os.strerror(errno.ENOENT)


def validate_command_path(shell: Shell, command: Command, path: Optional[str]) -> int:
    """Check that ``path`` can be run for ``command``.

    Returns 0 when it can; otherwise reports the problem and returns 127
    (not found) or 126 (not executable).
    """
    name = command.argv[0] if command.argv else ""
    if path is None or name == "..":
        return shell.cmd_error(name, ERR_CMD_NOT_FOUND, 127)
    if os.path.isdir(path):
        return shell.cmd_error(name, ERR_IS_A_DIR, 126)
    if not os.access(path, os.F_OK):
        return shell.cmd_error(name, _missing_reason(path), 127)
    if not os.access(path, os.X_OK):
        return shell.cmd_error(name, os.strerror(errno.EACCES), 126)
    return 0


def _child_environ(shell: Shell) -> dict[str, str]:
    return {
        v.key: v.value
        for v in shell.env
        if v.exported and v.value is not None
    }


def _flush(*streams: object) -> None:
    for stream in streams:
        try:
            stream.flush()  # type: ignore[attr-defined]
        except (OSError, ValueError, AttributeError):
            pass


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


def _execve(shell: Shell, path: str, argv: list[str]) -> int:
    if hasattr(signal, "SIGPIPE"):
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)
    try:
        os.execve(path, argv, _child_environ(shell))
    except OSError:
        pass
    return shell.exitcode


def _exec_child(shell: Shell, command: Command) -> int:
    default_signals()
    if setup_redirections(shell, command):
        return shell.exitcode
    argv = command.argv or []
    path = find_command_path(shell, argv[0])
    code = validate_command_path(shell, command, path)
    if code or path is None:
        return code
    return _execve(shell, path, argv)


def _report_signal(shell: Shell, signum: int) -> None:
    if signum == signal.SIGINT:
        sys.stdout.write("\n")
        _flush(sys.stdout)
    elif signum == getattr(signal, "SIGQUIT", None):
        shell.err.write(MSG_SIGQUIT + "\n")
        _flush(shell.err)


def _wait_child(shell: Shell, pid: int) -> int:
    try:
        _, status = os.waitpid(pid, 0)
    except OSError:
        return 1
    if os.WIFSIGNALED(status):
        signum = os.WTERMSIG(status)
        _report_signal(shell, signum)
        interactive_signals()
        return 128 + signum
    interactive_signals()
    if os.WIFEXITED(status):
        return os.WEXITSTATUS(status)
    return 0


def run_external(shell: Shell, command: Command) -> int:
    """Run ``command`` as a separate program and return its exit status.

    Redirections are applied in the child process only.  A program killed
    by a signal gives 128 plus the signal number.
    """
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    name = (command.argv or [""])[0]
    if name == ".":
        shell.cmd_error(name, ERR_FILENAME_REQUIRED, 0)
        shell.cmd_error(name, ERR_DOT_SYNTAX, 2)
        return shell.exitcode
    if name == "":
        return shell.cmd_error("''", ERR_CMD_NOT_FOUND, 127)
    _flush(sys.stdout, shell.err)
    try:
        pid = os.fork()
    except OSError as exc:
        return shell.cmd_error("fork", exc.strerror or str(exc), 254)
    if pid == 0:
        _exit_child(shell, lambda: _exec_child(shell, command))
    return _wait_child(shell, pid)