"""Applying a command's redirections to the standard descriptors."""

from __future__ import annotations

import errno
import os
import sys
from typing import Callable, Optional

from .models import Command, Redirect, RedirectType, last_input_redirect
from .shell import Shell

STDIN_FD = 0
STDOUT_FD = 1

_OUT_FLAGS = os.O_CREAT | os.O_WRONLY | os.O_TRUNC
_APPEND_FLAGS = os.O_CREAT | os.O_WRONLY | os.O_APPEND
_FILE_MODE = 0o644


def _strerror(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _flush_stdout() -> None:
    try:
        sys.stdout.flush()
    except (OSError, ValueError):
        pass


def _redirect_file(shell: Shell, path: str, flags: int, target: int) -> int:
    try:
        fd = os.open(path, flags, _FILE_MODE)
    except OSError as exc:
        return shell.cmd_error(path, _strerror(exc), 1)
    try:
        if target == STDOUT_FD:
            _flush_stdout()
        os.dup2(fd, target)
    except OSError as exc:
        return shell.cmd_error("dup2", _strerror(exc), 1)
    finally:
        os.close(fd)
    return 0


def redirect_in(shell: Shell, redirect: Redirect) -> int:
    """Make the redirect's file the standard input."""
    return _redirect_file(shell, redirect.file or "", os.O_RDONLY, STDIN_FD)


def redirect_out(shell: Shell, redirect: Redirect) -> int:
    """Make the redirect's file, truncated, the standard output."""
    return _redirect_file(shell, redirect.file or "", _OUT_FLAGS, STDOUT_FD)


def redirect_append(shell: Shell, redirect: Redirect) -> int:
    """Make the redirect's file, opened for appending, the standard output."""
    return _redirect_file(shell, redirect.file or "", _APPEND_FLAGS, STDOUT_FD)


def _redirect_heredoc(
    shell: Shell, redirect: Redirect, last_input: Optional[Redirect]
) -> int:
    if redirect is not last_input:
        return 0
    fd = redirect.heredoc_fd
    if fd is None:
        return shell.cmd_error("dup2", os.strerror(errno.EBADF), 1)
    try:
        os.dup2(fd, STDIN_FD)
    except OSError as exc:
        redirect.close()
        return shell.cmd_error("dup2", _strerror(exc), 1)
    redirect.close()
    return 0


_FILE_HANDLERS: dict[RedirectType, Callable[[Shell, Redirect], int]] = {
    RedirectType.IN: redirect_in,
    RedirectType.OUT: redirect_out,
    RedirectType.APPEND: redirect_append,
}


def _apply(shell: Shell, redirect: Redirect, last_input: Optional[Redirect]) -> int:
    if redirect.type is RedirectType.HEREDOC:
        return _redirect_heredoc(shell, redirect, last_input)
    return _FILE_HANDLERS[redirect.type](shell, redirect)


def setup_redirections(shell: Shell, command: Optional[Command]) -> int:
    """Apply the command's redirections in order, stopping at the first failure.

    Only the last input redirection decides where a here-document goes.
    Nothing is applied while the shell's exit code is non-zero; the exit
    code is returned.
    """
    if command is None or not command.redirects:
        return 0
    last_input = last_input_redirect(command.redirects)
    for redirect in command.redirects:
        if shell.exitcode != 0:
            break
        shell.exitcode = _apply(shell, redirect, last_input)
        if shell.exitcode == 130:
            return shell.exitcode
    return shell.exitcode


def restore_std_fds(shell: Shell) -> int:
    """Put back the standard input and output saved when the shell started."""
    _flush_stdout()
    for backup, target in (
        (shell.stdin_backup, STDIN_FD),
        (shell.stdout_backup, STDOUT_FD),
    ):
        if backup is None:
            return shell.cmd_error("dup2", os.strerror(errno.EBADF), 1)
        try:
            os.dup2(backup, target)
        except OSError as exc:
            return shell.cmd_error("dup2", _strerror(exc), 1)
    return 0