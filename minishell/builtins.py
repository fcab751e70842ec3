"""Commands built into the shell: echo, cd, pwd, export, unset and exit."""

from __future__ import annotations

import os
import string
import sys
from itertools import takewhile
from typing import Optional, TextIO

from .shell import Shell, ShellExit

ERR_HOME_NOT_SET = "HOME not set"
ERR_TOO_MANY_ARGS = "too many arguments"
ERR_NOT_A_VALID_IDENT = "not a valid identifier"
ERR_NUM_ARG_REQ = "numeric argument required"

_WHITESPACE = " \t\n\v\f\r"
_DIGITS = "0123456789"
_IDENT_START = frozenset(string.ascii_letters + "_")
_IDENT_CHARS = frozenset(string.ascii_letters + string.digits + "_")


def _strerror(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _wrap_int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def _c_remainder(value: int, divisor: int) -> int:
    remainder = abs(value) % divisor
    return -remainder if value < 0 else remainder


def atoi(text: str) -> int:
    """Parse a leading integer the way C ``atoi`` does, wrapping to 32 bits.

    Leading whitespace and one sign are accepted; parsing stops at the first
    non-digit, and text without digits gives 0.
    """
    rest = text.lstrip(_WHITESPACE)
    sign = 1
    if rest[:1] in ("-", "+"):
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    digits = "".join(takewhile(lambda ch: ch in _DIGITS, rest))
    return _wrap_int32(sign * int(digits or "0"))


def _is_n_option(arg: str) -> bool:
    return len(arg) > 1 and all(ch == "n" for ch in arg[1:])


def echo(argv: list[str], out: Optional[TextIO] = None) -> int:
    """Print the arguments separated by spaces; leading ``-n`` options drop the newline."""
    if not argv:
        return 1
    stream = out if out is not None else sys.stdout
    args = argv[1:]
    options = sum(1 for _ in takewhile(_is_n_option, args))
    words = args[options:]
    stream.write(" ".join(words))
    if options == 0:
        stream.write("\n")
    stream.flush()
    return 0


def _update_pwd_vars(shell: Shell) -> int:
    try:
        new_pwd = os.getcwd()
    except OSError as exc:
        return shell.cmd_error("cd", _strerror(exc), 1)
    current = shell.env.find("PWD")
    if current is not None:
        shell.env.set("OLDPWD", current.value, True)
    shell.env.set("PWD", new_pwd, True)
    return 0


def _change_dir(shell: Shell, path: str) -> int:
    try:
        os.chdir(path)
    except OSError as exc:
        return shell.cmd_error("cd", _strerror(exc), 1)
    return _update_pwd_vars(shell)


def cd(shell: Shell, argv: list[str]) -> int:
    """Change the working directory, to ``HOME`` without an argument."""
    if len(argv) < 2:
        home = shell.env.get("HOME")
        if home is None:
            return shell.cmd_error("cd", ERR_HOME_NOT_SET, 1)
        return _change_dir(shell, home)
    if len(argv) > 2:
        return shell.cmd_error("cd", ERR_TOO_MANY_ARGS, 1)
    shell.exitcode = _change_dir(shell, argv[1])
    return shell.exitcode


def pwd(shell: Shell, out: Optional[TextIO] = None) -> int:
    """Print the current working directory."""
    try:
        cwd = os.getcwd()
    except OSError as exc:
        return shell.cmd_error("pwd", _strerror(exc), 1)
    stream = out if out is not None else sys.stdout
    stream.write(cwd + "\n")
    stream.flush()
    return 0


def _print_export_list(shell: Shell, stream: TextIO) -> int:
    variables = sorted(
        (v for v in shell.env if v.exported and v.key != "_"),
        key=lambda v: v.key.encode(),
    )
    for variable in variables:
        line = f"declare -x {variable.key}"
        if variable.value is not None:
            line += f'="{variable.value}"'
        stream.write(line + "\n")
    stream.flush()
    return 0


def _is_valid_identifier(arg: str) -> bool:
    if not arg or arg[0] not in _IDENT_START:
        return False
    name = arg.partition("=")[0]
    return all(ch in _IDENT_CHARS for ch in name[1:])


def export(shell: Shell, argv: list[str], out: Optional[TextIO] = None) -> int:
    """Export variables; without arguments list the exported ones sorted by name."""
    if len(argv) < 2:
        stream = out if out is not None else sys.stdout
        shell.exitcode = _print_export_list(shell, stream)
    status = 0
    for arg in argv[1:]:
        if _is_valid_identifier(arg):
            shell.env.add_assignment(arg)
        else:
            status = 1
            shell.opt_error(arg, ERR_NOT_A_VALID_IDENT, status)
    return status


def unset(shell: Shell, argv: list[str]) -> int:
    """Remove the named variables."""
    for key in argv[1:]:
        shell.env.unset(key)
    return 0


def _is_numeric(text: str) -> bool:
    pos = 0
    while pos < len(text):
        if text[pos] in "+-":
            pos += 1
        if pos >= len(text) or text[pos] not in _DIGITS:
            return False
        pos += 1
    return True


def exit_shell(shell: Shell, argv: list[str]) -> int:
    """Leave the shell by raising :class:`ShellExit`.

    With more than one numeric argument nothing is left: the error is
    reported and its status returned.
    """
    sys.stdout.write("exit\n")
    sys.stdout.flush()
    if len(argv) < 2:
        shell.close()
        raise ShellExit(0)
    arg = argv[1]
    if not _is_numeric(arg):
        shell.opt_error(arg, ERR_NUM_ARG_REQ, 2)
        shell.close()
        raise ShellExit(shell.exitcode)
    if len(argv) > 2:
        return shell.cmd_error("exit", ERR_TOO_MANY_ARGS, 1)
    shell.exitcode = _c_remainder(atoi(arg), 256) & 0xFF
    shell.close()
    raise ShellExit(shell.exitcode)