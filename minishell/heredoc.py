"""Reading here-documents before a command line is run."""

from __future__ import annotations

import os
import tempfile
from typing import Callable, Iterable, Optional

from .expansion import parse_dollar
from .models import Redirect, RedirectType
from .shell import Shell
from .signals import INTERRUPTED, heredoc_signals, interactive_signals, take_interrupt

PS2 = "> "

LineReader = Callable[[str], Optional[str]]


class HeredocInterrupted(Exception):
    """Raised when reading a here-document is interrupted by Ctrl-C."""


def _read_line(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def is_delimiter(redirect: Redirect, line: Optional[str]) -> bool:
    """Return whether ``line`` ends the here-document of ``redirect``."""
    if line is None or redirect.delimiter is None:
        return False
    return line == redirect.delimiter


def expand_heredoc_line(shell: Shell, redirect: Redirect, line: str) -> str:
    """Expand variables in a here-document line if the redirect asks for it."""
    if not redirect.should_expand:
        return line
    parts = []
    pos = 0
    while pos < len(line):
        if line[pos] == "$":
            part, pos = parse_dollar(shell, line, pos)
        else:
            end = line.find("$", pos)
            if end == -1:
                end = len(line)
            part, pos = line[pos:end], end
        parts.append(part)
    return "".join(parts)


def collect_heredoc(
    shell: Shell, redirect: Redirect, read_line: Optional[LineReader] = None
) -> str:
    """Read lines up to the delimiter or end of input and return the body.

    ``read_line`` is called with the secondary prompt and returns ``None``
    at end of input.  On Ctrl-C the exit code becomes 130 and
    :class:`HeredocInterrupted` is raised.
    """
    read = read_line if read_line is not None else _read_line
    lines = []
    heredoc_signals()
    try:
        while True:
            line = read(PS2)
            if line is None or is_delimiter(redirect, line):
                break
            lines.append(expand_heredoc_line(shell, redirect, line) + "\n")
    except KeyboardInterrupt:
        take_interrupt()
        shell.exitcode = INTERRUPTED
        raise HeredocInterrupted() from None
    finally:
        interactive_signals()
    return "".join(lines)


def _to_descriptor(body: str) -> int:
    with tempfile.TemporaryFile() as handle:
        handle.write(body.encode())
        handle.flush()
        handle.seek(0)
        return os.dup(handle.fileno())


def prepare_heredocs(
    shell: Shell,
    redirects: Iterable[Redirect],
    read_line: Optional[LineReader] = None,
) -> int:
    """Read every here-document of ``redirects`` and store a readable descriptor.

    Returns 0 on success, otherwise the non-zero exit status of the failure.
    """
    heredocs = (r for r in redirects if r.type is RedirectType.HEREDOC)
    for redirect in heredocs:
        redirect.close()
        try:
            body = collect_heredoc(shell, redirect, read_line)
            redirect.heredoc_fd = _to_descriptor(body)
        except HeredocInterrupted:
            return shell.exitcode or 1
        except OSError as exc:
            shell.cmd_error("pipe", exc.strerror or str(exc), 1)
            return shell.exitcode or 1
    return 0