"""Shell state and error reporting."""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from typing import Optional, TextIO

from .env import Environment
from .models import Command, Token

PROMPT = "minishell$ "
BASH_PREFIX = "bash: "
ERR_SYNTAX = "syntax error near unexpected token"
ERR_NO_SUCH_FILE_OR_DIR = "No such file or directory"


class ShellExit(Exception):
    """Raised to leave the shell with the given exit code."""

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code


class Shell:
    """State of a running shell: variables, last exit code and saved streams.

    On creation the standard input and output descriptors are duplicated so
    they can be restored after redirections.
    """

    def __init__(
        self,
        env: Optional[Environment] = None,
        *,
        prompt: str = PROMPT,
        err: Optional[TextIO] = None,
    ) -> None:
        self.prompt = prompt
        self.env = env if env is not None else Environment()
        self.exitcode = 0
        self.input: Optional[str] = None
        self.tokens: list[Token] = []
        self.commands: list[Command] = []
        self._err = err
        self.stdin_backup: Optional[int] = None
        self.stdout_backup: Optional[int] = None
        try:
            self.stdin_backup = os.dup(0)
            self.stdout_backup = os.dup(1)
        except OSError as exc:
            self.cmd_error("dup", exc.strerror or str(exc), 1)
            self.close()
            raise

    @property
    def err(self) -> TextIO:
        """Stream that error messages are written to."""
        return self._err if self._err is not None else sys.stderr

    def _write_err(self, text: str) -> None:
        self.err.write(text)
        self.err.flush()

    def cmd_error(self, cmd: str, msg: str, code: int) -> int:
        """Report an error of a command, set the exit code and return it."""
        prefix = ""
        if code not in (127, 2):
            prefix = BASH_PREFIX
        elif code == 127 and msg == ERR_NO_SUCH_FILE_OR_DIR:
            prefix = BASH_PREFIX
        if code == 2 and cmd == ".":
            self._write_err(f"{prefix}{cmd}: usage: {msg}\n")
        else:
            self._write_err(f"{prefix}{cmd}: {msg}\n")
        self.exitcode = code
        return self.exitcode

    def opt_error(self, opt: str, msg: str, code: int) -> int:
        """Report a bad argument of ``exit`` (code 2) or ``export`` (otherwise)."""
        self.exitcode = code
        if code == 2:
            subject = f"exit: {opt}"
        else:
            subject = f"export: `{opt}'"
        self._write_err(f"{BASH_PREFIX}{subject}: {msg}\n")
        return self.exitcode

    def syntax_error(self, sep: str) -> int:
        """Report a syntax error near ``sep``; the exit code becomes 2."""
        self._write_err(f"{BASH_PREFIX}{ERR_SYNTAX} `{sep}'\n")
        self.exitcode = 2
        return self.exitcode

    def close(self) -> None:
        """Release parsed commands and the saved standard descriptors."""
        for command in self.commands:
            command.close()
        self.commands = []
        self.tokens = []
        self.input = None
        for name in ("stdin_backup", "stdout_backup"):
            fd = getattr(self, name)
            if fd is not None:
                with suppress(OSError):
                    os.close(fd)
                setattr(self, name, None)

    def __enter__(self) -> "Shell":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()