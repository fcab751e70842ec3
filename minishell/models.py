"""Core data types shared by the lexer, parser and executor."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterable, Optional


class TokenType(Enum):
    """Kinds of token produced by the lexer."""

    WORD = auto()
    SINGLE_QUOTE = auto()
    DOUBLE_QUOTE = auto()
    REDIRECT_IN = auto()
    REDIRECT_OUT = auto()
    REDIRECT_APPEND = auto()
    HEREDOC = auto()
    PIPE = auto()
    DOLLAR = auto()
    ERROR = auto()


class RedirectType(Enum):
    """Kinds of redirection attached to a command."""

    IN = auto()
    OUT = auto()
    APPEND = auto()
    HEREDOC = auto()


_REDIRECT_TYPES = {
    TokenType.REDIRECT_IN: RedirectType.IN,
    TokenType.REDIRECT_OUT: RedirectType.OUT,
    TokenType.REDIRECT_APPEND: RedirectType.APPEND,
    TokenType.HEREDOC: RedirectType.HEREDOC,
}


@dataclass
class Token:
    """A lexical token; ``merge`` means it is glued to the following token."""

    type: TokenType
    value: str
    merge: bool = False


@dataclass
class Redirect:
    """A single redirection of a command.

    ``heredoc_fd`` holds the read end of a prepared here-document, if any.
    """

    type: RedirectType
    file: Optional[str] = None
    delimiter: Optional[str] = None
    should_expand: bool = False
    heredoc_fd: Optional[int] = None

    def close(self) -> None:
        """Close the prepared here-document descriptor, if one is open."""
        if self.heredoc_fd is not None:
            try:
                os.close(self.heredoc_fd)
            except OSError:
                pass
            self.heredoc_fd = None


@dataclass
class Command:
    """One simple command of a pipeline.

    ``argv`` is ``None`` when the command consists of redirections only.
    """

    argv: Optional[list[str]] = None
    redirects: list[Redirect] = field(default_factory=list)

    def close(self) -> None:
        """Release every resource held by the command's redirections."""
        for redirect in self.redirects:
            redirect.close()


def is_redirect(token_type: TokenType) -> bool:
    """Return whether the token type introduces a redirection."""
    return token_type in _REDIRECT_TYPES


def is_pipe(token_type: TokenType) -> bool:
    """Return whether the token type is a pipe."""
    return token_type is TokenType.PIPE


def redirect_type(token_type: TokenType) -> RedirectType:
    """Map a redirection token type to its redirection kind."""
    try:
        return _REDIRECT_TYPES[token_type]
    except KeyError:
        raise ValueError(f"{token_type!r} is not a redirection") from None


def last_input_redirect(redirects: Iterable[Redirect]) -> Optional[Redirect]:
    """Return the last input or here-document redirection, or ``None``."""
    last = None
    for redirect in redirects:
        if redirect.type in (RedirectType.IN, RedirectType.HEREDOC):
            last = redirect
    return last