"""Splitting an input line into tokens."""

from __future__ import annotations

import string
from typing import Iterator, Optional

from .models import Token, TokenType

_WHITESPACE = " \t\n\v\f\r"
_OPERATOR_CHARS = "|<>'\"$"
_SINGLE_ERRORS = "&\\;()"
_DOUBLE_ERRORS = ("||", "&&")
_NO_MERGE = "<|> "
_REDIRECTIONS = (
    ("<<", TokenType.HEREDOC),
    (">>", TokenType.REDIRECT_APPEND),
    ("<", TokenType.REDIRECT_IN),
    (">", TokenType.REDIRECT_OUT),
)
_NAME_START = string.ascii_letters + "_?"
_NAME_CHARS = string.ascii_letters + string.digits + "_"


def error_sequence_length(text: str, pos: int) -> int:
    """Return the length of an unsupported operator at ``pos``, or 0."""
    if text[pos:pos + 2] in _DOUBLE_ERRORS:
        return 2
    ch = text[pos:pos + 1]
    if ch and ch in _SINGLE_ERRORS:
        return 1
    return 0


def is_word_delimiter(ch: str) -> bool:
    """Return whether ``ch`` ends a plain word; the empty string is end of input."""
    return (
        ch == ""
        or ch in _WHITESPACE
        or ch in _OPERATOR_CHARS
        or ch in _SINGLE_ERRORS
    )


def _is_merge(text: str, pos: int) -> bool:
    return pos < len(text) and text[pos] not in _NO_MERGE


def read_quote(text: str, pos: int) -> tuple[Optional[str], int]:
    """Read a quoted string starting at the quote at ``pos``.

    Returns the contents and the position after the closing quote, or
    ``None`` and the end of the text when the quote is not closed.
    """
    end = text.find(text[pos], pos + 1)
    if end == -1:
        return None, len(text)
    return text[pos + 1:end], end + 1


def read_dollar(text: str, pos: int) -> tuple[str, int]:
    """Read a run of ``$`` signs at ``pos`` and the name that follows it."""
    n = len(text)
    run_end = pos + 1
    while run_end < n and text[run_end] == "$":
        run_end += 1
    dollars = text[pos:run_end]
    if run_end >= n or text[run_end] not in _NAME_START:
        return dollars, run_end
    end = run_end + 1
    while end < n and text[end] in _NAME_CHARS:
        end += 1
    return dollars + text[run_end:end], end


def read_word(text: str, pos: int) -> tuple[Optional[str], int]:
    """Read a plain word at ``pos``; ``None`` if no word starts there."""
    end = pos
    while end < len(text) and not is_word_delimiter(text[end]):
        end += 1
    return (text[pos:end] or None), end


def _read_token(text: str, pos: int) -> tuple[Token, int]:
    length = error_sequence_length(text, pos)
    if length:
        return Token(TokenType.ERROR, text[pos:pos + length]), pos + length
    for op, token_type in _REDIRECTIONS:
        if text.startswith(op, pos):
            return Token(token_type, op), pos + len(op)
    ch = text[pos]
    if ch == "|":
        return Token(TokenType.PIPE, "|"), pos + 1
    if ch in "'\"":
        value, end = read_quote(text, pos)
        merge = _is_merge(text, end)
        if value is None:
            return Token(TokenType.ERROR, text[pos:], merge), end
        token_type = TokenType.SINGLE_QUOTE if ch == "'" else TokenType.DOUBLE_QUOTE
        return Token(token_type, value, merge), end
    if ch == "$":
        value, end = read_dollar(text, pos)
        return Token(TokenType.DOLLAR, value, _is_merge(text, end)), end
    word, end = read_word(text, pos)
    if word is None:
        raise ValueError(f"unexpected character {ch!r} at {pos}")
    return Token(TokenType.WORD, word, _is_merge(text, end)), end


def _scan(text: str) -> Iterator[Token]:
    pos = 0
    while True:
        while pos < len(text) and text[pos] in _WHITESPACE:
            pos += 1
        if pos >= len(text):
            return
        token, pos = _read_token(text, pos)
        yield token


def tokenize(text: str) -> list[Token]:
    """Split ``text`` into tokens; an empty or blank line gives no tokens."""
    return list(_scan(text))