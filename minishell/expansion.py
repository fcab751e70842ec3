"""Variable expansion of tokens and joining of adjacent tokens."""

from __future__ import annotations

import string
from collections import deque
from dataclasses import replace
from typing import Iterable

from .models import Token, TokenType
from .shell import Shell

PID_SUBSTITUTE = "42"

_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")
_DOLLAR_FOLLOWERS = _NAME_CHARS | {"?", "$"}


def expand_dollar(shell: Shell, text: str, pos: int) -> tuple[str, int]:
    """Expand the run of ``$`` signs at ``pos`` and the name after it.

    Every pair of ``$`` becomes the process-id substitute.  An odd run
    expands the following name (or ``?``); an even run keeps it literally.
    Returns the expansion and the position after what was consumed.
    """
    n = len(text)
    run_end = pos
    while run_end < n and text[run_end] == "$":
        run_end += 1
    count = run_end - pos
    odd = count % 2 == 1
    prefix = PID_SUBSTITUTE * (count // 2)
    if run_end >= n:
        return prefix + ("$" if odd else ""), run_end
    if text[run_end] == "?":
        return prefix + (str(shell.exitcode) if odd else "?"), run_end + 1
    end = run_end
    while end < n and text[end] in _NAME_CHARS:
        end += 1
    name = text[run_end:end]
    if odd:
        value = shell.env.get(name) or ""
    else:
        value = name
    return prefix + value, end


def parse_dollar(shell: Shell, text: str, pos: int) -> tuple[str, int]:
    """Expand the ``$`` at ``pos``; a ``$`` not followed by a name stays literal."""
    following = text[pos + 1:pos + 2]
    if following and following in _DOLLAR_FOLLOWERS:
        return expand_dollar(shell, text, pos)
    return "$", pos + 1


def _expand_value(shell: Shell, text: str, in_quotes: bool) -> str:
    if in_quotes:
        quote = text.find('"')
        if quote != -1:
            text = text[:quote]
    parts = []
    pos = 0
    while pos < len(text):
        if text[pos] == "$":
            part, pos = parse_dollar(shell, text, pos)
        else:
            end = text.find("$", pos)
            if end == -1:
                end = len(text)
            part, pos = text[pos:end], end
        parts.append(part)
    return "".join(parts)


def _expand_token(shell: Shell, token: Token) -> Token:
    value = token.value
    if token.type is TokenType.DOLLAR:
        value = _expand_value(shell, value, in_quotes=False)
    elif token.type is TokenType.DOUBLE_QUOTE and "$" in value:
        value = _expand_value(shell, value, in_quotes=True)
    token_type = token.type
    if token_type in (TokenType.SINGLE_QUOTE, TokenType.DOUBLE_QUOTE):
        token_type = TokenType.WORD
    elif token_type is TokenType.DOLLAR and value:
        token_type = TokenType.WORD
    return replace(token, type=token_type, value=value)


def merge_tokens(tokens: Iterable[Token]) -> list[Token]:
    """Join tokens flagged for merging and drop empty variable expansions.

    A here-document operator and its delimiter are passed through untouched.
    """
    queue = deque(tokens)
    result: list[Token] = []
    while queue:
        token = queue.popleft()
        if token.type is TokenType.HEREDOC:
            result.append(token)
            if queue:
                result.append(queue.popleft())
            continue
        if token.type is TokenType.DOLLAR:
            continue
        if token.merge and queue:
            following = queue.popleft()
            queue.appendleft(
                Token(TokenType.WORD, token.value + following.value, following.merge)
            )
            continue
        result.append(token)
    return result


def expand(shell: Shell, tokens: Iterable[Token]) -> list[Token]:
    """Expand variables in ``tokens`` and join adjacent pieces into words.

    Quoted tokens become plain words; single-quoted text is not expanded.
    Here-document delimiters are left as they are.  The input is not changed.
    """
    expanded: list[Token] = []
    stream = iter(tokens)
    for token in stream:
        if token.type is TokenType.HEREDOC:
            expanded.append(token)
            delimiter = next(stream, None)
            if delimiter is not None:
                expanded.append(delimiter)
            continue
        expanded.append(_expand_token(shell, token))
    return merge_tokens(expanded)