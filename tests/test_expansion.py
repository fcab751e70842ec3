import io

import pytest

from minishell.env import Environment
from minishell.expansion import (
    PID_SUBSTITUTE,
    expand,
    expand_dollar,
    merge_tokens,
    parse_dollar,
)
from minishell.lexer import tokenize
from minishell.models import Token, TokenType
from minishell.shell import Shell


@pytest.fixture
def shell():
    env = Environment.from_strings(["USER=alice", "HOME=/home/alice", "EMPTY="])
    with Shell(env, err=io.StringIO()) as sh:
        yield sh


def values(tokens):
    return [t.value for t in tokens]


def test_expand_dollar_variable(shell):
    assert expand_dollar(shell, "$USER", 0) == ("alice", len("$USER"))


def test_expand_dollar_stops_at_non_name(shell):
    text = "$USER/x"
    value, pos = expand_dollar(shell, text, 0)
    assert value == "alice"
    assert text[pos:] == "/x"


def test_unset_variable_is_empty(shell):
    assert expand_dollar(shell, "$MISSING", 0) == ("", len("$MISSING"))


def test_double_dollar_is_pid_substitute(shell):
    assert expand_dollar(shell, "$$", 0) == (PID_SUBSTITUTE, 2)


def test_even_dollars_keep_name_literal(shell):
    value, _ = expand_dollar(shell, "$$USER", 0)
    assert value == PID_SUBSTITUTE + "USER"


def test_odd_trailing_dollar_is_kept(shell):
    value, pos = expand_dollar(shell, "$$$", 0)
    assert value == PID_SUBSTITUTE + "$"
    assert pos == 3


def test_three_dollars_expand_name(shell):
    value, _ = expand_dollar(shell, "$$$USER", 0)
    assert value == PID_SUBSTITUTE + "alice"


def test_question_mark_gives_exit_code(shell):
    shell.exitcode = 7
    assert expand_dollar(shell, "$?", 0) == ("7", 2)


def test_even_dollars_before_question_mark(shell):
    value, _ = expand_dollar(shell, "$$?", 0)
    assert value == PID_SUBSTITUTE + "?"


def test_parse_dollar_lone_sign(shell):
    assert parse_dollar(shell, "$", 0) == ("$", 1)
    assert parse_dollar(shell, "$.", 0) == ("$", 1)


def test_parse_dollar_delegates_to_expansion(shell):
    assert parse_dollar(shell, "a$USER", 1) == ("alice", len("a$USER"))


def test_double_quotes_are_expanded(shell):
    tokens = expand(shell, tokenize('echo "hi $USER"'))
    assert values(tokens) == ["echo", "hi alice"]
    assert all(t.type is TokenType.WORD for t in tokens)


def test_single_quotes_stay_literal(shell):
    tokens = expand(shell, tokenize("echo '$USER'"))
    assert values(tokens) == ["echo", "$USER"]
    assert tokens[1].type is TokenType.WORD


def test_empty_expansion_is_removed(shell):
    tokens = expand(shell, tokenize("echo $MISSING done"))
    assert values(tokens) == ["echo", "done"]


def test_only_empty_expansion_gives_no_tokens(shell):
    assert expand(shell, tokenize("$MISSING")) == []


def test_adjacent_pieces_are_merged(shell):
    tokens = expand(shell, tokenize('x"$USER"y'))
    assert values(tokens) == ["xalicey"]
    assert tokens[0].merge is False


def test_merge_with_empty_variable(shell):
    tokens = expand(shell, tokenize("a$EMPTY b"))
    assert values(tokens) == ["a", "b"]


def test_exit_code_in_word(shell):
    shell.exitcode = 3
    assert values(expand(shell, tokenize("echo $?"))) == ["echo", "3"]


def test_heredoc_delimiter_is_not_expanded(shell):
    tokens = expand(shell, tokenize("cat << $USER"))
    assert values(tokens) == ["cat", "<<", "$USER"]
    assert tokens[2].type is TokenType.DOLLAR


def test_quoted_heredoc_delimiter_keeps_type(shell):
    tokens = expand(shell, tokenize("cat << 'EOF'"))
    assert tokens[2].type is TokenType.SINGLE_QUOTE


def test_expand_does_not_change_input(shell):
    original = tokenize('echo "$USER"')
    snapshot = [Token(t.type, t.value, t.merge) for t in original]
    expand(shell, original)
    assert original == snapshot


def test_merge_tokens_chain():
    tokens = [
        Token(TokenType.WORD, "a", True),
        Token(TokenType.WORD, "b", True),
        Token(TokenType.WORD, "c", False),
        Token(TokenType.PIPE, "|"),
    ]
    assert merge_tokens(tokens) == [
        Token(TokenType.WORD, "abc", False),
        Token(TokenType.PIPE, "|", False),
    ]


def test_merge_tokens_drops_empty_dollar():
    tokens = [Token(TokenType.DOLLAR, ""), Token(TokenType.WORD, "x")]
    assert merge_tokens(tokens) == [Token(TokenType.WORD, "x")]


def test_merge_flag_on_last_token_is_kept():
    tokens = [Token(TokenType.WORD, "a", True)]
    assert merge_tokens(tokens) == [Token(TokenType.WORD, "a", True)]