import io
import os
from pathlib import Path

import pytest

from minishell.builtins import atoi, cd, echo, exit_shell, export, pwd, unset
from minishell.env import Environment
from minishell.shell import Shell, ShellExit


@pytest.fixture
def shell():
    sh = Shell(
        Environment.from_strings(["HOME=/nowhere", "USER=tester"]),
        err=io.StringIO(),
    )
    try:
        yield sh
    finally:
        sh.close()


@pytest.mark.parametrize(
    "text, expected",
    [("42", 42), ("+5", 5), ("-7", -7), ("abc", 0), ("", 0), ("12ab34", 12)],
)
def test_atoi_basic(text, expected):
    assert atoi(text) == expected


def test_atoi_skips_whitespace_and_stops_at_nondigit():
    assert atoi(" \t\n-17abc") == -17


def test_atoi_wraps_to_32_bits():
    assert atoi("2147483648") == -2147483648


def test_echo_joins_with_spaces():
    out = io.StringIO()
    assert echo(["echo", "a", "b", "c"], out) == 0
    assert out.getvalue() == "a b c\n"


def test_echo_without_args_prints_newline():
    out = io.StringIO()
    assert echo(["echo"], out) == 0
    assert out.getvalue() == "\n"


@pytest.mark.parametrize("options", [["-n"], ["-nnn"], ["-n", "-n"]])
def test_echo_n_options_drop_newline(options):
    out = io.StringIO()
    assert echo(["echo", *options, "hi", "there"], out) == 0
    assert out.getvalue() == "hi there"


@pytest.mark.parametrize("arg", ["-x", "-", "", "-nx"])
def test_echo_non_options_are_printed(arg):
    out = io.StringIO()
    echo(["echo", arg, "z"], out)
    assert out.getvalue() == arg + " z\n"


def test_echo_empty_argv_fails():
    assert echo([], io.StringIO()) == 1


def test_cd_changes_directory_and_updates_pwd(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    sub = tmp_path / "sub"
    sub.mkdir()
    shell.env.set("PWD", str(tmp_path))
    assert cd(shell, ["cd", str(sub)]) == 0
    assert Path(os.getcwd()).resolve() == sub.resolve()
    assert shell.env.get("PWD") == os.getcwd()
    assert shell.env.get("OLDPWD") == str(tmp_path)


def test_cd_without_argument_goes_home(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    home = tmp_path / "home"
    home.mkdir()
    shell.env.set("HOME", str(home))
    assert cd(shell, ["cd"]) == 0
    assert Path(os.getcwd()).resolve() == home.resolve()


def test_cd_home_not_set(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    shell.env.unset("HOME")
    assert cd(shell, ["cd"]) == 1
    assert shell.err.getvalue() == "bash: cd: HOME not set\n"
    assert Path(os.getcwd()).resolve() == tmp_path.resolve()


def test_cd_too_many_arguments(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert cd(shell, ["cd", "a", "b"]) == 1
    assert shell.err.getvalue() == "bash: cd: too many arguments\n"


def test_cd_missing_directory(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert cd(shell, ["cd", str(tmp_path / "missing")]) == 1
    assert shell.exitcode == 1
    message = shell.err.getvalue()
    assert message.startswith("bash: cd: ")
    assert "No such file or directory" in message


def test_pwd_prints_cwd(shell, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()
    assert pwd(shell, out) == 0
    assert out.getvalue() == os.getcwd() + "\n"


def test_export_lists_sorted_exported_variables():
    sh = Shell(Environment.from_strings(["B=2", "A=1", "_=/bin/x", "C"]), err=io.StringIO())
    try:
        sh.env.set("D", "4", False)
        out = io.StringIO()
        assert export(sh, ["export"], out) == 0
        assert out.getvalue() == 'declare -x A="1"\ndeclare -x B="2"\ndeclare -x C\n'
    finally:
        sh.close()


def test_export_adds_variables(shell):
    assert export(shell, ["export", "NAME=value", "BARE", "_x1=y=z"], io.StringIO()) == 0
    assert shell.env.get("NAME") == "value"
    assert "BARE" in shell.env
    assert shell.env.get("BARE") is None
    assert shell.env.get("_x1") == "y=z"


def test_export_keeps_value_on_bare_name(shell):
    export(shell, ["export", "USER"], io.StringIO())
    assert shell.env.get("USER") == "tester"


@pytest.mark.parametrize("arg", ["1a", "=x", "a-b=c", ""])
def test_export_invalid_identifier(shell, arg):
    assert export(shell, ["export", arg, "OK=1"], io.StringIO()) == 1
    assert shell.err.getvalue() == f"bash: export: `{arg}': not a valid identifier\n"
    assert shell.env.get("OK") == "1"


def test_unset_removes_variables(shell):
    assert unset(shell, ["unset", "USER", "MISSING"]) == 0
    assert "USER" not in shell.env
    assert shell.env.get("HOME") == "/nowhere"


def test_exit_without_argument(shell, capsys):
    shell.exitcode = 5
    with pytest.raises(ShellExit) as info:
        exit_shell(shell, ["exit"])
    assert info.value.code == 0
    assert capsys.readouterr().out == "exit\n"


@pytest.mark.parametrize("arg, code", [("42", 42), ("+7", 7), ("0", 0), ("", 0)])
def test_exit_with_code(shell, arg, code):
    with pytest.raises(ShellExit) as info:
        exit_shell(shell, ["exit", arg])
    assert info.value.code == code
    assert shell.exitcode == code


def test_exit_code_is_reduced_modulo_256(shell):
    with pytest.raises(ShellExit) as info:
        exit_shell(shell, ["exit", "256"])
    assert info.value.code == 0


def test_exit_negative_code(shell):
    with pytest.raises(ShellExit) as info:
        exit_shell(shell, ["exit", "-1"])
    assert info.value.code == 255


@pytest.mark.parametrize("arg", ["abc", "-", "5-", "--5", " 5"])
def test_exit_numeric_argument_required(shell, arg):
    with pytest.raises(ShellExit) as info:
        exit_shell(shell, ["exit", arg])
    assert info.value.code == 2
    assert shell.err.getvalue() == f"bash: exit: {arg}: numeric argument required\n"


def test_exit_too_many_arguments_does_not_exit(shell):
    assert exit_shell(shell, ["exit", "1", "2"]) == 1
    assert shell.err.getvalue() == "bash: exit: too many arguments\n"
    assert shell.exitcode == 1