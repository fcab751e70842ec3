import signal

import pytest

from minishell.signals import (
    default_signals,
    heredoc_signals,
    interactive_signals,
    take_interrupt,
)


@pytest.fixture(autouse=True)
def restore_handlers():
    saved_int = signal.getsignal(signal.SIGINT)
    saved_quit = signal.getsignal(signal.SIGQUIT)
    take_interrupt()
    yield
    signal.signal(signal.SIGINT, saved_int)
    signal.signal(signal.SIGQUIT, saved_quit)
    take_interrupt()


def test_no_interrupt_pending():
    assert take_interrupt() == 0


@pytest.mark.parametrize("install", [interactive_signals, heredoc_signals])
def test_handlers_ignore_quit(install):
    install()
    assert signal.getsignal(signal.SIGQUIT) == signal.SIG_IGN
    handler = signal.getsignal(signal.SIGINT)
    assert handler not in (signal.SIG_DFL, signal.SIG_IGN)
    assert callable(handler)
    assert take_interrupt() == 0


@pytest.mark.parametrize("install", [interactive_signals, heredoc_signals])
def test_sigint_handler_records_interrupt(install, capsys):
    install()
    handler = signal.getsignal(signal.SIGINT)
    with pytest.raises(KeyboardInterrupt):
        handler(signal.SIGINT, None)
    assert capsys.readouterr().out == "\n"
    assert take_interrupt() == 130
    assert take_interrupt() == 0


def test_real_sigint_is_delivered():
    interactive_signals()
    with pytest.raises(KeyboardInterrupt):
        signal.raise_signal(signal.SIGINT)
    assert take_interrupt() == 130


def test_default_signals():
    interactive_signals()
    default_signals()
    assert signal.getsignal(signal.SIGINT) == signal.SIG_DFL
    assert signal.getsignal(signal.SIGQUIT) == signal.SIG_DFL
    assert take_interrupt() == 0