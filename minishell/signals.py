"""Signal dispositions for prompting, here-documents and child processes."""

from __future__ import annotations

import signal
import sys

MSG_SIGQUIT = "Quit (core dumped)"
INTERRUPTED = 130

_pending = 0


def _on_sigint(signum: int, frame: object) -> None:
    global _pending
    _pending = INTERRUPTED
    sys.stdout.write("\n")
    sys.stdout.flush()
    raise KeyboardInterrupt


def _set_quit(handler: object) -> None:
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, handler)


def interactive_signals() -> None:
    """Handle Ctrl-C at the prompt and ignore Ctrl-\\.

    Ctrl-C records an interruption, prints a newline and raises
    ``KeyboardInterrupt`` so the current line is abandoned.
    """
    signal.signal(signal.SIGINT, _on_sigint)
    _set_quit(signal.SIG_IGN)


def heredoc_signals() -> None:
    """Handle Ctrl-C while reading a here-document and ignore Ctrl-\\.

    Ctrl-C records an interruption, prints a newline and raises
    ``KeyboardInterrupt`` to stop reading.
    """
    signal.signal(signal.SIGINT, _on_sigint)
    _set_quit(signal.SIG_IGN)


def default_signals() -> None:
    """Restore the default dispositions of SIGINT and SIGQUIT."""
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    _set_quit(signal.SIG_DFL)


def take_interrupt() -> int:
    """Return the pending interruption code (130) and clear it; 0 if none."""
    global _pending
    code, _pending = _pending, 0
    return code