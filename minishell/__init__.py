"""Pieces of a small bash-like shell: tokens, expansion, builtins, redirections, heredocs and pipelines."""

__version__ = "0.1.0"

__all__ = [
    "builtins",
    "env",
    "executor",
    "expansion",
    "external",
    "heredoc",
    "lexer",
    "models",
    "redirections",
    "shell",
    "signals",
]