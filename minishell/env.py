"""Shell variable storage."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, TextIO


@dataclass
class Variable:
    """A shell variable; ``value`` is ``None`` for a declared but unset value."""

    key: str
    value: Optional[str] = None
    exported: bool = True


class Environment:
    """Ordered collection of shell variables, kept in insertion order."""

    def __init__(self) -> None:
        self._vars: dict[str, Variable] = {}

    @classmethod
    def from_strings(cls, envp: Iterable[str]) -> "Environment":
        """Build an environment from ``KEY=VALUE`` strings."""
        environment = cls()
        for envstr in envp:
            environment.add_assignment(envstr)
        return environment

    def __iter__(self) -> Iterator[Variable]:
        return iter(list(self._vars.values()))

    def __len__(self) -> int:
        return len(self._vars)

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def set(self, key: str, value: Optional[str], exported: bool = True) -> Variable:
        """Create or update a variable.

        Updating with a ``None`` value keeps the existing value.
        """
        variable = self._vars.get(key)
        if variable is None:
            variable = Variable(key, value, exported)
            self._vars[key] = variable
            return variable
        if value is not None:
            variable.value = value
        variable.exported = exported
        return variable

    def add_assignment(self, envstr: str) -> Variable:
        """Apply a ``KEY=VALUE`` or bare ``KEY`` string as an exported variable."""
        key, sep, value = envstr.partition("=")
        return self.set(key, value if sep else None, True)

    def unset(self, key: str) -> None:
        """Remove a variable; unknown keys are ignored."""
        self._vars.pop(key, None)

    def find(self, key: str) -> Optional[Variable]:
        """Return the variable named ``key``, or ``None``."""
        return self._vars.get(key)

    def get(self, key: str) -> Optional[str]:
        """Return the value of ``key``, or ``None`` if absent or unset."""
        variable = self._vars.get(key)
        return variable.value if variable is not None else None

    def exported_strings(self) -> list[str]:
        """Return ``KEY=VALUE`` strings for exported variables that have a value."""
        return [
            f"{v.key}={v.value}"
            for v in self._vars.values()
            if v.exported and v.value is not None
        ]

    def env_command(self, argv: list[str], out: Optional[TextIO] = None) -> int:
        """Run the ``env`` builtin; extra arguments make it print nothing."""
        if len(argv) > 1:
            return 0
        stream = out if out is not None else sys.stdout
        for line in self.exported_strings():
            stream.write(line + "\n")
        stream.flush()
        return 0