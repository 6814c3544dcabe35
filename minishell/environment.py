"""The shell's environment variables and its per-session state."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass


def split_entry(entry: str) -> tuple[str, str]:
    """Split ``NAME=value`` at the first ``=``; a missing value is empty."""
    name, _, value = entry.partition("=")
    return name, value


class Environment:
    """Ordered collection of environment variables."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._vars: dict[str, str] = {}
        for entry in entries:
            self.insert(entry)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "Environment":
        """Build an environment from a name-to-value mapping."""
        env = cls()
        for name, value in mapping.items():
            env.set(name, value)
        return env

    def insert(self, entry: str) -> None:
        """Add a variable given as ``NAME=value``."""
        name, value = split_entry(entry)
        self._vars[name] = value

    def get(self, name: str) -> str | None:
        """Return the value of ``name``, or None if it is not set."""
        return self._vars.get(name)

    def set(self, name: str, value: str) -> None:
        """Set ``name`` to ``value``, keeping its place if it exists."""
        self._vars[name] = value

    def unset(self, name: str) -> None:
        """Remove ``name``; does nothing if it is not set."""
        self._vars.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._vars

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)

    def __len__(self) -> int:
        return len(self._vars)

    def as_envp(self) -> list[str]:
        """Return the variables as ``NAME=value`` strings, in order."""
        return [f"{name}={value}" for name, value in self._vars.items()]

    def as_dict(self) -> dict[str, str]:
        """Return a copy of the variables as a dict."""
        return dict(self._vars)

    def format_env(self) -> str:
        """Return the listing printed by ``env``."""
        return "".join(f"{name}={value}\n" for name, value in self._vars.items())

    def format_export(self) -> str:
        """Return the listing printed by ``export`` without arguments."""
        return "".join(
            f'export {name}="{value}"\n' for name, value in self._vars.items()
        )


@dataclass
class ShellState:
    """What a shell session carries from one command line to the next."""

    env: Environment
    exit_code: int = 0