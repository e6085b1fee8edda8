"""Public result types for pjsh."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ExecResult:
    """Result of executing a program through the Shell API."""

    stdout: str = ""
    """Captured standard output."""

    stderr: str = ""
    """Captured standard error."""

    exit_code: int = 0
    """Exit code of the last executed statement."""

    env: dict[str, str] = field(default_factory=dict)
    """Variables visible from the global scope after execution."""
