"""Step outputs with protocol-based swappable implementations.

Production code uses ``GitHubOutputFile``, which appends to the file named
by ``$GITHUB_OUTPUT`` using the runner's heredoc syntax.  Tests use
``InMemoryOutputs``, which captures values for assertion.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import Protocol


class OutputSink(Protocol):
    """Protocol for recording a named step output."""

    def set_output(self, name: str, value: str) -> None:
        ...


class GitHubOutputFile:
    """Appends outputs to the runner-provided ``$GITHUB_OUTPUT`` file."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)

    def set_output(self, name: str, value: str) -> None:
        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


class InMemoryOutputs:
    """Test double that records outputs in a dict."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def set_output(self, name: str, value: str) -> None:
        self.values[name] = value
