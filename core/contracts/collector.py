from typing import Any, Mapping, Protocol


class Collector(Protocol):
    """Gathers one part of a task's context."""

    def collect(self) -> Mapping[str, Any]:
        """Returns fields for `TaskContext`, keyed by field name."""
        ...
