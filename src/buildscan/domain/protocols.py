"""Protocols (interfaces) for pipeline tasks."""

from typing import Protocol

from buildscan.domain.models import Context


class Task(Protocol):
    """Protocol for pipeline tasks."""

    name: str

    def get_status_message(self, ctx: Context) -> str:
        """Short human-readable description of the task."""
        ...

    def run(self, ctx: Context) -> Context:
        """Run the task and return updated context."""
        ...
