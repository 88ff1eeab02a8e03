"""Pipeline tasks."""

from typing import Dict, List, Optional

from buildscan.domain.protocols import Task

_TASKS: Dict[str, Task] = {}


def register(task: Task) -> None:
    """Register a task by name."""
    _TASKS[task.name] = task


def get_task(name: str) -> Optional[Task]:
    """Retrieve a task by name."""
    return _TASKS.get(name)


def all_tasks() -> List[Task]:
    """Get all registered tasks."""
    return list(_TASKS.values())


# Import all task modules to trigger auto-registration
from buildscan.services.tasks import (  # noqa: E402, F401
    check_tools,
    load_build_metadata,
    load_scan_report,
    measure_artifacts,
    measure_image,
    save_build_metadata,
    scan_vulnerabilities,
    summarize_findings,
    write_summary,
)
