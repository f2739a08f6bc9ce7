"""
Errors raised by the schedule calculations.
"""


class ScheduleError(Exception):
    """Base class for schedule calculation errors."""


class CyclicDependencyError(ScheduleError):
    """The dependency graph contains a cycle."""

    def __init__(self, task_ids, message=None):
        self.task_ids = sorted(task_ids, key=str)
        super().__init__(
            message or f"Cyclic dependency detected between tasks: {', '.join(str(t) for t in self.task_ids)}"
        )


class InvalidTaskError(ScheduleError):
    """A task record cannot be scheduled (negative duration, missing start date)."""

    def __init__(self, task_id, reason):
        self.task_id = task_id
        self.reason = reason
        super().__init__(f"Task {task_id}: {reason}")


class InsufficientDataError(ScheduleError):
    """Not enough data to compute a metric (e.g. project without tasks)."""


class ProjectNotFoundError(ScheduleError):
    """The requested project does not exist."""

    def __init__(self, project_id):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")
