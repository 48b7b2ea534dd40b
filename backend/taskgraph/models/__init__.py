from taskgraph.models.dependency import Dependency
from taskgraph.models.task import Task, TaskStatus

__all__ = ["Dependency", "Task", "TaskStatus"]
