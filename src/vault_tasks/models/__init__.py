from .project import Project
from .task import Description, Priority, State, Task, TaskState
from .patch import PatchError, PatchKind, TaskPatch, ValuePatch
from .filter import Due, Filter, due_group

__all__ = [
    "Project",
    "Description",
    "Priority",
    "State",
    "Task",
    "TaskState",
    "PatchError",
    "PatchKind",
    "TaskPatch",
    "ValuePatch",
    "Due",
    "Filter",
    "due_group",
]
