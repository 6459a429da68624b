"""
Task filter: state categories plus due-date buckets.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from vault_tasks.models.task import Task, TaskState


class Due(str, Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    FUTURE = "future"
    NO_DATE = "no-date"


def due_group(due: Optional[datetime], today=None) -> Due:
    """Bucket a due date against today's UTC date."""
    if due is None:
        return Due.NO_DATE
    today = today or datetime.now(timezone.utc).date()
    day = due.date()
    if day < today:
        return Due.OVERDUE
    if day == today:
        return Due.TODAY
    return Due.FUTURE


@dataclass
class Filter:
    states: List[TaskState] = field(default_factory=list)
    due: List[Due] = field(default_factory=list)

    def accept(self, task: Task) -> bool:
        if task.state.kind not in self.states:
            return False
        return due_group(task.due) in self.due

    @classmethod
    def full(cls) -> Filter:
        """A filter that accepts every task."""
        return cls(states=list(TaskState), due=list(Due))
