"""
Patch models.

A TaskPatch carries one ValuePatch per editable field. ValuePatch keeps
"leave unchanged" (NOT_SET) distinct from "clear" (EMPTY); a plain
Optional cannot tell the two apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

from vault_tasks.models.task import Priority, Task, TaskState

T = TypeVar("T")


class PatchKind(str, Enum):
    NOT_SET = "not-set"
    EMPTY = "empty"
    VALUE = "value"


@dataclass(frozen=True)
class ValuePatch(Generic[T]):
    kind: PatchKind = PatchKind.NOT_SET
    value: Optional[T] = None

    @classmethod
    def not_set(cls) -> ValuePatch[T]:
        return cls()

    @classmethod
    def empty(cls) -> ValuePatch[T]:
        return cls(kind=PatchKind.EMPTY)

    @classmethod
    def of(cls, value: T) -> ValuePatch[T]:
        return cls(kind=PatchKind.VALUE, value=value)

    @classmethod
    def from_optional(cls, value: Optional[T]) -> ValuePatch[T]:
        """None means "leave unchanged"."""
        return cls() if value is None else cls.of(value)

    @property
    def is_set(self) -> bool:
        return self.kind is not PatchKind.NOT_SET

    @property
    def is_empty(self) -> bool:
        return self.kind is PatchKind.EMPTY

    @property
    def has_value(self) -> bool:
        return self.kind is PatchKind.VALUE


@dataclass
class TaskPatch:
    """
    Field-level edits for one task.

    task is None when the patch describes a task to create.
    """

    task: Optional[Task] = None
    name: ValuePatch[str] = field(default_factory=ValuePatch)
    description: ValuePatch[str] = field(default_factory=ValuePatch)
    state: ValuePatch[TaskState] = field(default_factory=ValuePatch)
    due: ValuePatch[datetime] = field(default_factory=ValuePatch)
    priority: ValuePatch[Priority] = field(default_factory=ValuePatch)

    def is_empty(self) -> bool:
        """True if no field is set."""
        return not any(
            p.is_set for p in (self.name, self.description, self.state, self.due, self.priority)
        )


@dataclass
class PatchError:
    """A failed patch (or delete) for one task in a batch."""

    task: Optional[Task]
    error: str
