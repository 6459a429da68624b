"""
Core task data models.

A Task is rebuilt from the markdown file on every read and is never cached
across an edit. Its offsets point into the file text as it was when the
task was parsed; the patch engine relies on them (and on field equality)
to detect that the file changed underneath the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from vault_tasks.models.project import Project
from vault_tasks.utils.fs import obsidian_url, strip_root
from vault_tasks.utils.ids import task_id


class TaskState(str, Enum):
    UNCOMPLETED = "uncompleted"
    COMPLETED = "completed"
    IN_PROGRESS = "in-progress"
    UNKNOWN = "unknown"


# Checkbox char → state category
_CHECKBOX_STATE: Dict[str, TaskState] = {
    " ": TaskState.UNCOMPLETED,
    "x": TaskState.COMPLETED,
    "/": TaskState.IN_PROGRESS,
}

_STATE_CHECKBOX: Dict[TaskState, str] = {v: k for k, v in _CHECKBOX_STATE.items()}


@dataclass(frozen=True)
class State:
    """
    The character inside a task's checkbox.

    Unknown characters are kept verbatim so the line re-renders exactly.
    """

    char: str = " "

    @classmethod
    def from_kind(cls, kind: TaskState) -> State:
        if kind not in _STATE_CHECKBOX:
            raise ValueError(f"State '{kind.value}' has no checkbox character")
        return cls(_STATE_CHECKBOX[kind])

    @property
    def kind(self) -> TaskState:
        return _CHECKBOX_STATE.get(self.char, TaskState.UNKNOWN)

    def __str__(self) -> str:
        return self.char


class Priority(str, Enum):
    LOWEST = "lowest"
    LOW = "low"
    NORMAL = "normal"
    MEDIUM = "medium"
    HIGH = "high"
    HIGHEST = "highest"


@dataclass
class Description:
    """
    De-indented continuation lines of a task.

    start/end are the offsets of the block in the file: from the first
    continuation line through the end of the last one (line break excluded).
    """

    text: str
    start: int = 0
    end: int = 0

    @classmethod
    def from_text(cls, text: str) -> Description:
        """Build a description that does not (yet) live in a file."""
        return cls(text=text, start=0, end=len(text))


@dataclass(eq=False)
class Task:
    """
    A single task parsed from a markdown file.

    Equality compares offsets and parsed fields only; file_path, completed_at
    and the stamped vault/provider are not part of it.
    """

    file_path: Path = field(default_factory=Path)
    start_pos: int = 0
    end_pos: int = 0
    state: State = field(default_factory=State)
    name: str = ""
    description: Optional[Description] = None
    due: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    priority: Priority = Priority.NORMAL
    tags: List[str] = field(default_factory=list)
    vault_path: Optional[Path] = None
    provider: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return (
            self.start_pos == other.start_pos
            and self.end_pos == other.end_pos
            and self.state == other.state
            and self.name == other.name
            and self.description == other.description
            and self.due == other.due
            and self.priority == other.priority
            and self.tags == other.tags
        )

    @property
    def id(self) -> str:
        """Hash identifying the task for the lifetime of one read."""
        return task_id(self.file_path, self.start_pos, self.end_pos, self.state.char, self.name)

    @property
    def display_name(self) -> str:
        """Name with tags stripped and links rewritten to vault deep links."""
        from vault_tasks.parsers.links import render_display

        return render_display(self.name, self.vault_path)

    @property
    def place(self) -> str:
        """Vault-relative location in 'path:offset' format."""
        root = self.vault_path or Path("")
        return f"{strip_root(root, self.file_path)}:{self.start_pos}"

    @property
    def url(self) -> str:
        if self.vault_path is None:
            return ""
        return obsidian_url(self.vault_path, self.file_path)

    @property
    def project(self) -> Optional[Project]:
        if self.vault_path is None:
            return None
        return Project(provider=self.provider, vault_path=self.vault_path, file_path=self.file_path)

    def set_vault_path(self, vault_path: Path) -> None:
        self.vault_path = vault_path
