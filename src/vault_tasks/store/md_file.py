"""
One markdown file as a mutable task store.

Main API:
    MarkdownFile(path).open() / .flush()       async read / write-back
    patch_task_in_content(patch, content)     → new content
    delete_task_from_content(task, content)   → new content

Every edit first re-parses the target task from the current content at the
snapshot's offsets and compares it with the snapshot (full field equality).
Only then is the task's span replaced; all other text is kept verbatim.
"""

import dataclasses
import logging
from pathlib import Path
from typing import List

import aiofiles

from vault_tasks.errors import ConflictError, InvalidPatchError, TaskDisappearedError
from vault_tasks.models.patch import TaskPatch
from vault_tasks.models.task import Description, Priority, State, Task, TaskState
from vault_tasks.parsers import indent
from vault_tasks.parsers.metadata import render_task
from vault_tasks.parsers.task_parser import description_from_content, parse_content, parse_line
from vault_tasks.utils.dates import midnight, utc_now

log = logging.getLogger(__name__)


class MarkdownFile:
    """
    In-memory buffer of one file.

    Edits are applied to content; nothing reaches the disk until flush().
    """

    def __init__(self, file_path: Path) -> None:
        self.file_path = file_path
        self.content = ""

    async def open(self) -> None:
        # newline="" keeps "\r\n" intact so offsets match the bytes on disk
        async with aiofiles.open(self.file_path, "r", encoding="utf-8", newline="") as f:
            self.content = await f.read()

    async def flush(self) -> None:
        async with aiofiles.open(self.file_path, "w", encoding="utf-8", newline="") as f:
            await f.write(self.content)

    def tasks(self) -> List[Task]:
        return parse_content(self.content, self.file_path)

    def patch_task(self, patch: TaskPatch) -> None:
        self.content = patch_task_in_content(patch, self.content)

    def delete_task(self, task: Task) -> None:
        self.content = delete_task_from_content(task, self.content)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def check_task_unchanged(task: Task, content: str) -> None:
    """
    Raise unless content still holds task exactly where it was parsed.

    Raises:
        TaskDisappearedError: the span no longer holds a task line
        ConflictError: the task line or its description differ
    """
    if task.end_pos > len(content):
        raise TaskDisappearedError()

    starts_line = task.start_pos == 0 or content[task.start_pos - 1 : task.start_pos] == "\n"
    ends_line = content[task.end_pos : task.end_pos + 1] in ("", "\n")
    if not starts_line or not ends_line:
        raise ConflictError()

    current = parse_line(content[task.start_pos : task.end_pos], task.start_pos, task.file_path)
    if current is None:
        raise TaskDisappearedError()

    if task.description is not None:
        d = task.description
        current.description = description_from_content(content, d.start, d.end)

    if current != task:
        raise ConflictError()


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------

def apply_patch(task: Task, patch: TaskPatch) -> Task:
    """Return a copy of task with the patch's fields applied."""
    new_task = dataclasses.replace(task, tags=list(task.tags))

    if patch.name.is_empty:
        raise InvalidPatchError("Task name can't be cleared")
    if patch.name.has_value:
        if "\n" in patch.name.value:
            raise InvalidPatchError("Task name must be a single line")
        new_task.name = patch.name.value

    if patch.description.is_set:
        text = patch.description.value
        new_task.description = Description.from_text(text) if text else None

    if patch.state.is_set:
        kind = patch.state.value if patch.state.has_value else TaskState.UNCOMPLETED
        if kind is TaskState.UNKNOWN:
            raise InvalidPatchError("Task state can't be set to unknown")
        new_task.state = State.from_kind(kind)
        if kind is TaskState.COMPLETED:
            already_done = task.state.kind is TaskState.COMPLETED
            new_task.completed_at = task.completed_at if already_done and task.completed_at else utc_now()
        else:
            new_task.completed_at = None

    if patch.priority.has_value:
        new_task.priority = patch.priority.value
    elif patch.priority.is_empty:
        new_task.priority = Priority.NORMAL

    if patch.due.is_set:
        new_task.due = midnight(patch.due.value.date()) if patch.due.has_value else None

    return new_task


def _span_end(task: Task) -> int:
    return task.description.end if task.description is not None else task.end_pos


def patch_task_in_content(patch: TaskPatch, content: str) -> str:
    """
    Re-render the patched task in place of its current span.

    A patch that sets no field returns content unchanged.
    """
    task = patch.task
    if task is None:
        raise InvalidPatchError("Patch has no target task")

    check_task_unchanged(task, content)
    if patch.is_empty():
        return content

    new_task = apply_patch(task, patch)
    task_indent = indent.leading(content[task.start_pos : task.end_pos])
    return (
        content[: task.start_pos]
        + task_indent
        + render_task(new_task, task_indent)
        + content[_span_end(task) :]
    )


def delete_task_from_content(task: Task, content: str) -> str:
    """Remove the task's header, description and trailing line break."""
    check_task_unchanged(task, content)
    return content[: task.start_pos] + content[_span_end(task) + 1 :]
