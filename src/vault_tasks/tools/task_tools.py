"""
Task tool handlers.

Core logic lives in handle_* coroutines (return dicts).
MCP wrappers in register_task_tools() serialize to JSON strings.

Task ids are content hashes and change whenever a task is edited or moved;
handlers that edit return the task as re-read after the edit.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from vault_tasks.errors import VaultTasksError
from vault_tasks.models.filter import Due, Filter
from vault_tasks.models.patch import TaskPatch, ValuePatch
from vault_tasks.models.task import Priority, Task, TaskState
from vault_tasks.provider import TaskProvider
from vault_tasks.utils.dates import format_date, parse_date

log = logging.getLogger(__name__)

DEFAULT_STATES = "uncompleted,in-progress"


def _task_to_dict(task: Task) -> dict:
    """Serialize a Task to a JSON-serializable dict."""
    return {
        "id": task.id,
        "name": task.name,
        "display_name": task.display_name,
        "state": task.state.kind.value,
        "checkbox": task.state.char,
        "priority": task.priority.value,
        "due": format_date(task.due) if task.due else None,
        "completed_at": format_date(task.completed_at) if task.completed_at else None,
        "tags": list(task.tags),
        "description": task.description.text if task.description else None,
        "place": task.place,
        "url": task.url,
        "file_path": str(task.file_path),
        "provider": task.provider,
    }


def _split(raw: Optional[str]) -> List[str]:
    return [part.strip().lower() for part in (raw or "").split(",") if part.strip()]


def _build_filter(states: str, due: Optional[str]) -> Filter:
    """Comma-separated states and due buckets; omitted buckets mean all."""
    try:
        state_list = [TaskState(s) for s in _split(states)] or list(TaskState)
        due_list = [Due(d) for d in _split(due)] or list(Due)
    except ValueError as e:
        raise ValueError(f"Invalid filter: {e}") from e
    return Filter(states=state_list, due=due_list)


def _parse_due(due: str):
    parsed = parse_date(due)
    if parsed is None:
        raise ValueError(f"Unrecognized date: '{due}'")
    return parsed


def _parse_priority(priority: str) -> Priority:
    try:
        return Priority(priority.strip().lower())
    except ValueError:
        choices = ", ".join(p.value for p in Priority)
        raise ValueError(f"Unknown priority '{priority}' (expected one of: {choices})")


def _text_patch(value: Optional[str]) -> ValuePatch:
    """None leaves the field alone; "" clears it."""
    if value is None:
        return ValuePatch.not_set()
    if value == "":
        return ValuePatch.empty()
    return ValuePatch.of(value)


async def _find_task(provider: TaskProvider, task_id: str) -> Optional[Task]:
    for task in await provider.list(task_filter=Filter.full()):
        if task.id == task_id:
            return task
    return None


async def _find_task_at(provider: TaskProvider, file_path: Path, start_pos: int) -> Optional[Task]:
    for task in await provider.list(task_filter=Filter.full()):
        if task.file_path == file_path and task.start_pos == start_pos:
            return task
    return None


# ---------------------------------------------------------------------------
# Handler functions (return dicts, shared by MCP tools and REST API)
# ---------------------------------------------------------------------------


async def handle_task_list(
    provider: TaskProvider,
    *,
    states: str = DEFAULT_STATES,
    due: Optional[str] = None,
    file_path: Optional[str] = None,
    limit: int = 200,
) -> List[dict]:
    tasks = await provider.list(task_filter=_build_filter(states, due))
    if file_path:
        wanted = Path(file_path)
        tasks = [
            t for t in tasks
            if t.file_path == wanted or (t.vault_path and t.file_path == t.vault_path / wanted)
        ]
    tasks.sort(key=lambda t: (str(t.file_path), t.start_pos))
    return [_task_to_dict(t) for t in tasks[:limit]]


async def handle_task_get(provider: TaskProvider, *, task_id: str) -> dict:
    task = await _find_task(provider, task_id)
    if task is None:
        return {"error": f"Task '{task_id}' not found"}
    return _task_to_dict(task)


async def handle_task_add(
    provider: TaskProvider,
    *,
    name: str,
    description: Optional[str] = None,
    due: Optional[str] = None,
    priority: Optional[str] = None,
) -> dict:
    if not provider.capabilities().create_task:
        return {"error": "Task creation needs the Obsidian Local REST API plugin in the vault"}

    patch = TaskPatch(
        name=ValuePatch.of(name),
        description=ValuePatch.from_optional(description or None),
        due=ValuePatch.from_optional(_parse_due(due) if due else None),
        priority=ValuePatch.from_optional(_parse_priority(priority) if priority else None),
    )
    projects = await provider.list_projects()
    project = projects[0]
    await provider.create(project.id, patch)
    return {"created": name.strip(), "project": project.id}


async def handle_task_update(
    provider: TaskProvider,
    *,
    task_id: str,
    name: Optional[str] = None,
    description: Optional[str] = None,
    state: Optional[str] = None,
    due: Optional[str] = None,
    priority: Optional[str] = None,
) -> dict:
    task = await _find_task(provider, task_id)
    if task is None:
        return {"error": f"Task '{task_id}' not found"}

    if name == "":
        raise ValueError("Task name can't be cleared")

    patch = TaskPatch(task=task, name=_text_patch(name), description=_text_patch(description))
    if state is not None:
        new_state = TaskState(state.strip().lower()) if state else None
        if new_state is TaskState.UNKNOWN:
            raise ValueError("Task state can't be set to unknown")
        patch.state = ValuePatch.of(new_state) if new_state else ValuePatch.empty()
    if due is not None:
        patch.due = ValuePatch.of(_parse_due(due)) if due else ValuePatch.empty()
    if priority is not None:
        patch.priority = ValuePatch.of(_parse_priority(priority)) if priority else ValuePatch.empty()

    errors = await provider.update([patch])
    if errors:
        return {"error": errors[0].error, "conflict": True}

    updated = await _find_task_at(provider, task.file_path, task.start_pos)
    if updated is None:
        return {"error": f"Task '{task_id}' was updated but could not be re-read"}
    return _task_to_dict(updated)


async def handle_task_delete(provider: TaskProvider, *, task_id: str) -> dict:
    task = await _find_task(provider, task_id)
    if task is None:
        return {"error": f"Task '{task_id}' not found"}
    try:
        await provider.delete(task)
    except VaultTasksError as e:
        return {"error": str(e), "conflict": True}
    return {"deleted": task_id, "place": task.place}


async def handle_project_list(provider: TaskProvider) -> List[dict]:
    return [
        {
            "id": p.id,
            "name": p.name,
            "provider": p.provider,
            "file_path": str(p.file_path),
        }
        for p in await provider.list_projects()
    ]


async def handle_provider_status(provider: TaskProvider) -> dict:
    tasks = await provider.list(task_filter=Filter.full())
    by_state = {s.value: 0 for s in TaskState}
    for task in tasks:
        by_state[task.state.kind.value] += 1
    return {
        "name": provider.name,
        "type": provider.type_name,
        "capabilities": {"create_task": provider.capabilities().create_task},
        "task_count": len(tasks),
        "tasks_by_state": by_state,
        "file_count": len({t.file_path for t in tasks}),
    }


# ---------------------------------------------------------------------------
# MCP tool registration (thin wrappers)
# ---------------------------------------------------------------------------


def register_task_tools(mcp: FastMCP, provider: TaskProvider) -> None:
    """Register all task-related MCP tools onto the FastMCP instance."""

    @mcp.tool()
    async def task_list(
        states: str = DEFAULT_STATES,
        due: Optional[str] = None,
        file_path: Optional[str] = None,
        limit: int = 200,
    ) -> str:
        """
        List tasks from every markdown file in the vault.

        The vault is re-read on every call, so results always reflect the
        files on disk.

        Args:
            states: Comma-separated states to include. Default: "uncompleted,in-progress".
                    Known states: uncompleted, completed, in-progress, unknown.
            due: Comma-separated due buckets: overdue, today, future, no-date.
                 Omit to include all.
            file_path: Restrict to one file (absolute or vault-relative path)
            limit: Maximum number of results (default 200)

        Returns:
            JSON array of task objects
        """
        try:
            return json.dumps(
                await handle_task_list(
                    provider, states=states, due=due, file_path=file_path, limit=limit
                ),
                indent=2,
            )
        except Exception as e:
            return json.dumps({"error": str(e)})

    @mcp.tool()
    async def task_get(task_id: str) -> str:
        """
        Get a single task by ID.

        Args:
            task_id: Task ID as returned by task_list

        Returns:
            JSON task object, or error message
        """
        return json.dumps(await handle_task_get(provider, task_id=task_id), indent=2)

    @mcp.tool()
    async def task_add(
        name: str,
        description: Optional[str] = None,
        due: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> str:
        """
        Append a new task to today's daily note.

        Needs the Obsidian Local REST API plugin to be installed in the vault
        and Obsidian to be running.

        Args:
            name: Task text (may contain #tags and [[links]])
            description: Optional multi-line description
            due: Due date (ISO date or natural language: "Friday", "next Monday", etc.)
            priority: lowest, low, normal, medium, high or highest

        Returns:
            JSON confirmation or error message
        """
        try:
            return json.dumps(
                await handle_task_add(
                    provider, name=name, description=description, due=due, priority=priority
                ),
                indent=2,
            )
        except Exception as e:
            return json.dumps({"error": str(e)})

    @mcp.tool()
    async def task_update(
        task_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        state: Optional[str] = None,
        due: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> str:
        """
        Update a task in place.

        Only fields you pass will be changed. Pass an empty string to clear a
        field (a cleared state becomes "uncompleted", a cleared priority
        becomes "normal"; the name can't be cleared). The update is refused
        if the file changed since the task was listed.

        Args:
            task_id: The task ID to update
            name: New task text
            description: New description ("" removes it)
            state: "uncompleted", "completed" or "in-progress".
                   Setting "completed" stamps today's completion date.
            due: New due date (ISO date, natural language, or "" to clear)
            priority: New priority (or "" for normal)

        Returns:
            Updated task JSON (with its new ID) or error message
        """
        try:
            return json.dumps(
                await handle_task_update(
                    provider,
                    task_id=task_id,
                    name=name,
                    description=description,
                    state=state,
                    due=due,
                    priority=priority,
                ),
                indent=2,
            )
        except Exception as e:
            return json.dumps({"error": str(e)})

    @mcp.tool()
    async def task_delete(task_id: str) -> str:
        """
        Delete a task together with its description lines.

        Args:
            task_id: The task ID to delete

        Returns:
            JSON confirmation or error message
        """
        try:
            return json.dumps(await handle_task_delete(provider, task_id=task_id), indent=2)
        except Exception as e:
            return json.dumps({"error": str(e)})

    @mcp.tool()
    async def project_list() -> str:
        """
        List the projects new tasks can be added to.

        Returns:
            JSON array of project objects
        """
        return json.dumps(await handle_project_list(provider), indent=2)

    @mcp.tool()
    async def provider_status() -> str:
        """
        Show provider statistics.

        Returns:
            JSON with provider name, capabilities and task counts by state
        """
        return json.dumps(await handle_provider_status(provider), indent=2)
