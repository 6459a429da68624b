"""
Task provider contract and its Obsidian vault implementation.

The MCP tools and the REST API only talk to a TaskProvider; the vault
scanning, patching and daily-note plumbing stay behind it.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from vault_tasks.errors import InvalidPatchError, WrongProviderError
from vault_tasks.models.filter import Filter
from vault_tasks.models.patch import PatchError, TaskPatch
from vault_tasks.models.project import Project
from vault_tasks.models.task import Description, Priority, State, Task, TaskState
from vault_tasks.parsers.metadata import render_task
from vault_tasks.store.client import VaultClient
from vault_tasks.store.rest import LocalRestClient
from vault_tasks.utils.dates import midnight

log = logging.getLogger(__name__)

PROVIDER_NAME = "Obsidian"

DAILY_NOTE_FILE = "daily.md"


@dataclass
class Capabilities:
    create_task: bool = False


class TaskProvider(ABC):
    """A source of tasks that can list, create, update and delete them."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def type_name(self) -> str: ...

    @abstractmethod
    def capabilities(self) -> Capabilities: ...

    @abstractmethod
    async def list_projects(self) -> List[Project]: ...

    @abstractmethod
    async def list(
        self, project: Optional[Project] = None, task_filter: Optional[Filter] = None
    ) -> List[Task]: ...

    @abstractmethod
    async def create(self, project_id: str, patch: TaskPatch) -> None: ...

    @abstractmethod
    async def update(self, patches: Iterable[TaskPatch]) -> List[PatchError]: ...

    @abstractmethod
    async def delete(self, task: Task) -> None: ...

    async def reload(self) -> None:
        """Drop any provider-side state. Nothing is cached by default."""


class ObsidianProvider(TaskProvider):
    def __init__(
        self,
        name: str,
        vault_path: Path,
        exclude_dirs: Iterable[str] = (),
        rest: Optional[LocalRestClient] = None,
    ) -> None:
        self._name = name
        self._client = VaultClient(vault_path, exclude_dirs)
        self._rest = rest or LocalRestClient(vault_path)

    @property
    def name(self) -> str:
        return self._name

    @property
    def type_name(self) -> str:
        return PROVIDER_NAME

    @property
    def vault_path(self) -> Path:
        return self._client.root_path

    def capabilities(self) -> Capabilities:
        return Capabilities(create_task=self._rest.is_available())

    async def list_projects(self) -> List[Project]:
        return [
            Project(
                provider=self._name,
                vault_path=self.vault_path,
                file_path=self.vault_path / DAILY_NOTE_FILE,
            )
        ]

    async def list(
        self, project: Optional[Project] = None, task_filter: Optional[Filter] = None
    ) -> List[Task]:
        tasks = await self._client.tasks(task_filter)
        if project is not None:
            tasks = [t for t in tasks if t.file_path == project.file_path]
        for task in tasks:
            task.provider = self._name
        return tasks

    async def create(self, project_id: str, patch: TaskPatch) -> None:
        """
        Append a new uncompleted task to today's daily note.

        project_id is accepted for the contract; the daily note is always
        the target.
        """
        if not patch.name.has_value or not patch.name.value.strip():
            raise InvalidPatchError("A new task needs a name")

        description = patch.description.value if patch.description.has_value else None
        task = Task(
            state=State.from_kind(TaskState.UNCOMPLETED),
            name=patch.name.value.strip(),
            description=Description.from_text(description) if description else None,
            due=midnight(patch.due.value.date()) if patch.due.has_value else None,
            priority=patch.priority.value if patch.priority.has_value else Priority.NORMAL,
        )
        await self._rest.add_text_to_daily_note(render_task(task))
        log.info("Created task %r in the daily note of %s", task.name, self._name)

    async def update(self, patches: Iterable[TaskPatch]) -> List[PatchError]:
        errors: List[PatchError] = []
        own: List[TaskPatch] = []
        for patch in patches:
            if patch.task is None:
                log.warning("Skipping update patch with no target task")
                errors.append(PatchError(task=None, error="Update patch has no target task"))
                continue
            if not self._owns(patch.task):
                errors.append(PatchError(task=patch.task, error=str(self._wrong_provider(patch.task))))
                continue
            own.append(patch)

        errors.extend(await self._client.patch_tasks(own))
        return errors

    async def delete(self, task: Task) -> None:
        if not self._owns(task):
            raise self._wrong_provider(task)
        try:
            await self._client.delete_task(task)
        except Exception as e:
            log.error("Failed to delete task %s: %s", task.place, e)
            raise
        log.info("Deleted task %s", task.place)

    def _owns(self, task: Task) -> bool:
        return task.provider in ("", self._name) and task.vault_path in (None, self.vault_path)

    def _wrong_provider(self, task: Task) -> WrongProviderError:
        return WrongProviderError(
            f"Task '{task.name}' belongs to provider '{task.provider}', not '{self._name}'"
        )
