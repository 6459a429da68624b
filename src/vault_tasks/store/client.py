"""
Vault-wide task access: bounded concurrent scan and batched edits.

Main API:
    VaultClient(path, exclude_dirs).tasks(filter)   → List[Task]
    VaultClient.patch_tasks(patches)               → List[PatchError]
    VaultClient.delete_task(task)
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from vault_tasks.errors import VaultTasksError
from vault_tasks.models.filter import Filter
from vault_tasks.models.patch import PatchError, TaskPatch
from vault_tasks.models.task import Task
from vault_tasks.store.md_file import MarkdownFile
from vault_tasks.utils.fs import supported_files

log = logging.getLogger(__name__)

# Files opened and parsed at the same time during a scan
SIMULTANEOUS_JOB_COUNT = 10


class VaultClient:
    def __init__(self, vault_path: Path, exclude_dirs: Iterable[str] = ()) -> None:
        self._vault_path = vault_path
        self._exclude_dirs = set(exclude_dirs)

    @property
    def root_path(self) -> Path:
        return self._vault_path

    def all_supported_files(self) -> List[Path]:
        return supported_files(self._vault_path, self._exclude_dirs)

    # -------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------

    async def tasks(self, task_filter: Optional[Filter] = None) -> List[Task]:
        """
        Parse every markdown file in the vault and return matching tasks.

        Order within a file is file order; order between files is not
        defined. Unreadable files are skipped.
        """
        task_filter = task_filter or Filter.full()
        files = self.all_supported_files()
        semaphore = asyncio.Semaphore(SIMULTANEOUS_JOB_COUNT)

        results = await asyncio.gather(
            *(self._load_file(path, semaphore, task_filter) for path in files)
        )

        tasks = [task for file_tasks in results for task in file_tasks]
        log.info("Loaded %d tasks from %d files in %s", len(tasks), len(files), self._vault_path)
        return tasks

    async def _load_file(
        self, path: Path, semaphore: asyncio.Semaphore, task_filter: Filter
    ) -> List[Task]:
        async with semaphore:
            md_file = MarkdownFile(path)
            try:
                await md_file.open()
            except (OSError, UnicodeDecodeError) as e:
                log.warning("Skipping unreadable file %s: %s", path, e)
                return []
            file_tasks = md_file.tasks()

        log.debug("Parsed %d tasks from %s", len(file_tasks), path)
        result = []
        for task in file_tasks:
            task.set_vault_path(self._vault_path)
            if task_filter.accept(task):
                result.append(task)
        return result

    # -------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------

    async def patch_tasks(self, patches: Iterable[TaskPatch]) -> List[PatchError]:
        """
        Apply patches, opening and writing each file once.

        Within a file, patches run in descending start_pos so that edits
        never shift the offsets of tasks still waiting to be patched.
        Returns one PatchError per patch that did not apply.
        """
        by_file: Dict[Path, List[TaskPatch]] = {}
        for patch in patches:
            by_file.setdefault(patch.task.file_path, []).append(patch)

        errors: List[PatchError] = []
        for file_path, file_patches in by_file.items():
            errors.extend(await self._patch_file(file_path, file_patches))
        return errors

    async def _patch_file(self, file_path: Path, patches: List[TaskPatch]) -> List[PatchError]:
        md_file = MarkdownFile(file_path)
        try:
            await md_file.open()
        except (OSError, UnicodeDecodeError) as e:
            log.warning("Can't open %s for patching: %s", file_path, e)
            return [PatchError(task=p.task, error=str(e)) for p in patches]

        original = md_file.content
        errors: List[PatchError] = []
        applied: List[TaskPatch] = []
        for patch in sorted(patches, key=lambda p: p.task.start_pos, reverse=True):
            try:
                md_file.patch_task(patch)
            except VaultTasksError as e:
                log.warning("Failed to patch %s: %s", patch.task.place or file_path, e)
                errors.append(PatchError(task=patch.task, error=str(e)))
            else:
                applied.append(patch)

        if md_file.content == original:
            return errors

        try:
            await md_file.flush()
        except OSError as e:
            log.warning("Can't write %s: %s", file_path, e)
            errors.extend(PatchError(task=p.task, error=str(e)) for p in applied)
        return errors

    async def delete_task(self, task: Task) -> None:
        """Remove a task and its description from its file."""
        md_file = MarkdownFile(task.file_path)
        await md_file.open()
        md_file.delete_task(task)
        await md_file.flush()
