"""
Tests for store/client.py.

Uses a temporary vault on disk; exercises the concurrent loader and the
batched patch/delete paths end to end.
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from vault_tasks.errors import ConflictError
from vault_tasks.models import Due, Filter, Priority, TaskPatch, TaskState, ValuePatch
from vault_tasks.store import client as client_module
from vault_tasks.store.client import SIMULTANEOUS_JOB_COUNT, VaultClient
from vault_tasks.store.md_file import MarkdownFile


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_vault(tmp_path: Path) -> Path:
    vault = tmp_path / "vault"
    vault.mkdir()

    today = datetime.now(timezone.utc).date()
    yesterday = (today - timedelta(days=1)).isoformat()
    tomorrow = (today + timedelta(days=1)).isoformat()

    (vault / "daily.md").write_text(
        "# Today\n"
        f"- [ ] Overdue thing 📅 {yesterday}\n"
        f"- [ ] Today thing 📅 {today.isoformat()}\n"
        f"- [/] Future thing 📅 {tomorrow}\n"
        "- [x] Done thing ✅ 2025-01-01\n",
        encoding="utf-8",
    )

    (vault / "projects").mkdir()
    (vault / "projects" / "home.md").write_text(
        "Chores\n- [ ] Fix sink\n    call plumber\n- [ ] Paint fence\n",
        encoding="utf-8",
    )
    (vault / "projects" / "notes.txt").write_text("- [ ] not markdown\n", encoding="utf-8")

    (vault / ".obsidian").mkdir()
    (vault / ".obsidian" / "hidden.md").write_text("- [ ] excluded\n", encoding="utf-8")

    return vault


@pytest.fixture
def vault(tmp_path):
    return _make_vault(tmp_path)


@pytest.fixture
def client(vault):
    return VaultClient(vault, exclude_dirs={".obsidian"})


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

class TestSupportedFiles:
    def test_only_markdown_outside_excluded(self, client, vault):
        files = client.all_supported_files()
        assert files == [vault / "daily.md", vault / "projects" / "home.md"]

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(OSError):
            VaultClient(tmp_path / "nope").all_supported_files()


class TestLoadTasks:
    @pytest.mark.asyncio
    async def test_all_tasks(self, client):
        tasks = await client.tasks()
        assert sorted(t.name for t in tasks) == [
            "Done thing",
            "Fix sink",
            "Future thing",
            "Overdue thing",
            "Paint fence",
            "Today thing",
        ]

    @pytest.mark.asyncio
    async def test_tasks_stamped_with_vault(self, client, vault):
        tasks = await client.tasks()
        assert all(t.vault_path == vault for t in tasks)
        sink = next(t for t in tasks if t.name == "Fix sink")
        assert sink.place == "projects/home.md:7"
        assert sink.description.text == "call plumber"
        assert sink.url == "obsidian://open?vault=vault&file=projects%2Fhome.md"

    @pytest.mark.asyncio
    async def test_state_filter(self, client):
        f = Filter(states=[TaskState.COMPLETED], due=list(Due))
        tasks = await client.tasks(f)
        assert [t.name for t in tasks] == ["Done thing"]

    @pytest.mark.asyncio
    async def test_due_filter(self, client):
        f = Filter(states=list(TaskState), due=[Due.OVERDUE, Due.TODAY])
        tasks = await client.tasks(f)
        assert sorted(t.name for t in tasks) == ["Overdue thing", "Today thing"]

    @pytest.mark.asyncio
    async def test_empty_filter_matches_nothing(self, client):
        assert await client.tasks(Filter()) == []

    @pytest.mark.asyncio
    async def test_undecodable_file_skipped(self, client, vault):
        (vault / "broken.md").write_bytes(b"- [ ] bad \xff\xfe bytes\n")
        tasks = await client.tasks()
        assert len(tasks) == 6

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, tmp_path, monkeypatch):
        vault = tmp_path / "big"
        vault.mkdir()
        for i in range(SIMULTANEOUS_JOB_COUNT * 3):
            (vault / f"note{i}.md").write_text(f"- [ ] Task {i}\n", encoding="utf-8")

        active = 0
        peak = 0
        real_open = MarkdownFile.open

        async def tracking_open(self):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            await real_open(self)
            active -= 1

        monkeypatch.setattr(client_module.MarkdownFile, "open", tracking_open)

        tasks = await VaultClient(vault).tasks()
        assert len(tasks) == SIMULTANEOUS_JOB_COUNT * 3
        assert 1 < peak <= SIMULTANEOUS_JOB_COUNT


# ---------------------------------------------------------------------------
# Patching
# ---------------------------------------------------------------------------

class TestPatchTasks:
    @pytest.mark.asyncio
    async def test_batch_in_one_file_keeps_offsets(self, client, vault):
        tasks = await client.tasks()
        home = sorted(
            (t for t in tasks if t.file_path.name == "home.md"), key=lambda t: t.start_pos
        )
        patches = [
            TaskPatch(task=home[0], name=ValuePatch.of("Fix the kitchen sink properly")),
            TaskPatch(task=home[1], priority=ValuePatch.of(Priority.HIGH)),
        ]

        errors = await client.patch_tasks(patches)

        assert errors == []
        assert (vault / "projects" / "home.md").read_text(encoding="utf-8") == (
            "Chores\n"
            "- [ ] Fix the kitchen sink properly\n"
            "    call plumber\n"
            "- [ ] Paint fence ⏫\n"
        )

    @pytest.mark.asyncio
    async def test_patches_across_files(self, client, vault):
        tasks = await client.tasks()
        done = next(t for t in tasks if t.name == "Done thing")
        fence = next(t for t in tasks if t.name == "Paint fence")

        errors = await client.patch_tasks(
            [
                TaskPatch(task=done, state=ValuePatch.of(TaskState.UNCOMPLETED)),
                TaskPatch(task=fence, state=ValuePatch.of(TaskState.IN_PROGRESS)),
            ]
        )

        assert errors == []
        assert "- [ ] Done thing\n" in (vault / "daily.md").read_text(encoding="utf-8")
        assert "- [/] Paint fence\n" in (vault / "projects" / "home.md").read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_conflict_reported_others_applied(self, client, vault):
        tasks = await client.tasks()
        sink = next(t for t in tasks if t.name == "Fix sink")
        fence = next(t for t in tasks if t.name == "Paint fence")

        path = vault / "projects" / "home.md"
        path.write_text(path.read_text(encoding="utf-8").replace("Fix sink", "Fix tank"), encoding="utf-8")

        errors = await client.patch_tasks(
            [
                TaskPatch(task=sink, name=ValuePatch.of("Mine")),
                TaskPatch(task=fence, name=ValuePatch.of("Paint gate")),
            ]
        )

        assert len(errors) == 1
        assert errors[0].task is sink
        assert errors[0].error == "Task has been changed since last loading"
        content = path.read_text(encoding="utf-8")
        assert "- [ ] Fix tank\n" in content
        assert "- [ ] Paint gate\n" in content

    @pytest.mark.asyncio
    async def test_missing_file_reports_every_patch(self, client, vault):
        tasks = await client.tasks()
        home = [t for t in tasks if t.file_path.name == "home.md"]
        (vault / "projects" / "home.md").unlink()

        errors = await client.patch_tasks([TaskPatch(task=t, name=ValuePatch.of("x")) for t in home])

        assert len(errors) == 2

    @pytest.mark.asyncio
    async def test_unchanged_file_not_rewritten(self, client, vault):
        path = vault / "daily.md"
        tasks = await client.tasks()
        before = path.stat().st_mtime_ns

        errors = await client.patch_tasks(
            [TaskPatch(task=t) for t in tasks if t.file_path == path]
        )

        assert errors == []
        assert path.stat().st_mtime_ns == before


# ---------------------------------------------------------------------------
# Deleting
# ---------------------------------------------------------------------------

class TestDeleteTask:
    @pytest.mark.asyncio
    async def test_delete_with_description(self, client, vault):
        tasks = await client.tasks()
        sink = next(t for t in tasks if t.name == "Fix sink")

        await client.delete_task(sink)

        assert (vault / "projects" / "home.md").read_text(encoding="utf-8") == (
            "Chores\n- [ ] Paint fence\n"
        )

    @pytest.mark.asyncio
    async def test_delete_conflict_raises(self, client, vault):
        tasks = await client.tasks()
        sink = next(t for t in tasks if t.name == "Fix sink")
        path = vault / "projects" / "home.md"
        path.write_text("Chores\n- [x] Fix sink\n", encoding="utf-8")

        with pytest.raises(ConflictError):
            await client.delete_task(sink)

        assert path.read_text(encoding="utf-8") == "Chores\n- [x] Fix sink\n"
