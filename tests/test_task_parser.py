"""
Tests for parsers/task_parser.py and parsers/indent.py.

Covers:
- parse_content: task counts, offsets (ASCII and Cyrillic), descriptions
- parse_line: every inline field
- extract_tags
"""

import sys
from pathlib import Path

# Add src to path so imports work without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from vault_tasks.models import Priority, TaskState
from vault_tasks.parsers import indent
from vault_tasks.parsers.task_parser import extract_tags, parse_content, parse_line


# ---------------------------------------------------------------------------
# indent
# ---------------------------------------------------------------------------

class TestIndent:
    def test_exists(self):
        assert indent.exists("  text")
        assert indent.exists("\ttext")
        assert not indent.exists("text")
        assert not indent.exists("")

    def test_trim(self):
        assert indent.trim(" \t  text  ") == "text  "
        assert indent.trim("text") == "text"

    def test_leading(self):
        assert indent.leading("  \t- [ ] x") == "  \t"
        assert indent.leading("- [ ] x") == ""


# ---------------------------------------------------------------------------
# parse_content
# ---------------------------------------------------------------------------

SEVERAL_TASKS = (
    "some text\n"
    "- [ ] Correct task\n"
    "     - [ ] Correct task\n"
    "\t- [ ] Correct task\n"
    "- [x] Correct task\n"
    "- [/] Correct task\n"
    "-- [ ] Wrong task\n"
    "- [] Wrong task\n"
    "- [aa] Wrong task\n"
    "- [ ]\n"
    "-[ ] Wrong task\n"
    "some another text\n"
)


class TestParseContentCounts:
    @pytest.mark.parametrize(
        "content,count",
        [
            ("", 0),
            ("some text", 0),
            ("- [ ] Some text", 1),
            ("some text\n- [ ] Some text\nsome another text\n", 1),
            ("какой-то текст\n- [ ] Текст задачи\nдлинный текст в конце\n", 1),
            (SEVERAL_TASKS, 5),
        ],
    )
    def test_count(self, content, count):
        assert len(parse_content(content)) == count

    def test_states(self):
        tasks = parse_content(SEVERAL_TASKS)
        kinds = [t.state.kind for t in tasks]
        assert kinds == [
            TaskState.UNCOMPLETED,
            TaskState.UNCOMPLETED,
            TaskState.UNCOMPLETED,
            TaskState.COMPLETED,
            TaskState.IN_PROGRESS,
        ]

    def test_unknown_state_kept_verbatim(self):
        tasks = parse_content("- [?] Maybe")
        assert tasks[0].state.kind is TaskState.UNKNOWN
        assert tasks[0].state.char == "?"

    def test_file_path_stored(self):
        tasks = parse_content("- [ ] A", Path("/vault/note.md"))
        assert tasks[0].file_path == Path("/vault/note.md")


class TestOffsets:
    def test_english(self):
        tasks = parse_content("Some text\n- [ ] Task\nSome another text")
        assert len(tasks) == 1
        assert tasks[0].start_pos == 10
        assert tasks[0].end_pos == 20

    def test_cyrillic_counts_code_points(self):
        tasks = parse_content("Какой-то текст\n- [ ] Задача\nКакой-то другой текст")
        assert len(tasks) == 1
        assert tasks[0].start_pos == 15
        assert tasks[0].end_pos == 27

    def test_offsets_slice_the_header(self):
        content = "intro\n  - [ ] Nested 📅 2025-01-01\nend"
        task = parse_content(content)[0]
        assert content[task.start_pos : task.end_pos] == "  - [ ] Nested 📅 2025-01-01"


class TestDescriptions:
    def test_indented_lines_become_description(self):
        content = "- [ ] Task\n    line one\n\tline two\nprose"
        task = parse_content(content)[0]
        assert task.description is not None
        assert task.description.text == "line one\nline two"
        assert task.description.start == 11
        assert task.description.end == 33
        assert content[task.description.start : task.description.end] == "    line one\n\tline two"

    def test_description_ends_at_unindented_line(self):
        tasks = parse_content("- [ ] A\n  detail\nprose\n  not a description")
        assert len(tasks) == 1
        assert tasks[0].description.text == "detail"

    def test_next_task_ends_description(self):
        tasks = parse_content("- [ ] A\n  detail\n- [ ] B\n  other")
        assert [t.name for t in tasks] == ["A", "B"]
        assert tasks[0].description.text == "detail"
        assert tasks[1].description.text == "other"

    def test_indented_task_is_not_description(self):
        tasks = parse_content("- [ ] Parent\n    - [ ] Child")
        assert len(tasks) == 2
        assert tasks[0].description is None

    def test_blank_line_ends_description(self):
        tasks = parse_content("- [ ] A\n  detail\n\n  orphan")
        assert tasks[0].description.text == "detail"

    def test_no_description(self):
        assert parse_content("- [ ] A\nprose")[0].description is None


# ---------------------------------------------------------------------------
# parse_line
# ---------------------------------------------------------------------------

class TestParseLine:
    def test_all_fields(self):
        task = parse_line("- [x] Some text ⏫ 📅 2025-01-01 ✅ 2025-01-01", 0)
        assert task is not None
        assert task.name == "Some text"
        assert task.state.kind is TaskState.COMPLETED
        assert task.priority is Priority.HIGH
        assert task.due.strftime("%Y-%m-%d") == "2025-01-01"
        assert task.completed_at.strftime("%Y-%m-%d") == "2025-01-01"

    def test_not_a_task(self):
        assert parse_line("just text", 0) is None
        assert parse_line("- [ ]", 0) is None
        assert parse_line("-[ ] nope", 0) is None

    def test_offsets(self):
        task = parse_line("- [ ] Task", 42)
        assert task.start_pos == 42
        assert task.end_pos == 52

    def test_invalid_date_stays_in_name(self):
        task = parse_line("- [ ] Task 📅 2025-13-45", 0)
        assert task.due is None
        assert task.name == "Task 📅 2025-13-45"

    def test_tags_extracted(self):
        task = parse_line("- [ ] Buy milk #shop #errands/today", 0)
        assert task.tags == ["shop", "errands/today"]
        assert task.name == "Buy milk #shop #errands/today"


class TestExtractTags:
    def test_basic(self):
        assert extract_tags("text #one #two") == ["one", "two"]

    def test_unicode_tag(self):
        assert extract_tags("задача #работа") == ["работа"]

    def test_single_char_is_not_a_tag(self):
        assert extract_tags("text #a") == []

    def test_needs_leading_space(self):
        assert extract_tags("#start is not a tag") == []
        assert extract_tags("mid#word") == []
