"""
Line/block parser for markdown task lists.

Main API:
    parse_content(content, file_path)  → List[Task]
    parse_line(line, pos, file_path)   → Optional[Task]

A task is one "- [c] text" header line plus any directly following lines
that start with a space or tab (its description). Every other line is
prose and is never touched. Offsets are code-point positions into the
content, which is split on "\\n" only.
"""

import re
from pathlib import Path
from typing import List, Optional

from vault_tasks.models.task import Description, State, Task
from vault_tasks.parsers import indent
from vault_tasks.parsers.metadata import extract_metadata

TASK_RE = re.compile(r"^\s*- \[(.)\] (.*)$")

# " #tag": unicode word chars, non-ASCII, "-", "_", "/"; at least two chars
TAG_RE = re.compile(r"( #((?:[^\x00-\x7F]|\w)(?:[^\x00-\x7F]|\w|-|_|/)+))")

_LINE_SEPARATOR = "\n"


def extract_tags(text: str) -> List[str]:
    return [m.group(2) for m in TAG_RE.finditer(text)]


def parse_line(line: str, pos: int, file_path: Optional[Path] = None) -> Optional[Task]:
    """Return a Task for a header line starting at offset pos, or None."""
    m = TASK_RE.match(line)
    if not m:
        return None

    text, due, completed_at, priority = extract_metadata(m.group(2))
    return Task(
        file_path=file_path or Path(""),
        start_pos=pos,
        end_pos=pos + len(line),
        state=State(m.group(1)),
        name=text.strip(),
        due=due,
        completed_at=completed_at,
        priority=priority,
        tags=extract_tags(text),
    )


def _append_description(description: Optional[Description], line: str, pos: int) -> Description:
    """Extend a description block with one continuation line at offset pos."""
    if description is None:
        description = Description(text="", start=pos, end=pos)

    text = indent.trim(line)
    if description.end == description.start:
        return Description(text=text, start=description.start, end=description.end + len(line))
    return Description(
        text=f"{description.text}{_LINE_SEPARATOR}{text}",
        start=description.start,
        end=description.end + len(_LINE_SEPARATOR) + len(line),
    )


def description_from_content(content: str, start: int, end: int) -> Description:
    """Rebuild a description from its known span in content."""
    text = _LINE_SEPARATOR.join(
        indent.trim(line) for line in content[start:end].split(_LINE_SEPARATOR)
    )
    return Description(text=text, start=start, end=end)


def parse_content(content: str, file_path: Optional[Path] = None) -> List[Task]:
    """
    Parse markdown content into its tasks, in file order.

    Args:
        content: Full file content as a string
        file_path: Source path (stored on every task)

    Returns:
        List of Task records with offsets into content
    """
    tasks: List[Task] = []
    current: Optional[Task] = None
    pos = 0

    for line in content.split(_LINE_SEPARATOR):
        task = parse_line(line, pos, file_path)
        if task is not None:
            if current is not None:
                tasks.append(current)
            current = task
        elif current is not None:
            if indent.exists(line):
                current.description = _append_description(current.description, line, pos)
            else:
                tasks.append(current)
                current = None

        pos += len(line) + len(_LINE_SEPARATOR)

    if current is not None:
        tasks.append(current)

    return tasks
