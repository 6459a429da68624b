"""
Inline task metadata: emoji-coded dates and priority glyphs.

Obsidian Tasks plugin compatible. This module is the single source of truth
for how a task line is rendered back to markdown; extraction and rendering
are inverses for anything render_task produces.

Canonical task line:
    - [<state>] <name>[ 📅 <due>][ <priority glyph>][ ✅ <completed>]
followed by one "<indent>    <line>" per description line.
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from vault_tasks.models.task import Priority, Task
from vault_tasks.utils.dates import format_date, parse_iso_date

DUE_EMOJI = "📅"
COMPLETED_EMOJI = "✅"

_DATE_LENGTH = len("0000-00-00")

# Normal priority has no glyph
PRIORITY_TO_GLYPH: Dict[Priority, str] = {
    Priority.LOWEST: "⏬",
    Priority.LOW: "🔽",
    Priority.MEDIUM: "🔼",
    Priority.HIGH: "⏫",
    Priority.HIGHEST: "🔺",
}

GLYPH_TO_PRIORITY: Dict[str, Priority] = {v: k for k, v in PRIORITY_TO_GLYPH.items()}

DESCRIPTION_INDENT = "    "


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def extract_date_after_emoji(text: str, emoji: str) -> Tuple[str, Optional[datetime]]:
    """
    Remove the last " <emoji> YYYY-MM-DD" from text and return its date.

    A missing marker, a truncated date or an invalid date leaves text
    untouched and yields None.
    """
    marker = f" {emoji} "
    idx = text.rfind(marker)
    if idx == -1:
        return text, None

    date_start = idx + len(marker)
    date_end = date_start + _DATE_LENGTH
    if date_end > len(text):
        return text, None

    parsed = parse_iso_date(text[date_start:date_end])
    if parsed is None:
        return text, None

    return text[:idx] + text[date_end:], parsed


def extract_priority(text: str) -> Tuple[str, Priority]:
    """
    Remove the winning priority glyph from text and return its priority.

    Only the first occurrence of each glyph is considered, and it counts
    only when preceded by a space and followed by a space or the end of the
    text. The right-most counting glyph wins; it is removed together with
    the space before it.
    """
    candidates: List[Tuple[int, Priority]] = []
    for glyph, priority in GLYPH_TO_PRIORITY.items():
        idx = text.find(glyph)
        if idx <= 0 or text[idx - 1] != " ":
            continue
        if idx + 1 < len(text) and text[idx + 1] != " ":
            continue
        candidates.append((idx, priority))

    if not candidates:
        return text, Priority.NORMAL

    idx, priority = max(candidates, key=lambda c: c[0])
    return text[: idx - 1] + text[idx + 1 :], priority


def extract_metadata(
    text: str,
) -> Tuple[str, Optional[datetime], Optional[datetime], Priority]:
    """
    Strip due date, completion date and priority from a task's text.

    Returns:
        (remaining_text, due, completed_at, priority)
    """
    text, due = extract_date_after_emoji(text, DUE_EMOJI)
    text, completed_at = extract_date_after_emoji(text, COMPLETED_EMOJI)
    text, priority = extract_priority(text)
    return text, due, completed_at, priority


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render_task(task: Task, indent: str = "") -> str:
    """
    Render a task in canonical form.

    The header line carries no indentation of its own; indent is applied to
    description lines only (plus DESCRIPTION_INDENT), so callers prefix the
    header with the indent they want.
    """
    elements = [f"- [{task.state.char}]", task.name]
    if task.due is not None:
        elements.append(f"{DUE_EMOJI} {format_date(task.due)}")
    glyph = PRIORITY_TO_GLYPH.get(task.priority)
    if glyph:
        elements.append(glyph)
    if task.completed_at is not None:
        elements.append(f"{COMPLETED_EMOJI} {format_date(task.completed_at)}")

    rendered = " ".join(elements)
    if task.description is not None:
        for line in task.description.text.split("\n"):
            rendered += f"\n{indent}{DESCRIPTION_INDENT}{line}"
    return rendered
