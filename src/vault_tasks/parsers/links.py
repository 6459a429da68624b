"""
Display-only rewriting of task text: tag removal and link resolution.

Nothing here is ever written back to a file. Wiki links ([[note]],
[[note|label]], [[note#heading|label]]) and regular links to markdown files
([label](note.md)) are rewritten into obsidian:// deep links when the
target exists in the vault, and left exactly as they were otherwise.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
from urllib.parse import unquote

from vault_tasks.parsers.task_parser import TAG_RE
from vault_tasks.utils.fs import find_file, obsidian_url

REGULAR_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+\.md)\)")


@dataclass
class LinkSearchResult:
    """
    A link found in text.

    For wiki links end is the index of the closing "]"; for regular links it
    is one past the closing ")".
    """

    start: int
    end: int
    link: str
    display_text: str = ""


def strip_tags(text: str) -> str:
    return TAG_RE.sub("", text)


def find_wiki_links(text: str) -> List[LinkSearchResult]:
    """
    Scan text once for [[...]] links.

    "[[" always (re)starts a candidate, so for unmatched or nested brackets
    the innermost pair wins. A second "|" or a second "#" inside one
    candidate drops it.
    """
    result: List[LinkSearchResult] = []

    prev_char = ""
    start: Optional[int] = None
    heading_pos: Optional[int] = None
    display_pos: Optional[int] = None

    for pos, c in enumerate(text):
        if c == "[" and prev_char == "[":
            start = pos - 1
            heading_pos = display_pos = None
        elif c == "]" and prev_char == "]" and start is not None:
            separators = [p for p in (heading_pos, display_pos) if p is not None]
            link_end = min(separators) if separators else pos - 1
            display = text[display_pos + 1 : pos - 1] if display_pos is not None else ""
            result.append(
                LinkSearchResult(start=start, end=pos, link=text[start + 2 : link_end], display_text=display)
            )
            start = None
        elif c == "|" and start is not None:
            if display_pos is not None:
                start = None
            else:
                display_pos = pos
        elif c == "#" and start is not None:
            if heading_pos is not None:
                start = None
            else:
                heading_pos = pos

        prev_char = c

    return result


def find_regular_links(text: str) -> List[LinkSearchResult]:
    return [
        LinkSearchResult(start=m.start(), end=m.end(), link=m.group(2), display_text=m.group(1))
        for m in REGULAR_LINK_RE.finditer(text)
    ]


def resolve_wiki_links(text: str, vault_path: Path) -> str:
    result = text
    # Right to left so earlier offsets stay valid
    for link in reversed(find_wiki_links(text)):
        found = find_file(vault_path, unquote(f"{link.link}.md"))
        if found is None:
            continue
        display = link.display_text or link.link
        replacement = f"[{display}]({obsidian_url(vault_path, found)})"
        result = result[: link.start] + replacement + result[link.end + 1 :]
    return result


def resolve_regular_links(text: str, vault_path: Path) -> str:
    result = text
    for link in reversed(find_regular_links(text)):
        found = find_file(vault_path, unquote(link.link))
        if found is None:
            continue
        replacement = f"[{link.display_text}]({obsidian_url(vault_path, found)})"
        result = result[: link.start] + replacement + result[link.end :]
    return result


def render_display(text: str, vault_path: Optional[Path] = None) -> str:
    """Strip tags, then resolve regular and wiki links against the vault."""
    text = strip_tags(text)
    if vault_path is None:
        return text
    text = resolve_regular_links(text, vault_path)
    return resolve_wiki_links(text, vault_path)
