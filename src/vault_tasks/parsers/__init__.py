from .task_parser import TASK_RE, TAG_RE, extract_tags, parse_content, parse_line
from .metadata import extract_metadata, render_task
from .links import find_regular_links, find_wiki_links, render_display, strip_tags

__all__ = [
    "TASK_RE",
    "TAG_RE",
    "extract_tags",
    "parse_content",
    "parse_line",
    "extract_metadata",
    "render_task",
    "find_regular_links",
    "find_wiki_links",
    "render_display",
    "strip_tags",
]
