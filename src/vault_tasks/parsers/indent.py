"""
Leading-whitespace helpers.

Only space and tab count as indentation. A line that starts with either
is a continuation of the task above it.
"""

INDENT_CHARS = (" ", "\t")


def exists(line: str) -> bool:
    return line.startswith(INDENT_CHARS)


def trim(line: str) -> str:
    return line.lstrip("".join(INDENT_CHARS))


def leading(text: str) -> str:
    """Return the run of indent characters at the start of text."""
    return text[: len(text) - len(trim(text))]
