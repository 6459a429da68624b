"""
Vault filesystem helpers: markdown walk, file lookup, deep links.
"""

import glob
import logging
from pathlib import Path
from typing import Iterable, List, Optional
from urllib.parse import quote

log = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"


def strip_root(root: Path, path: Path) -> str:
    """Return path relative to root in posix form, or "" if it is outside root."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return ""


def supported_files(root: Path, exclude_dirs: Iterable[str] = ()) -> List[Path]:
    """
    Recursively collect markdown files under root, depth first.

    An unreadable root raises OSError; unreadable subdirectories are skipped.
    """
    excluded = set(exclude_dirs)
    result: List[Path] = []
    for entry in sorted(root.iterdir()):
        if entry.is_dir():
            if entry.name in excluded:
                continue
            try:
                result.extend(supported_files(entry, excluded))
            except OSError as e:
                log.warning("Skipping unreadable directory %s: %s", entry, e)
        elif entry.is_file() and entry.suffix == MARKDOWN_SUFFIX:
            result.append(entry)
    return result


def find_file(root: Path, file_name: str) -> Optional[Path]:
    """
    Find a file anywhere under root by name.

    file_name may carry leading folders ("folder/note.md"); a match must end
    with all of them. Paths that lead outside root never match.
    """
    base = root.resolve()
    direct = root / file_name
    if direct.is_file():
        resolved = direct.resolve()
        if not resolved.is_relative_to(base):
            return None
        return root / resolved.relative_to(base)

    wanted = Path(file_name)
    suffix_parts = wanted.parts
    if ".." in suffix_parts or wanted.is_absolute():
        return None
    for candidate in sorted(root.rglob(glob.escape(wanted.name))):
        if candidate.is_file() and candidate.parts[-len(suffix_parts):] == suffix_parts:
            return candidate
    return None


def obsidian_url(vault_path: Path, file_path: Path) -> str:
    """
    Deep link that opens file_path in the vault.

    Returns "" when the vault has no usable directory name.
    """
    vault_name = vault_path.name or vault_path.resolve().name
    if not vault_name:
        return ""
    relative = strip_root(vault_path, file_path)
    return f"obsidian://open?vault={quote(vault_name, safe='')}&file={quote(relative, safe='')}"
