"""
Task ID generation utilities.
"""

import hashlib
from pathlib import Path


def task_id(file_path: Path, start_pos: int, end_pos: int, state: str, name: str) -> str:
    """
    Derive a task ID from its location and content.

    IDs are not persisted; any edit earlier in the same file shifts the
    offsets and therefore the ID of every later task.

    Returns:
        Lowercase sha256 hex digest
    """
    raw = f"{file_path}:{start_pos}:{end_pos}:{state}:{name}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
