"""
Project model: one markdown file in the vault.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from vault_tasks.utils.fs import strip_root


@dataclass
class Project:
    provider: str
    vault_path: Path
    file_path: Path

    @property
    def id(self) -> str:
        """Vault-relative path of the file."""
        return strip_root(self.vault_path, self.file_path)

    @property
    def name(self) -> str:
        return self.file_path.stem if self.file_path.suffix == ".md" else ""
