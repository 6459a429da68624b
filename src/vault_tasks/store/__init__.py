from .client import SIMULTANEOUS_JOB_COUNT, VaultClient
from .md_file import MarkdownFile, delete_task_from_content, patch_task_in_content
from .rest import LocalRestClient

__all__ = [
    "SIMULTANEOUS_JOB_COUNT",
    "VaultClient",
    "MarkdownFile",
    "delete_task_from_content",
    "patch_task_in_content",
    "LocalRestClient",
]
