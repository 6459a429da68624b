"""
Exception types raised by the task store and provider.

Batch operations never raise these for individual tasks; they are caught
and reported per task as PatchError entries instead.
"""


class VaultTasksError(Exception):
    """Base class for all vault-tasks errors."""


class ConflictError(VaultTasksError):
    """The task on disk no longer matches the snapshot the caller holds."""

    def __init__(self, message: str = "Task has been changed since last loading") -> None:
        super().__init__(message)


class TaskDisappearedError(ConflictError):
    """The task header line can no longer be parsed at its recorded offsets."""

    def __init__(self, message: str = "Task disappeared from the file since last loading") -> None:
        super().__init__(message)


class WrongProviderError(VaultTasksError):
    """A task was handed to a provider that did not produce it."""


class InvalidPatchError(VaultTasksError):
    """A patch cannot be applied to the task it targets."""


class RestError(VaultTasksError):
    """The Obsidian Local REST API is unavailable or a request failed."""
