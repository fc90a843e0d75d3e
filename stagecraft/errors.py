"""Error taxonomy shared by both stage families.

Every error is raised synchronously to the immediate caller; nothing in this
package retries.
"""

from typing import Optional


class StagecraftError(Exception):
    pass


class ConstructionError(StagecraftError, ValueError):
    """Invalid parameters for a stage constructor or field setter."""


class ExecutionError(StagecraftError, RuntimeError):
    """A stage's backend operation failed while a pipeline was running.

    Stages that ran before the failing one keep their effect on the state.
    """

    def __init__(self, message: str, *, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class LockError(StagecraftError, RuntimeError):
    """The cell was poisoned by an exclusive access that terminated abnormally."""


class DecodeError(StagecraftError, ValueError):
    pass


class UnsupportedVariantError(StagecraftError, TypeError):
    """A stage kind is missing its signature, descriptor or boundary class."""
