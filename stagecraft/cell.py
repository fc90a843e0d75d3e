from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator

from stagecraft.errors import ExecutionError, LockError, StagecraftError
from stagecraft.utils import get_logger

logger = get_logger(__name__)


class _RWLock:
    """Readers share, a writer excludes everyone. Waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()


class StageCell:
    """Shared, lock-guarded container for exactly one stage.

    The same cell may sit in any number of pipelines; a mutation made through
    one holder is visible through all of them. ``read()`` and ``write()`` hold
    the lock only for the duration of the ``with`` block. A read view cannot be
    upgraded: calling ``write()`` while holding ``read()`` on the same cell
    deadlocks.

    If an exception escapes a ``write()`` block the cell is poisoned and every
    later access raises :class:`LockError`.
    """

    def __init__(self, stage: Any):
        self._stage = stage
        self._backend = stage.build()
        self._lock = _RWLock()
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    def _check_poison(self) -> None:
        if self._poisoned:
            raise LockError(f"cell holding {type(self._stage).__name__} is poisoned by an earlier failed write")

    @contextmanager
    def read(self) -> Iterator[Any]:
        self._lock.acquire_read()
        try:
            self._check_poison()
            yield self._stage
        finally:
            self._lock.release_read()

    @contextmanager
    def write(self) -> Iterator[Any]:
        self._lock.acquire_write()
        try:
            self._check_poison()
            try:
                yield self._stage
                # the backend mirrors the stage config; rebuild it before readers get back in
                self._backend = self._stage.build()
            except BaseException:
                self._poisoned = True
                logger.error("cell.poisoned: kind=%s", type(self._stage).__name__)
                raise
        finally:
            self._lock.release_write()

    def invoke(self, state: Any) -> None:
        """Run the stage's backend operation on ``state`` under a read view."""
        with self.read() as stage:
            try:
                stage.apply(self._backend, state)
            except StagecraftError:
                raise
            except Exception as e:
                kind = type(stage).__name__
                logger.warning("cell.invoke failed: kind=%s error=%s", kind, e)
                raise ExecutionError(f"{kind} failed: {e}", stage=kind) from e

    def snapshot(self) -> Any:
        with self.read() as stage:
            return stage.model_copy(deep=True)

    def __repr__(self) -> str:
        state = " poisoned" if self._poisoned else ""
        return f"<StageCell {type(self._stage).__name__}{state}>"
