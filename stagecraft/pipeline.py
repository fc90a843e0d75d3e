"""Pipeline shapes, composition and dispatch.

A pipeline is either ``Single(cell)`` or a flat ``Sequence(cells)``. Sequences
hold cells, never other pipelines, so flattening happens exactly once, when
the sequence is composed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple, Union

from stagecraft.cell import StageCell
from stagecraft.utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, eq=False)
class Single:
    cell: StageCell

    @property
    def cells(self) -> Tuple[StageCell, ...]:
        return (self.cell,)


@dataclass(frozen=True, eq=False)
class Sequence:
    cells: Tuple[StageCell, ...] = ()

    def __len__(self) -> int:
        return len(self.cells)


Pipeline = Union[Single, Sequence]


def compose(pipelines: Iterable[Pipeline]) -> Sequence:
    """Flatten ``pipelines`` one level into a new Sequence.

    Cells are shared, not copied: mutating a leaf through any handle is
    visible through the composed sequence as well.
    """
    cells: List[StageCell] = []
    count = 0
    for p in pipelines:
        count += 1
        if isinstance(p, Single):
            cells.append(p.cell)
        elif isinstance(p, Sequence):
            cells.extend(p.cells)
        else:
            raise TypeError(f"cannot compose {type(p).__name__!r}; expected Single or Sequence")
    logger.debug("pipeline.compose: cells=%d from=%d", len(cells), count)
    return Sequence(tuple(cells))


def execute(pipeline: Pipeline, state: Any) -> Any:
    """Run every stage of ``pipeline`` over ``state`` in order, in place.

    Stops at the first failing stage and re-raises its error; stages that
    already ran are not undone.
    """
    if isinstance(pipeline, Single):
        pipeline.cell.invoke(state)
    elif isinstance(pipeline, Sequence):
        for cell in pipeline.cells:
            cell.invoke(state)
    else:
        raise TypeError(f"cannot execute {type(pipeline).__name__!r}")
    return state


def snapshot(pipeline: Pipeline) -> List[Any]:
    """Deep copies of the stages in ``pipeline``, in execution order."""
    return [cell.snapshot() for cell in pipeline.cells]
