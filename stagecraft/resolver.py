from __future__ import annotations

from stagecraft.catalog import Descriptor, Family
from stagecraft.pipeline import Pipeline, Sequence, Single


def describe(pipeline: Pipeline, family: Family) -> Descriptor:
    """Descriptor of the concrete kind ``pipeline`` holds.

    Total over ``{Sequence}`` plus every kind in ``family``; a stage whose kind
    the family does not know raises UnsupportedVariantError.
    """
    if isinstance(pipeline, Sequence):
        return family.sequence_descriptor
    if isinstance(pipeline, Single):
        with pipeline.cell.read() as stage:
            return family.descriptor_for(type(stage))
    raise TypeError(f"cannot describe {type(pipeline).__name__!r}")
