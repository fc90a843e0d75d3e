"""Structural encoding of pipelines.

Single stages encode to ``{"type": <kind>, **fields}``; sequences to
``{"type": "Sequence", <sequence field>: [...]}``. On decode the ``type`` tag of
a single stage is optional: without it the kind is picked by field shape,
walking the family's signature table in order.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping

from stagecraft.catalog import SEQUENCE, TYPE_FIELD, Family, Signature
from stagecraft.cell import StageCell
from stagecraft.errors import ConstructionError, DecodeError
from stagecraft.pipeline import Pipeline, Sequence, Single, compose
from stagecraft.utils import get_logger

logger = get_logger(__name__)


# ---------- Encoding ----------

def encode_cell(cell: StageCell, family: Family) -> Dict[str, Any]:
    with cell.read() as stage:
        sig = family.signature_for(type(stage))
        fields = stage.model_dump(mode="json")
    return {TYPE_FIELD: sig.name, **fields}


def encode(pipeline: Pipeline, family: Family) -> Dict[str, Any]:
    if isinstance(pipeline, Sequence):
        return {
            TYPE_FIELD: SEQUENCE,
            family.sequence_field: [encode_cell(c, family) for c in pipeline.cells],
        }
    if isinstance(pipeline, Single):
        return encode_cell(pipeline.cell, family)
    raise TypeError(f"cannot encode {type(pipeline).__name__!r}")


def dumps(pipeline: Pipeline, family: Family, **kwargs: Any) -> str:
    return json.dumps(encode(pipeline, family), ensure_ascii=False, **kwargs)


# ---------- Decoding ----------

def candidates(value: Mapping[str, Any], family: Family) -> List[Signature]:
    """Signatures accepting ``value``, in table order."""
    tag = value.get(TYPE_FIELD)
    fields = set(value) - {TYPE_FIELD}
    return [sig for sig in family.signatures if sig.matches(tag, fields)]


def resolve_signature(value: Mapping[str, Any], family: Family) -> Signature:
    found = candidates(value, family)
    if not found:
        tag = value.get(TYPE_FIELD)
        what = f"type={tag!r}" if tag is not None else f"fields={sorted(value)}"
        raise DecodeError(f"{family.name}: no known signature matches {what}")
    if len(found) > 1:
        raise DecodeError(
            f"{family.name}: ambiguous shape {sorted(value)} matches {[s.name for s in found]}; add a 'type' tag"
        )
    return found[0]


def decode_stage(value: Mapping[str, Any], family: Family) -> Any:
    sig = resolve_signature(value, family)
    fields = {k: v for k, v in value.items() if k != TYPE_FIELD}
    try:
        stage = sig.model.create(**fields)
    except ConstructionError as e:
        raise DecodeError(f"{family.name}: invalid {sig.name} fields: {e}") from e
    logger.debug("codec.decode: family=%s kind=%s", family.name, sig.name)
    return stage


def decode(value: Any, family: Family) -> Pipeline:
    if not isinstance(value, Mapping):
        raise DecodeError(f"{family.name}: expected a mapping, got {type(value).__name__}")

    if value.get(TYPE_FIELD) == SEQUENCE:
        extra = set(value) - {TYPE_FIELD, family.sequence_field}
        if extra:
            raise DecodeError(f"{family.name}: unexpected sequence fields {sorted(extra)}")
        items = value.get(family.sequence_field)
        if not isinstance(items, list):
            raise DecodeError(f"{family.name}: sequence needs a list under {family.sequence_field!r}")
        # nested serialized sequences flatten here
        return compose(decode(item, family) for item in items)

    return Single(StageCell(decode_stage(value, family)))


def loads(text: str, family: Family) -> Pipeline:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"{family.name}: invalid JSON: {e}") from e
    return decode(value, family)
