"""Per-family catalog tables: interchange signatures and runtime descriptors.

Adding a stage kind means adding, together, the model, its ``Signature`` and
its ``Descriptor``. ``Family`` refuses to build if any of the three is missing,
so an incomplete extension fails at import time instead of resolving to a
wrong kind later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import AbstractSet, Dict, FrozenSet, Mapping, Optional, Tuple, Type

from stagecraft.errors import UnsupportedVariantError

SEQUENCE = "Sequence"
TYPE_FIELD = "type"


@dataclass(frozen=True)
class Signature:
    name: str
    model: type
    required: FrozenSet[str] = frozenset()
    optional: FrozenSet[str] = frozenset()

    @property
    def keys(self) -> FrozenSet[str]:
        # the tag counts as a required key with a fixed value
        return frozenset({f"{TYPE_FIELD}={self.name}"}) | self.required

    def matches(self, tag: Optional[str], fields: AbstractSet[str]) -> bool:
        if tag is not None and tag != self.name:
            return False
        return self.required <= fields <= (self.required | self.optional)


@dataclass(frozen=True)
class Descriptor:
    family: str
    name: str

    def __str__(self) -> str:
        return f"{self.family}.{self.name}"


@dataclass(frozen=True, eq=False)
class Family:
    name: str
    sequence_field: str
    signatures: Tuple[Signature, ...]
    descriptors: Mapping[type, Descriptor]
    _by_model: Dict[type, Signature] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        names = [s.name for s in self.signatures]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise UnsupportedVariantError(f"{self.name}: duplicate signature names {dupes}")
        if SEQUENCE in names:
            raise UnsupportedVariantError(f"{self.name}: {SEQUENCE!r} is reserved for sequences")

        by_model = {s.model: s for s in self.signatures}
        missing_desc = [m.__name__ for m in by_model if m not in self.descriptors]
        missing_sig = [m.__name__ for m in self.descriptors if m not in by_model]
        if missing_desc or missing_sig:
            raise UnsupportedVariantError(
                f"{self.name}: incomplete catalog (no descriptor: {missing_desc}, no signature: {missing_sig})"
            )
        object.__setattr__(self, "_by_model", by_model)

    @property
    def sequence_descriptor(self) -> Descriptor:
        return Descriptor(self.name, SEQUENCE)

    def signature_for(self, model: Type) -> Signature:
        try:
            return self._by_model[model]
        except KeyError:
            raise UnsupportedVariantError(f"{self.name}: no signature for {model.__name__}") from None

    def descriptor_for(self, model: Type) -> Descriptor:
        try:
            return self.descriptors[model]
        except KeyError:
            raise UnsupportedVariantError(f"{self.name}: no descriptor for {model.__name__}") from None

    def all_descriptors(self) -> Tuple[Descriptor, ...]:
        return (self.sequence_descriptor,) + tuple(self.descriptors[s.model] for s in self.signatures)
