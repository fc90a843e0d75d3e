"""Host-facing handle classes.

Every stage kind, plus ``Sequence``, is one registered handle class. Whenever a
pipeline has to be handed back to a caller (decoding, unpickling, indexing
into a sequence) the family's ``HandleRegistry`` asks ``describe()`` which kind
it is and wraps it in the matching class.
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Iterable, Type, TypeVar

from stagecraft import codec
from stagecraft import pipeline as pl
from stagecraft.catalog import Descriptor, Family
from stagecraft.cell import StageCell
from stagecraft.errors import ConstructionError, DecodeError, UnsupportedVariantError
from stagecraft.resolver import describe

H = TypeVar("H", bound="StageHandle")


class HandleRegistry:
    """Descriptor name -> handle class for one family, filled once at import."""

    def __init__(self, family: Family):
        self.family = family
        self._classes: Dict[str, Type[StageHandle]] = {}
        self._sealed = False

    def register(self, name: str):
        def deco(cls):
            if self._sealed:
                raise RuntimeError(f"{self.family.name}: registry is sealed, cannot add {name!r}")
            if name in self._classes:
                raise UnsupportedVariantError(f"{self.family.name}: {name!r} registered twice")
            self._classes[name] = cls
            return cls
        return deco

    def seal(self) -> None:
        known = {d.name for d in self.family.all_descriptors()}
        missing = sorted(known - set(self._classes))
        unknown = sorted(set(self._classes) - known)
        if missing or unknown:
            raise UnsupportedVariantError(
                f"{self.family.name}: handle classes missing for {missing}, registered without a kind: {unknown}"
            )
        self._sealed = True

    def class_for(self, descriptor: Descriptor) -> Type[StageHandle]:
        try:
            return self._classes[descriptor.name]
        except KeyError:
            raise UnsupportedVariantError(f"no handle class registered for {descriptor}") from None

    def wrap(self, pipeline: pl.Pipeline) -> StageHandle:
        cls = self.class_for(describe(pipeline, self.family))
        return cls._from_pipeline(pipeline)


def field_property(name: str, doc: str = None) -> property:
    """Property reading a stage field under a read view and writing it under a write view."""

    def fget(self):
        return self._get(name)

    def fset(self, value):
        self._set(**{name: value})

    return property(fget, fset, doc=doc)


class StageHandle:
    family: ClassVar[Family]
    registry: ClassVar[HandleRegistry]

    def __init__(self, pipeline: pl.Pipeline):
        self._pipeline = pipeline

    @classmethod
    def _from_pipeline(cls: Type[H], pipeline: pl.Pipeline) -> H:
        obj = cls.__new__(cls)
        StageHandle.__init__(obj, pipeline)
        return obj

    @classmethod
    def _single(cls, model: type, **fields: Any) -> pl.Single:
        return pl.Single(StageCell(model.create(**fields)))

    @property
    def pipeline(self) -> pl.Pipeline:
        return self._pipeline

    @property
    def descriptor(self) -> Descriptor:
        return describe(self._pipeline, self.family)

    # ---------- Field access ----------

    def _cell(self) -> StageCell:
        if not isinstance(self._pipeline, pl.Single):
            raise TypeError(f"{type(self).__name__} does not wrap a single stage")
        return self._pipeline.cell

    def _get(self, name: str) -> Any:
        with self._cell().read() as stage:
            return getattr(stage, name)

    def _set(self, **changes: Any) -> None:
        cell = self._cell()
        # validate and build outside the write lock so bad input cannot poison the cell
        with cell.read() as stage:
            candidate = stage.updated(**changes)
        with cell.write() as stage:
            for name in changes:
                setattr(stage, name, getattr(candidate, name))

    # ---------- Serialization ----------

    def to_dict(self) -> Dict[str, Any]:
        return codec.encode(self._pipeline, self.family)

    def to_json(self, **kwargs: Any) -> str:
        return codec.dumps(self._pipeline, self.family, **kwargs)

    @classmethod
    def from_dict(cls: Type[H], value: Any) -> H:
        handle = cls.registry.wrap(codec.decode(value, cls.family))
        if not isinstance(handle, cls):
            raise DecodeError(f"decoded {type(handle).__name__}, expected {cls.__name__}")
        return handle

    @classmethod
    def from_json(cls: Type[H], text: str) -> H:
        handle = cls.registry.wrap(codec.loads(text, cls.family))
        if not isinstance(handle, cls):
            raise DecodeError(f"decoded {type(handle).__name__}, expected {cls.__name__}")
        return handle

    def __getstate__(self) -> Dict[str, Any]:
        return self.to_dict()

    def __setstate__(self, state: Dict[str, Any]) -> None:
        self._pipeline = codec.decode(state, self.family)

    def __repr__(self) -> str:
        fields = {k: v for k, v in self.to_dict().items() if k != "type"}
        args = ", ".join(f"{k}={v!r}" for k, v in fields.items())
        return f"{type(self).__name__}({args})"


class SequenceHandle(StageHandle):
    """Flattened sequence of stages; indexing returns handles sharing the cells."""

    def __init__(self, items: Iterable[StageHandle]):
        items = list(items)
        for item in items:
            if not isinstance(item, StageHandle) or item.family is not self.family:
                raise ConstructionError(f"{self.family.name} sequence cannot hold {type(item).__name__}")
        super().__init__(pl.compose(item.pipeline for item in items))

    def __len__(self) -> int:
        return len(self._pipeline.cells)

    def __getitem__(self, index):
        cells = self._pipeline.cells
        if isinstance(index, slice):
            return self.registry.wrap(pl.Sequence(cells[index]))
        return self.registry.wrap(pl.Single(cells[index]))

    def __iter__(self):
        for cell in self._pipeline.cells:
            yield self.registry.wrap(pl.Single(cell))

    def __repr__(self) -> str:
        return f"{type(self).__name__}([{', '.join(repr(item) for item in self)}])"


__all__ = ["HandleRegistry", "SequenceHandle", "StageHandle", "field_property"]
