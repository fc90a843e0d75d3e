from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Dict, Union

import tokenizers
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.functional_serializers import PlainSerializer
from pydantic.functional_validators import AfterValidator, BeforeValidator

from stagecraft.errors import ConstructionError


class Stage(BaseModel):
    """One configured stage kind.

    Field names double as interchange field names. ``build()`` returns the
    backend object that does the actual text work; ``apply()`` runs it on a
    backend state object in place.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @classmethod
    def create(cls, **fields: Any) -> "Stage":
        """Validate ``fields`` and build the backend once, raising ConstructionError on bad input."""
        try:
            stage = cls(**fields)
        except ValidationError as e:
            raise ConstructionError(f"invalid {cls.__name__} parameters: {e}") from e
        # the backend may reject values the model accepts
        try:
            stage.build()
        except Exception as e:
            raise ConstructionError(f"{cls.__name__} rejected by backend: {e}") from e
        return stage

    def updated(self, **changes: Any) -> "Stage":
        """A validated copy with ``changes`` applied; ``self`` is untouched."""
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(changes)
        return type(self).create(**data)

    def build(self) -> Any:
        raise NotImplementedError

    def apply(self, backend: Any, state: Any) -> None:
        raise NotImplementedError


# ---------- Patterns ----------

@dataclass(frozen=True)
class Regex:
    """A regular-expression pattern, as opposed to a literal string."""

    pattern: str


def _parse_pattern(value: Any) -> Any:
    if not isinstance(value, dict):
        return value
    if len(value) == 1 and "String" in value:
        return value["String"]
    if len(value) == 1 and "Regex" in value:
        return Regex(value["Regex"])
    raise ValueError(f"expected {{'String': ...}} or {{'Regex': ...}}, got {value!r}")


def _check_pattern(value: Union[str, Regex]) -> Union[str, Regex]:
    if isinstance(value, Regex):
        try:
            tokenizers.Regex(value.pattern)
        except Exception as e:
            raise ValueError(f"invalid regex {value.pattern!r}: {e}") from e
    return value


def _dump_pattern(value: Union[str, Regex]) -> Dict[str, str]:
    if isinstance(value, Regex):
        return {"Regex": value.pattern}
    return {"String": value}


def backend_pattern(value: Union[str, Regex]) -> Any:
    if isinstance(value, Regex):
        return tokenizers.Regex(value.pattern)
    return value


Pattern = Annotated[
    Union[str, Regex],
    BeforeValidator(_parse_pattern),
    AfterValidator(_check_pattern),
    PlainSerializer(_dump_pattern),
]


def _check_char(value: str) -> str:
    if len(value) != 1:
        raise ValueError(f"expected a single character, got {value!r}")
    return value


Char = Annotated[str, AfterValidator(_check_char)]
