from __future__ import annotations

from typing import Iterable, Optional, Union

from tokenizers import NormalizedString

from stagecraft.boundary import HandleRegistry, SequenceHandle, StageHandle, field_property
from stagecraft.stages import normalizers as stages
from stagecraft.stages.base import Regex

_REGISTRY = HandleRegistry(stages.NORMALIZERS)


class Normalizer(StageHandle):
    """Base class for every normalizer handle."""

    family = stages.NORMALIZERS
    registry = _REGISTRY

    def normalize(self, normalized: NormalizedString) -> None:
        stages.normalize(self._pipeline, normalized)

    def normalize_str(self, sequence: str) -> str:
        return stages.normalize_str(self._pipeline, sequence)


@_REGISTRY.register("Sequence")
class Sequence(SequenceHandle, Normalizer):
    def __init__(self, normalizers: Iterable[Normalizer]):
        super().__init__(normalizers)


@_REGISTRY.register("BertNormalizer")
class BertNormalizer(Normalizer):
    def __init__(
        self,
        clean_text: bool = True,
        handle_chinese_chars: bool = True,
        strip_accents: Optional[bool] = None,
        lowercase: bool = True,
    ):
        super().__init__(self._single(
            stages.BertNormalizer,
            clean_text=clean_text,
            handle_chinese_chars=handle_chinese_chars,
            strip_accents=strip_accents,
            lowercase=lowercase,
        ))

    clean_text = field_property("clean_text")
    handle_chinese_chars = field_property("handle_chinese_chars")
    strip_accents = field_property("strip_accents", "None strips accents only when lowercasing.")
    lowercase = field_property("lowercase")


@_REGISTRY.register("Lowercase")
class Lowercase(Normalizer):
    def __init__(self):
        super().__init__(self._single(stages.Lowercase))


@_REGISTRY.register("NFC")
class NFC(Normalizer):
    def __init__(self):
        super().__init__(self._single(stages.NFC))


@_REGISTRY.register("NFD")
class NFD(Normalizer):
    def __init__(self):
        super().__init__(self._single(stages.NFD))


@_REGISTRY.register("NFKC")
class NFKC(Normalizer):
    def __init__(self):
        super().__init__(self._single(stages.NFKC))


@_REGISTRY.register("NFKD")
class NFKD(Normalizer):
    def __init__(self):
        super().__init__(self._single(stages.NFKD))


@_REGISTRY.register("Nmt")
class Nmt(Normalizer):
    def __init__(self):
        super().__init__(self._single(stages.Nmt))


@_REGISTRY.register("Prepend")
class Prepend(Normalizer):
    def __init__(self, prepend: str):
        super().__init__(self._single(stages.Prepend, prepend=prepend))

    prepend = field_property("prepend")


@_REGISTRY.register("Replace")
class Replace(Normalizer):
    """Replace every match of ``pattern`` (a literal string or a ``Regex``) with ``content``."""

    def __init__(self, pattern: Union[str, Regex], content: str):
        super().__init__(self._single(stages.Replace, pattern=pattern, content=content))

    pattern = field_property("pattern")
    content = field_property("content")


@_REGISTRY.register("Strip")
class Strip(Normalizer):
    def __init__(self, left: bool = True, right: bool = True):
        super().__init__(self._single(stages.Strip, strip_left=left, strip_right=right))

    left = field_property("strip_left")
    right = field_property("strip_right")


@_REGISTRY.register("StripAccents")
class StripAccents(Normalizer):
    def __init__(self):
        super().__init__(self._single(stages.StripAccents))


_REGISTRY.seal()
