"""Normalizer catalog: string-to-string stages applied in place.

Each model maps one-to-one onto a ``tokenizers.normalizers`` class. The
signature table below is walked in order when decoding; keep it in step with
``DESCRIPTORS``.
"""

from __future__ import annotations

from typing import Any, Optional

from tokenizers import NormalizedString
from tokenizers import normalizers as backend

from stagecraft.catalog import Descriptor, Family, Signature
from stagecraft.pipeline import Pipeline, execute
from stagecraft.stages.base import Pattern, Stage, backend_pattern

FAMILY = "normalizers"


class NormalizerStage(Stage):
    def apply(self, backend_obj: Any, state: NormalizedString) -> None:
        backend_obj.normalize(state)


class BertNormalizer(NormalizerStage):
    clean_text: bool = True
    handle_chinese_chars: bool = True
    strip_accents: Optional[bool] = None
    lowercase: bool = True

    def build(self):
        return backend.BertNormalizer(
            clean_text=self.clean_text,
            handle_chinese_chars=self.handle_chinese_chars,
            strip_accents=self.strip_accents,
            lowercase=self.lowercase,
        )


class Lowercase(NormalizerStage):
    def build(self):
        return backend.Lowercase()


class NFC(NormalizerStage):
    def build(self):
        return backend.NFC()


class NFD(NormalizerStage):
    def build(self):
        return backend.NFD()


class NFKC(NormalizerStage):
    def build(self):
        return backend.NFKC()


class NFKD(NormalizerStage):
    def build(self):
        return backend.NFKD()


class Nmt(NormalizerStage):
    def build(self):
        return backend.Nmt()


class Prepend(NormalizerStage):
    prepend: str

    def build(self):
        return backend.Prepend(self.prepend)


class Replace(NormalizerStage):
    pattern: Pattern
    content: str

    def build(self):
        return backend.Replace(backend_pattern(self.pattern), self.content)


class Strip(NormalizerStage):
    strip_left: bool = True
    strip_right: bool = True

    def build(self):
        return backend.Strip(left=self.strip_left, right=self.strip_right)


class StripAccents(NormalizerStage):
    def build(self):
        return backend.StripAccents()


SIGNATURES = (
    Signature("BertNormalizer", BertNormalizer,
              required=frozenset({"clean_text", "handle_chinese_chars", "lowercase"}),
              optional=frozenset({"strip_accents"})),
    Signature("Lowercase", Lowercase),
    Signature("NFC", NFC),
    Signature("NFD", NFD),
    Signature("NFKC", NFKC),
    Signature("NFKD", NFKD),
    Signature("Nmt", Nmt),
    Signature("Prepend", Prepend, required=frozenset({"prepend"})),
    Signature("Replace", Replace, required=frozenset({"pattern", "content"})),
    Signature("Strip", Strip, required=frozenset({"strip_left", "strip_right"})),
    Signature("StripAccents", StripAccents),
)

DESCRIPTORS = {
    BertNormalizer: Descriptor(FAMILY, "BertNormalizer"),
    Lowercase: Descriptor(FAMILY, "Lowercase"),
    NFC: Descriptor(FAMILY, "NFC"),
    NFD: Descriptor(FAMILY, "NFD"),
    NFKC: Descriptor(FAMILY, "NFKC"),
    NFKD: Descriptor(FAMILY, "NFKD"),
    Nmt: Descriptor(FAMILY, "Nmt"),
    Prepend: Descriptor(FAMILY, "Prepend"),
    Replace: Descriptor(FAMILY, "Replace"),
    Strip: Descriptor(FAMILY, "Strip"),
    StripAccents: Descriptor(FAMILY, "StripAccents"),
}

NORMALIZERS = Family(FAMILY, "normalizers", SIGNATURES, DESCRIPTORS)


def normalize(pipeline: Pipeline, normalized: NormalizedString) -> None:
    """Normalize ``normalized`` in place; it keeps the mapping back to the original text."""
    execute(pipeline, normalized)


def normalize_str(pipeline: Pipeline, text: str) -> str:
    normalized = NormalizedString(text)
    execute(pipeline, normalized)
    return normalized.normalized
