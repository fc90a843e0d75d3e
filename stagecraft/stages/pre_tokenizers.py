"""Pre-tokenizer catalog: stages that split text into spans with offsets."""

from __future__ import annotations

from typing import Any, List, Literal, Tuple

from tokenizers import PreTokenizedString
from tokenizers import pre_tokenizers as backend

from stagecraft.catalog import Descriptor, Family, Signature
from stagecraft.pipeline import Pipeline, execute
from stagecraft.stages.base import Char, Pattern, Stage, backend_pattern

FAMILY = "pre_tokenizers"

Offsets = Tuple[int, int]

SplitBehavior = Literal["removed", "isolated", "merged_with_previous", "merged_with_next", "contiguous"]


class PreTokenizerStage(Stage):
    def apply(self, backend_obj: Any, state: PreTokenizedString) -> None:
        backend_obj.pre_tokenize(state)


class BertPreTokenizer(PreTokenizerStage):
    def build(self):
        return backend.BertPreTokenizer()


class ByteLevel(PreTokenizerStage):
    add_prefix_space: bool = True
    use_regex: bool = True

    def build(self):
        return backend.ByteLevel(add_prefix_space=self.add_prefix_space, use_regex=self.use_regex)


class CharDelimiterSplit(PreTokenizerStage):
    delimiter: Char

    def build(self):
        return backend.CharDelimiterSplit(self.delimiter)


class Digits(PreTokenizerStage):
    individual_digits: bool = False

    def build(self):
        return backend.Digits(individual_digits=self.individual_digits)


class Metaspace(PreTokenizerStage):
    replacement: Char = "▁"
    add_prefix_space: bool = True

    def build(self):
        scheme = "always" if self.add_prefix_space else "never"
        return backend.Metaspace(replacement=self.replacement, prepend_scheme=scheme)


class Punctuation(PreTokenizerStage):
    behavior: SplitBehavior = "isolated"

    def build(self):
        return backend.Punctuation(behavior=self.behavior)


class Split(PreTokenizerStage):
    pattern: Pattern
    behavior: SplitBehavior
    invert: bool = False

    def build(self):
        return backend.Split(backend_pattern(self.pattern), self.behavior, invert=self.invert)


class UnicodeScripts(PreTokenizerStage):
    def build(self):
        return backend.UnicodeScripts()


class Whitespace(PreTokenizerStage):
    def build(self):
        return backend.Whitespace()


class WhitespaceSplit(PreTokenizerStage):
    def build(self):
        return backend.WhitespaceSplit()


SIGNATURES = (
    Signature("BertPreTokenizer", BertPreTokenizer),
    Signature("ByteLevel", ByteLevel, required=frozenset({"add_prefix_space", "use_regex"})),
    Signature("CharDelimiterSplit", CharDelimiterSplit, required=frozenset({"delimiter"})),
    Signature("Digits", Digits, required=frozenset({"individual_digits"})),
    Signature("Metaspace", Metaspace, required=frozenset({"replacement", "add_prefix_space"})),
    Signature("Punctuation", Punctuation, required=frozenset({"behavior"})),
    Signature("Split", Split, required=frozenset({"pattern", "behavior", "invert"})),
    Signature("UnicodeScripts", UnicodeScripts),
    Signature("Whitespace", Whitespace),
    Signature("WhitespaceSplit", WhitespaceSplit),
)

DESCRIPTORS = {
    BertPreTokenizer: Descriptor(FAMILY, "BertPreTokenizer"),
    ByteLevel: Descriptor(FAMILY, "ByteLevel"),
    CharDelimiterSplit: Descriptor(FAMILY, "CharDelimiterSplit"),
    Digits: Descriptor(FAMILY, "Digits"),
    Metaspace: Descriptor(FAMILY, "Metaspace"),
    Punctuation: Descriptor(FAMILY, "Punctuation"),
    Split: Descriptor(FAMILY, "Split"),
    UnicodeScripts: Descriptor(FAMILY, "UnicodeScripts"),
    Whitespace: Descriptor(FAMILY, "Whitespace"),
    WhitespaceSplit: Descriptor(FAMILY, "WhitespaceSplit"),
}

PRE_TOKENIZERS = Family(FAMILY, "pretokenizers", SIGNATURES, DESCRIPTORS)


def pre_tokenize(pipeline: Pipeline, pretok: PreTokenizedString) -> None:
    execute(pipeline, pretok)


def pre_tokenize_str(pipeline: Pipeline, text: str) -> List[Tuple[str, Offsets]]:
    """Split ``text`` into ``(span, (start, end))`` pairs.

    Offsets are character offsets into ``text`` no matter how many stages
    ran, since the backend tracks every split against the original string.
    """
    pretok = PreTokenizedString(text)
    execute(pipeline, pretok)
    splits = pretok.get_splits(offset_referential="original", offset_type="char")
    return [(span, tuple(offsets)) for span, offsets, _ in splits]
