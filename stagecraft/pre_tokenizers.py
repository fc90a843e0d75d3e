from __future__ import annotations

from typing import Iterable, List, Tuple, Union

from tokenizers import PreTokenizedString

from stagecraft.boundary import HandleRegistry, SequenceHandle, StageHandle, field_property
from stagecraft.stages import pre_tokenizers as stages
from stagecraft.stages.base import Regex

_REGISTRY = HandleRegistry(stages.PRE_TOKENIZERS)


class PreTokenizer(StageHandle):
    """Base class for every pre-tokenizer handle."""

    family = stages.PRE_TOKENIZERS
    registry = _REGISTRY

    def pre_tokenize(self, pretok: PreTokenizedString) -> None:
        stages.pre_tokenize(self._pipeline, pretok)

    def pre_tokenize_str(self, sequence: str) -> List[Tuple[str, Tuple[int, int]]]:
        return stages.pre_tokenize_str(self._pipeline, sequence)


@_REGISTRY.register("Sequence")
class Sequence(SequenceHandle, PreTokenizer):
    def __init__(self, pretokenizers: Iterable[PreTokenizer]):
        super().__init__(pretokenizers)


@_REGISTRY.register("BertPreTokenizer")
class BertPreTokenizer(PreTokenizer):
    def __init__(self):
        super().__init__(self._single(stages.BertPreTokenizer))


@_REGISTRY.register("ByteLevel")
class ByteLevel(PreTokenizer):
    def __init__(self, add_prefix_space: bool = True, use_regex: bool = True):
        super().__init__(self._single(stages.ByteLevel, add_prefix_space=add_prefix_space, use_regex=use_regex))

    add_prefix_space = field_property("add_prefix_space")
    use_regex = field_property("use_regex")


@_REGISTRY.register("CharDelimiterSplit")
class CharDelimiterSplit(PreTokenizer):
    def __init__(self, delimiter: str):
        super().__init__(self._single(stages.CharDelimiterSplit, delimiter=delimiter))

    delimiter = field_property("delimiter")


@_REGISTRY.register("Digits")
class Digits(PreTokenizer):
    def __init__(self, individual_digits: bool = False):
        super().__init__(self._single(stages.Digits, individual_digits=individual_digits))

    individual_digits = field_property("individual_digits")


@_REGISTRY.register("Metaspace")
class Metaspace(PreTokenizer):
    def __init__(self, replacement: str = "▁", add_prefix_space: bool = True):
        super().__init__(self._single(stages.Metaspace, replacement=replacement, add_prefix_space=add_prefix_space))

    replacement = field_property("replacement")
    add_prefix_space = field_property("add_prefix_space")


@_REGISTRY.register("Punctuation")
class Punctuation(PreTokenizer):
    def __init__(self, behavior: str = "isolated"):
        super().__init__(self._single(stages.Punctuation, behavior=behavior))

    behavior = field_property("behavior")


@_REGISTRY.register("Split")
class Split(PreTokenizer):
    """Split on ``pattern``; ``behavior`` decides what happens to the matched delimiter."""

    def __init__(self, pattern: Union[str, Regex], behavior: str, invert: bool = False):
        super().__init__(self._single(stages.Split, pattern=pattern, behavior=behavior, invert=invert))

    pattern = field_property("pattern")
    behavior = field_property("behavior")
    invert = field_property("invert")


@_REGISTRY.register("UnicodeScripts")
class UnicodeScripts(PreTokenizer):
    def __init__(self):
        super().__init__(self._single(stages.UnicodeScripts))


@_REGISTRY.register("Whitespace")
class Whitespace(PreTokenizer):
    def __init__(self):
        super().__init__(self._single(stages.Whitespace))


@_REGISTRY.register("WhitespaceSplit")
class WhitespaceSplit(PreTokenizer):
    def __init__(self):
        super().__init__(self._single(stages.WhitespaceSplit))


_REGISTRY.seal()
