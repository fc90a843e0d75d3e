import itertools

import pytest

from stagecraft import codec
from stagecraft.errors import DecodeError
from stagecraft.normalizers import (
    BertNormalizer,
    Lowercase,
    NFC,
    NFD,
    NFKC,
    NFKD,
    Nmt,
    Prepend,
    Replace,
    Sequence,
    Strip,
    StripAccents,
)
from stagecraft.pipeline import Single, snapshot
from stagecraft.pre_tokenizers import (
    BertPreTokenizer,
    ByteLevel,
    CharDelimiterSplit,
    Digits,
    Metaspace,
    Punctuation,
    Split,
    UnicodeScripts,
    Whitespace,
    WhitespaceSplit,
)
from stagecraft.pre_tokenizers import Sequence as PreSequence
from stagecraft.stages import pre_tokenizers as pre_stages
from stagecraft.stages.base import Regex
from stagecraft.stages.normalizers import NORMALIZERS
from stagecraft.stages.pre_tokenizers import PRE_TOKENIZERS


def _normalizer_catalog():
    return [
        BertNormalizer(clean_text=False, strip_accents=True),
        Lowercase(),
        NFC(),
        NFD(),
        NFKC(),
        NFKD(),
        Nmt(),
        Prepend("▁"),
        Replace("a", "e"),
        Replace(Regex(r"\d+"), "#"),
        Strip(left=False),
        StripAccents(),
    ]


def _pre_tokenizer_catalog():
    return [
        BertPreTokenizer(),
        ByteLevel(add_prefix_space=False),
        CharDelimiterSplit("-"),
        Digits(individual_digits=True),
        Metaspace(replacement="_", add_prefix_space=False),
        Punctuation("removed"),
        Split(Regex(r"\s"), "merged_with_next", invert=True),
        UnicodeScripts(),
        Whitespace(),
        WhitespaceSplit(),
    ]


@pytest.mark.parametrize(
    "handles, family",
    [(_normalizer_catalog(), NORMALIZERS), (_pre_tokenizer_catalog(), PRE_TOKENIZERS)],
)
def test_every_variant_round_trips(handles, family):
    for handle in handles:
        encoded = handle.to_dict()
        decoded = codec.decode(encoded, family)
        assert isinstance(decoded, Single)
        assert codec.encode(decoded, family) == encoded
        assert snapshot(decoded) == snapshot(handle.pipeline)
        assert type(type(handle).from_dict(encoded)) is type(handle)


def test_catalog_fixtures_cover_every_kind():
    assert {type(h).__name__ for h in _normalizer_catalog()} == {s.name for s in NORMALIZERS.signatures}
    assert {type(h).__name__ for h in _pre_tokenizer_catalog()} == {s.name for s in PRE_TOKENIZERS.signatures}


def test_encoding_shapes():
    assert Strip(left=True, right=False).to_dict() == {"type": "Strip", "strip_left": True, "strip_right": False}
    assert Replace("a", "e").to_dict() == {"type": "Replace", "pattern": {"String": "a"}, "content": "e"}
    assert Split(Regex(r"\d"), "isolated").to_dict()["pattern"] == {"Regex": r"\d"}
    assert Sequence([NFC(), Lowercase()]).to_dict() == {
        "type": "Sequence",
        "normalizers": [{"type": "NFC"}, {"type": "Lowercase"}],
    }
    assert PreSequence([Whitespace()]).to_dict() == {"type": "Sequence", "pretokenizers": [{"type": "Whitespace"}]}


def test_nested_sequences_round_trip_flat():
    seq = Sequence([Sequence([NFD(), StripAccents()]), Lowercase()])
    encoded = seq.to_dict()
    assert [item["type"] for item in encoded["normalizers"]] == ["NFD", "StripAccents", "Lowercase"]

    decoded = codec.decode(encoded, NORMALIZERS)
    assert codec.encode(decoded, NORMALIZERS) == encoded
    assert snapshot(decoded) == snapshot(seq.pipeline)


def test_serialized_nested_sequence_flattens_on_load():
    value = {
        "type": "Sequence",
        "normalizers": [
            {"type": "Sequence", "normalizers": [{"type": "NFD"}, {"type": "Lowercase"}]},
            {"type": "Strip", "strip_left": True, "strip_right": True},
        ],
    }
    decoded = codec.decode(value, NORMALIZERS)
    assert len(decoded.cells) == 3
    assert codec.encode(decoded, NORMALIZERS)["normalizers"] == [
        {"type": "NFD"},
        {"type": "Lowercase"},
        {"type": "Strip", "strip_left": True, "strip_right": True},
    ]


@pytest.mark.parametrize("family", [NORMALIZERS, PRE_TOKENIZERS])
def test_signatures_pairwise_distinguishable(family):
    for a, b in itertools.permutations(family.signatures, 2):
        assert not a.keys <= b.keys, (a.name, b.name)


@pytest.mark.parametrize(
    "handles, family",
    [(_normalizer_catalog(), NORMALIZERS), (_pre_tokenizer_catalog(), PRE_TOKENIZERS)],
)
def test_untagged_shapes_resolve_uniquely(handles, family):
    for handle in handles:
        encoded = handle.to_dict()
        untagged = {k: v for k, v in encoded.items() if k != "type"}
        if not untagged:
            continue
        assert [s.name for s in codec.candidates(untagged, family)] == [encoded["type"]]


def test_delimiter_shape_resolves_to_char_delimiter_split():
    assert [s.name for s in codec.candidates({"delimiter": "-"}, PRE_TOKENIZERS)] == ["CharDelimiterSplit"]
    decoded = codec.decode({"delimiter": "-"}, PRE_TOKENIZERS)
    assert isinstance(decoded.cell.snapshot(), pre_stages.CharDelimiterSplit)


def test_optional_field_may_be_omitted():
    decoded = codec.decode(
        {"clean_text": True, "handle_chinese_chars": False, "lowercase": True}, NORMALIZERS
    )
    (stage,) = snapshot(decoded)
    assert stage.strip_accents is None
    assert stage.handle_chinese_chars is False


def test_bare_string_pattern_is_a_literal():
    (stage,) = snapshot(codec.decode({"pattern": "a", "content": "e"}, NORMALIZERS))
    assert stage.pattern == "a"


@pytest.mark.parametrize(
    "value",
    [
        {},  # every zero-field kind matches
        {"foo": 1},
        {"type": "Strip", "strip_left": True},
        {"type": "Strip", "strip_left": True, "strip_right": True, "extra": 1},
        {"type": "Strip", "strip_left": "sideways", "strip_right": True},
        {"type": "Replace", "pattern": {"Regex": "("}, "content": "x"},
        {"type": "Unknown"},
        {"type": "Sequence"},
        {"type": "Sequence", "normalizers": {"type": "NFC"}},
        {"type": "Sequence", "normalizers": [], "other": 1},
        {"type": "Sequence", "normalizers": [{}]},
        ["not", "a", "mapping"],
    ],
)
def test_decode_failures(value):
    with pytest.raises(DecodeError):
        codec.decode(value, NORMALIZERS)


def test_ambiguous_shape_lists_candidates_in_table_order():
    with pytest.raises(DecodeError) as exc:
        codec.decode({}, PRE_TOKENIZERS)
    assert "BertPreTokenizer" in str(exc.value)
    assert str(exc.value).index("BertPreTokenizer") < str(exc.value).index("WhitespaceSplit")


def test_backend_rejected_fields_are_decode_errors():
    with pytest.raises(DecodeError):
        codec.decode({"prepend": "\ud800"}, NORMALIZERS)
    with pytest.raises(DecodeError):
        codec.decode({"type": "Replace", "pattern": "\ud800", "content": "x"}, NORMALIZERS)


@pytest.mark.parametrize(
    "pattern",
    [{"pattern": "a"}, {"String": "a", "Regex": "b"}, {}],
)
def test_pattern_accepts_only_documented_shapes(pattern):
    with pytest.raises(DecodeError):
        codec.decode({"type": "Replace", "pattern": pattern, "content": "x"}, NORMALIZERS)


def test_json_helpers():
    seq = Sequence([Strip(), Lowercase()])
    text = codec.dumps(seq.pipeline, NORMALIZERS)
    assert codec.encode(codec.loads(text, NORMALIZERS), NORMALIZERS) == seq.to_dict()
    with pytest.raises(DecodeError):
        codec.loads("{not json", NORMALIZERS)
