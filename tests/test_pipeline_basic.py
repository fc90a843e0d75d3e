import pytest
from tokenizers import NormalizedString

from stagecraft.cell import StageCell
from stagecraft.errors import ExecutionError
from stagecraft.normalizers import Lowercase, NFC, Prepend, Replace, Sequence, Strip
from stagecraft.pipeline import Single, compose, execute, snapshot
from stagecraft.pipeline import Sequence as SequencePipeline
from stagecraft.pre_tokenizers import Punctuation, Whitespace, WhitespaceSplit
from stagecraft.stages.base import Regex
from stagecraft.stages.normalizers import NormalizerStage, normalize, normalize_str
from stagecraft.stages.pre_tokenizers import pre_tokenize_str


class _FailingBackend:
    def normalize(self, normalized):
        raise RuntimeError("backend exploded")


class Exploding(NormalizerStage):
    def build(self):
        return _FailingBackend()


def test_compose_flattens_nested_sequences():
    a, b, c, d = Lowercase(), Strip(), NFC(), Prepend("x")
    nested = compose([a.pipeline, compose([b.pipeline, c.pipeline]), d.pipeline])
    flat = compose([a.pipeline, b.pipeline, c.pipeline, d.pipeline])
    assert nested.cells == flat.cells
    assert len(nested) == 4
    assert all(isinstance(cell, StageCell) for cell in nested.cells)


def test_compose_shares_cells():
    strip = Strip()
    seq = compose([strip.pipeline, Lowercase().pipeline])
    assert seq.cells[0] is strip.pipeline.cell


def test_mutation_visible_through_every_pipeline():
    strip = Strip(left=True, right=True)
    first = Sequence([strip, Lowercase()])
    second = Sequence([Prepend("_"), strip])

    strip.left = False

    assert first.normalize_str("  AB  ") == "  ab"
    assert second.normalize_str("  AB  ") == "_  AB"
    assert first[0].left is False


def test_empty_sequence_is_identity():
    assert normalize_str(SequencePipeline(), "x Y ") == "x Y "
    assert Sequence([]).normalize_str("Keep Me") == "Keep Me"
    assert pre_tokenize_str(SequencePipeline(), "a b") == [("a b", (0, 3))]


def test_strip_left_then_lowercase():
    seq = Sequence([Strip(left=True, right=False), Lowercase()])
    assert seq.normalize_str(" ABC ") == "abc "


def test_replace_literal_and_regex():
    assert Replace("a", "e").normalize_str("banana") == "benene"
    assert Replace(Regex(r"\s+"), " ").normalize_str("a   b\tc") == "a b c"


def test_whitespace_pre_tokenize_offsets():
    assert Whitespace().pre_tokenize_str("Hello World") == [("Hello", (0, 5)), ("World", (6, 11))]


def test_sequence_offsets_refer_to_original_text():
    seq = compose([WhitespaceSplit().pipeline, Punctuation().pipeline])
    assert pre_tokenize_str(seq, "Hi there!") == [("Hi", (0, 2)), ("there", (3, 8)), ("!", (8, 9))]


def test_sequence_stops_at_first_failure_without_rollback():
    failing = StageCell(Exploding())
    seq = compose([Lowercase().pipeline, Single(failing), Prepend("!").pipeline])
    normalized = NormalizedString("ABC")

    with pytest.raises(ExecutionError) as exc:
        normalize(seq, normalized)

    assert exc.value.stage == "Exploding"
    assert isinstance(exc.value.__cause__, RuntimeError)
    # lowercase already ran, prepend never did
    assert normalized.normalized == "abc"
    assert not failing.poisoned


def test_execute_returns_state_and_snapshot_copies_stages():
    strip = Strip(left=False)
    normalized = execute(strip.pipeline, NormalizedString(" a "))
    assert normalized.normalized == " a"

    copies = snapshot(Sequence([strip, Lowercase()]).pipeline)
    assert [type(s).__name__ for s in copies] == ["Strip", "Lowercase"]
    copies[0].strip_left = True
    assert strip.left is False


def test_compose_rejects_non_pipelines():
    with pytest.raises(TypeError):
        compose([Lowercase()])
