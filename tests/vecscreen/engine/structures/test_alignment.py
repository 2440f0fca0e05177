import pytest

from vecscreen.engine.exceptions.screening import AlignmentInvariantError
from vecscreen.engine.structures.alignment import (AlignmentResult, EditOperation, EditRun, consumed_lengths,
                                                   run_length_encode)
from vecscreen.engine.structures.sequences import Orientation

M, X, I, D = EditOperation.MATCH, EditOperation.MISMATCH, EditOperation.INSERTION, EditOperation.DELETION


def test_run_length_encode_collapses_runs():
    runs = run_length_encode([M, M, M, X, M, I, I, D])
    assert runs == (EditRun(M, 3), EditRun(X, 1), EditRun(M, 1), EditRun(I, 2), EditRun(D, 1))


def test_run_length_encode_empty():
    assert run_length_encode([]) == tuple()


def test_consumed_lengths():
    assert consumed_lengths((EditRun(M, 3), EditRun(I, 2), EditRun(X, 1), EditRun(D, 4))) == (6, 8)


def test_alignment_result_rejects_unreconciled_edits():
    with pytest.raises(AlignmentInvariantError):
        AlignmentResult(0, Orientation.FORWARD, 10, 0, 5, 0, 5, (EditRun(M, 4),), 5)


def test_alignment_result_statistics():
    result = AlignmentResult(
        0, Orientation.FORWARD, 11, 2, 10, 5, 12,
        (EditRun(M, 4), EditRun(I, 1), EditRun(X, 1), EditRun(M, 2)), 12)
    assert result.read_span == 8
    assert result.reference_span == 7
    assert result.matches == 6
    assert result.mismatches == 1
    assert result.gaps == 1
    assert result.percent_identity == pytest.approx(6 / 8)
    stats = result.stats()
    assert stats.score == 11
    assert stats.gaps == 1


def test_cigar_with_soft_clips():
    result = AlignmentResult(0, Orientation.FORWARD, 8, 3, 7, 0, 4, (EditRun(M, 4),), 10)
    assert result.cigar() == "4="
    assert result.cigar(soft_clips=True) == "3S4=3S"


def test_empty_result_is_not_aligned():
    result = AlignmentResult.empty(read_length=20)
    assert result.score == 0
    assert result.edits == tuple()
    assert not result.aligned
    assert result.cigar(soft_clips=True) == ""
