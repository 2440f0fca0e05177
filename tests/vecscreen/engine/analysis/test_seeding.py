import random

import pytest
from Bio.Seq import reverse_complement

from vecscreen.engine.analysis.index import build_index
from vecscreen.engine.analysis.seeding import find_candidates
from vecscreen.engine.exceptions.screening import ConfigError
from vecscreen.engine.structures.sequences import Orientation, Read, VectorReference

SEED_K = 12


def random_sequence(name: str, length: int) -> str:
    rand = random.Random(name)
    return "".join(rand.choice("ACGT") for _ in range(length))


@pytest.fixture
def vector_zero():
    return random_sequence("vector_zero", 200)


@pytest.fixture
def vector_one():
    return random_sequence("vector_one", 200)


@pytest.fixture
def dummy_index(vector_zero, vector_one):
    return build_index([VectorReference(0, "zero", vector_zero), VectorReference(1, "one", vector_one)], SEED_K)


def candidates_for(sequence: str, index, **kwargs):
    kwargs.setdefault("max_candidates", 8)
    return find_candidates(Read("read", sequence), index, SEED_K, **kwargs)


def test_no_seed_hits_is_empty(dummy_index):
    assert candidates_for("T" * 40, dummy_index) == []


def test_read_shorter_than_seed_is_empty(dummy_index, vector_zero):
    assert candidates_for(vector_zero[:SEED_K - 1], dummy_index) == []


def test_candidates_ranked_by_seed_hits(dummy_index, vector_zero, vector_one):
    candidates = candidates_for(vector_one[20:80] + vector_zero[100:130], dummy_index)
    assert [candidate.reference_id for candidate in candidates[:2]] == [1, 0]
    assert candidates[0].diagonal == -20
    assert candidates[0].seed_hits == 49
    assert candidates[0].orientation is Orientation.FORWARD
    assert candidates[1].diagonal == 60 - 100
    assert candidates[1].seed_hits == 19


def test_equal_hits_prefer_lowest_reference_id(dummy_index, vector_zero, vector_one):
    candidates = candidates_for(vector_one[0:30] + vector_zero[0:30], dummy_index)
    assert candidates[0].seed_hits == candidates[1].seed_hits
    assert candidates[0].reference_id == 0
    assert candidates[1].reference_id == 1


def test_equal_hits_same_reference_prefer_earliest_read_offset(dummy_index, vector_zero):
    candidates = candidates_for(vector_zero[0:30] + vector_zero[100:130], dummy_index)
    assert [candidate.diagonal for candidate in candidates[:2]] == [0, -70]
    assert candidates[0].first_read_offset == 0
    assert candidates[1].first_read_offset == 30


def test_nearby_diagonals_merge_into_one_candidate(dummy_index, vector_zero):
    extra = next(base for base in "ACGT" if base not in (vector_zero[39], vector_zero[40]))
    read = vector_zero[0:40] + extra + vector_zero[40:80]
    merged = candidates_for(read, dummy_index)
    assert len(merged) == 1
    assert merged[0].seed_hits == 58
    assert merged[0].diagonal == 0

    separate = candidates_for(read, dummy_index, diagonal_tolerance=0)
    assert len(separate) == 2
    assert {candidate.diagonal for candidate in separate} == {0, 1}


def test_stride_reduces_seed_lookups(dummy_index, vector_zero):
    dense = candidates_for(vector_zero[0:60], dummy_index)
    sparse = candidates_for(vector_zero[0:60], dummy_index, stride=4)
    assert dense[0].seed_hits == 49
    assert sparse[0].seed_hits == 13
    assert sparse[0].diagonal == dense[0].diagonal


def test_reverse_complement_read_seeds_reverse_strand(dummy_index, vector_zero):
    candidates = candidates_for(reverse_complement(vector_zero[50:110]), dummy_index)
    assert candidates[0].orientation is Orientation.REVERSE
    assert candidates[0].reference_id == 0
    assert candidates[0].diagonal == -(200 - 110)


def test_max_candidates_limits_results(dummy_index, vector_zero, vector_one):
    read = vector_zero[0:30] + vector_one[0:30] + vector_zero[150:180]
    assert len(candidates_for(read, dummy_index)) >= 3
    assert len(candidates_for(read, dummy_index, max_candidates=2)) == 2


def test_reads_across_circular_origin_form_one_candidate():
    vector = random_sequence("circular_vector", 100)
    index = build_index([VectorReference(0, "plasmid", vector, circular=True)], SEED_K)
    candidates = candidates_for(vector[90:] + vector[:30], index)
    assert len(candidates) == 1
    assert candidates[0].diagonal == -90
    assert candidates[0].seed_hits == 40 - SEED_K + 1


def test_seed_length_must_match_index(dummy_index, vector_zero):
    with pytest.raises(ConfigError):
        find_candidates(Read("read", vector_zero[:40]), dummy_index, SEED_K + 1, 8)
