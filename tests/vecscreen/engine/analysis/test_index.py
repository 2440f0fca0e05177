import pytest

from vecscreen.engine.analysis.index import build_index
from vecscreen.engine.exceptions.screening import ConfigError
from vecscreen.engine.structures.sequences import Orientation, VectorReference


@pytest.fixture
def dummy_references():
    return [
        VectorReference(0, "vector_a", "ACGTACGTTT"),
        VectorReference(1, "vector_b", "ggccaattgg"),
    ]


def test_forward_windows_are_indexed_with_offsets(dummy_references):
    index = build_index(dummy_references, 4)
    assert (0, 0, Orientation.FORWARD) in index.lookup("ACGT")
    assert (0, 4, Orientation.FORWARD) in index.lookup("ACGT")
    assert (0, 6, Orientation.FORWARD) in index.lookup("GTTT")


def test_collisions_are_retained(dummy_references):
    index = build_index(dummy_references, 4)
    forward_hits = [hit for hit in index.lookup("ACGT") if hit[2] is Orientation.FORWARD]
    assert len(forward_hits) == 2


def test_reverse_complement_windows_are_indexed(dummy_references):
    index = build_index(dummy_references, 4)
    # reverse complement of ACGTACGTTT is AAACGTACGT
    assert (0, 0, Orientation.REVERSE) in index.lookup("AAAC")
    assert index.oriented_sequence(0, Orientation.REVERSE) == "AAACGTACGT"


def test_references_are_normalized(dummy_references):
    index = build_index(dummy_references, 4)
    assert index.reference(1).sequence == "GGCCAATTGG"
    assert (1, 0, Orientation.FORWARD) in index.lookup("GGCC")
    assert index.lookup("ggcc") == ()


def test_windows_with_n_are_not_indexed():
    index = build_index([VectorReference(0, "v", "ACGNACGT")], 4)
    assert index.lookup("ACGN") == ()
    forward_hits = [hit for hit in index.lookup("ACGT") if hit[2] is Orientation.FORWARD]
    assert forward_hits == [(0, 4, Orientation.FORWARD)]


def test_circular_reference_indexes_origin_windows():
    linear = build_index([VectorReference(0, "v", "AACCGGTT")], 4)
    circular = build_index([VectorReference(0, "v", "AACCGGTT", circular=True)], 4)
    assert "TTAA" not in linear
    assert (0, 6, Orientation.FORWARD) in circular.lookup("TTAA")
    assert circular.seed_count == 16
    assert linear.seed_count == 10


@pytest.mark.parametrize("k", [0, -3, 11])
def test_invalid_seed_length(dummy_references, k):
    with pytest.raises(ConfigError):
        build_index(dummy_references, k)


def test_empty_reference_set():
    with pytest.raises(ConfigError):
        build_index([], 4)


def test_malformed_references_are_skipped(dummy_references):
    index = build_index([*dummy_references, VectorReference(2, "bad", "ACGTXYZ")], 4)
    assert index.skipped_references == 1
    assert len(index.references) == 2


def test_all_malformed_references_is_config_error():
    with pytest.raises(ConfigError):
        build_index([VectorReference(0, "bad", "ACGTU")], 4)
