from collections import Counter, defaultdict
from dataclasses import dataclass

from vecscreen.engine.analysis.index import ReferenceIndex
from vecscreen.engine.config import DEFAULT_DIAGONAL_TOLERANCE
from vecscreen.engine.exceptions.screening import ConfigError
from vecscreen.engine.structures.sequences import Orientation, Read


@dataclass(frozen=True)
class Candidate:
    reference_id: int
    orientation: Orientation
    diagonal: int
    seed_hits: int
    first_read_offset: int

    def rank_key(self):
        return (-self.seed_hits, self.reference_id, self.first_read_offset, self.orientation, self.diagonal)


def _diagonal(read_offset: int, reference_offset: int, reference_length: int, circular: bool) -> int:
    if circular:
        # project the read start onto [0, length) so both sides of the origin agree
        return -((reference_offset - read_offset) % reference_length)
    return read_offset - reference_offset


def _cluster(hits: list[tuple[int, int]], tolerance: int, reference_id: int, orientation: Orientation) -> list[Candidate]:
    candidates = []
    hits.sort()
    group: list[tuple[int, int]] = []
    for hit in hits:
        if group and hit[0] - group[-1][0] > tolerance:
            candidates.append(_to_candidate(group, reference_id, orientation))
            group = []
        group.append(hit)
    if group:
        candidates.append(_to_candidate(group, reference_id, orientation))
    return candidates


def _to_candidate(group: list[tuple[int, int]], reference_id: int, orientation: Orientation) -> Candidate:
    support = Counter(diagonal for diagonal, _ in group)
    diagonal = min(support, key=lambda value: (-support[value], value))
    return Candidate(
        reference_id=reference_id,
        orientation=orientation,
        diagonal=diagonal,
        seed_hits=len(group),
        first_read_offset=min(read_offset for _, read_offset in group)
    )


def find_candidates(read: Read, index: ReferenceIndex, seed_k: int, max_candidates: int, stride: int = 1,
                    diagonal_tolerance: int = DEFAULT_DIAGONAL_TOLERANCE) -> list[Candidate]:
    if seed_k != index.k:
        raise ConfigError("seed_k", f"read seeds of length {seed_k} cannot query an index of {index.k}-mers")
    if stride <= 0:
        raise ConfigError("seed_stride", f"must be positive, got {stride}")
    sequence = read.sequence
    hits: dict[tuple[int, Orientation], list[tuple[int, int]]] = defaultdict(list)
    for read_offset in range(0, len(sequence) - seed_k + 1, stride):
        window = sequence[read_offset:read_offset + seed_k]
        if "N" in window:
            continue
        for reference_id, reference_offset, orientation in index.lookup(window):
            reference = index.reference(reference_id)
            diagonal = _diagonal(read_offset, reference_offset, len(reference), reference.circular)
            hits[(reference_id, orientation)].append((diagonal, read_offset))
    if not hits:
        return []

    candidates: list[Candidate] = []
    for (reference_id, orientation), strand_hits in hits.items():
        candidates.extend(_cluster(strand_hits, diagonal_tolerance, reference_id, orientation))
    candidates.sort(key=Candidate.rank_key)
    return candidates[:max_candidates]
