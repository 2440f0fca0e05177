import logging
from collections import defaultdict
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from vecscreen.engine.exceptions.screening import ConfigError, MalformedInputError
from vecscreen.engine.structures.sequences import Orientation, VectorReference, oriented

logger = logging.getLogger(__name__)

SeedHit = tuple[int, int, Orientation]


class ReferenceIndex:
    """Exact k-mer index over forward and reverse-complement vector windows.

    Built once by build_index and only read afterwards, so worker threads share
    it without locking.
    """

    def __init__(self, k: int, references: Sequence[VectorReference], seeds: Mapping[str, tuple[SeedHit, ...]],
                 skipped_references: int = 0):
        self._k = k
        self._references = tuple(references)
        self._by_id = {reference.id: reference for reference in self._references}
        self._oriented = {
            (reference.id, orientation): oriented(reference.sequence, orientation)
            for reference in self._references
            for orientation in Orientation
        }
        self._seeds = MappingProxyType(dict(seeds))
        self._skipped_references = skipped_references

    @property
    def k(self) -> int:
        return self._k

    @property
    def references(self) -> tuple[VectorReference, ...]:
        return self._references

    @property
    def skipped_references(self) -> int:
        return self._skipped_references

    @property
    def seed_count(self) -> int:
        return sum(len(hits) for hits in self._seeds.values())

    def __len__(self):
        return len(self._seeds)

    def lookup(self, window: str) -> tuple[SeedHit, ...]:
        return self._seeds.get(window, ())

    def reference(self, reference_id: int) -> VectorReference:
        return self._by_id[reference_id]

    def oriented_sequence(self, reference_id: int, orientation: Orientation) -> str:
        return self._oriented[(reference_id, orientation)]


def _windows(sequence: str, k: int, circular: bool) -> Iterable[tuple[int, str]]:
    if circular:
        sequence = sequence + sequence[:k - 1]
        last_offset = len(sequence) - (k - 1)
    else:
        last_offset = len(sequence) - k + 1
    for offset in range(last_offset):
        window = sequence[offset:offset + k]
        if "N" in window:
            continue
        yield offset, window


def build_index(references: Iterable[VectorReference], k: int) -> ReferenceIndex:
    if k <= 0:
        raise ConfigError("k", f"seed length must be positive, got {k}")
    valid_references: list[VectorReference] = []
    skipped = 0
    for reference in references:
        try:
            valid_references.append(reference.validated())
        except MalformedInputError as e:
            logger.warning("Skipping vector reference: %s", e)
            skipped += 1
    if not valid_references:
        raise ConfigError("references", "no usable vector references were supplied")
    shortest = min(valid_references, key=len)
    if k > len(shortest):
        raise ConfigError("k", f"seed length {k} exceeds the shortest reference \"{shortest.name}\" ({len(shortest)} bp)")

    seeds: dict[str, list[SeedHit]] = defaultdict(list)
    for reference in valid_references:
        for orientation in Orientation:
            strand = oriented(reference.sequence, orientation)
            for offset, window in _windows(strand, k, reference.circular):
                seeds[window].append((reference.id, offset, orientation))

    index = ReferenceIndex(k, valid_references, {window: tuple(hits) for window, hits in seeds.items()}, skipped)
    logger.info("Indexed %d vector references (%d distinct %d-mers, %d seed occurrences, %d skipped)",
                len(valid_references), len(index), k, index.seed_count, skipped)
    return index
