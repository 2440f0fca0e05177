from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from Bio.Seq import reverse_complement

from vecscreen.engine.exceptions.screening import MalformedInputError

NUCLEOTIDE_ALPHABET = frozenset("ACGTN")
PHRED_OFFSET = 33


class Orientation(Enum):
    FORWARD = "+"
    REVERSE = "-"

    def __lt__(self, other: "Orientation"):
        # Forward sorts before reverse
        return self is Orientation.FORWARD and other is Orientation.REVERSE


def normalize_sequence(sequence: str, record_id: Union[str, None] = None) -> str:
    normalized = sequence.upper()
    unknown = set(normalized).difference(NUCLEOTIDE_ALPHABET)
    if unknown:
        raise MalformedInputError(record_id, f"unrecognized symbols {''.join(sorted(unknown))}")
    return normalized


def oriented(sequence: str, orientation: Orientation) -> str:
    if orientation is Orientation.REVERSE:
        return reverse_complement(sequence)
    return sequence


@dataclass(frozen=True)
class Read:
    identifier: str
    sequence: str
    quality: str = ""

    def __len__(self):
        return len(self.sequence)

    def validated(self) -> "Read":
        """Returns the upper-cased read, raising MalformedInputError on bad symbols or qualities."""
        sequence = normalize_sequence(self.sequence, self.identifier)
        if self.quality and len(self.quality) != len(sequence):
            raise MalformedInputError(
                self.identifier,
                f"quality length {len(self.quality)} does not match sequence length {len(sequence)}")
        if sequence == self.sequence:
            return self
        return replace(self, sequence=sequence)

    def mean_quality(self) -> Union[float, None]:
        if not self.quality:
            return None
        return sum(ord(symbol) - PHRED_OFFSET for symbol in self.quality) / len(self.quality)


@dataclass(frozen=True)
class VectorReference:
    id: int
    name: str
    sequence: str
    circular: bool = False

    def __len__(self):
        return len(self.sequence)

    def validated(self) -> "VectorReference":
        sequence = normalize_sequence(self.sequence, self.name)
        if not sequence:
            raise MalformedInputError(self.name, "empty sequence")
        if sequence == self.sequence:
            return self
        return replace(self, sequence=sequence)
