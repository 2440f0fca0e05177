from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from vecscreen.engine.structures.alignment import AlignmentResult, StitchedAlignment
from vecscreen.engine.structures.sequences import Read


@dataclass(frozen=True)
class Clean:
    read_id: str

    @property
    def contaminated(self) -> bool:
        return False


@dataclass(frozen=True)
class Contaminated:
    read_id: str
    best: AlignmentResult
    alternatives: tuple[AlignmentResult, ...] = field(default_factory=tuple)
    stitched: Union[StitchedAlignment, None] = None

    @property
    def contaminated(self) -> bool:
        return True

    @property
    def alignments(self) -> tuple[AlignmentResult, ...]:
        return (self.best, *self.alternatives)


Classification = Union[Clean, Contaminated]


class ReadState(Enum):
    CLASSIFIED = "classified"
    AGGREGATED = "aggregated"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ReadOutcome:
    read: Read
    state: ReadState
    classification: Union[Classification, None] = None
    trim: Union[tuple[int, int], None] = None
    candidates: int = 0
    error: Union[str, None] = None

    @property
    def read_id(self) -> str:
        return self.read.identifier

    @property
    def skipped(self) -> bool:
        return self.state is ReadState.SKIPPED
