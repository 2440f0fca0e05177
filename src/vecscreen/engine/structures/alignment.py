from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from vecscreen.engine.exceptions.screening import AlignmentInvariantError
from vecscreen.engine.structures.sequences import Orientation


class EditOperation(Enum):
    MATCH = "="
    MISMATCH = "X"
    INSERTION = "I"
    DELETION = "D"

    @property
    def consumes_read(self) -> bool:
        return self is not EditOperation.DELETION

    @property
    def consumes_reference(self) -> bool:
        return self is not EditOperation.INSERTION


@dataclass(frozen=True)
class EditRun:
    operation: EditOperation
    length: int

    def __str__(self):
        return f"{self.length}{self.operation.value}"


def run_length_encode(operations: Iterable[EditOperation]) -> tuple[EditRun, ...]:
    runs: list[EditRun] = []
    for operation in operations:
        if runs and runs[-1].operation is operation:
            runs[-1] = EditRun(operation, runs[-1].length + 1)
        else:
            runs.append(EditRun(operation, 1))
    return tuple(runs)


def consumed_lengths(edits: Sequence[EditRun]) -> tuple[int, int]:
    read_length = sum(run.length for run in edits if run.operation.consumes_read)
    reference_length = sum(run.length for run in edits if run.operation.consumes_reference)
    return read_length, reference_length


class JumpKind(Enum):
    """How a stitched alignment moves from one segment to the next, in order of preference on ties."""
    SAME_STRAND = "same"
    STRAND_FLIP = "flip"
    INTER_REFERENCE = "inter"

    @property
    def preference(self) -> int:
        return list(JumpKind).index(self)


@dataclass(frozen=True)
class ScoringScheme:
    match: int = 2
    mismatch: int = -3
    gap_open: int = -5
    gap_extend: int = -2
    jump_same_strand: int = -10
    jump_strand_flip: int = -10
    jump_inter_reference: int = -10

    def substitution(self, read_base: str, reference_base: str) -> int:
        if read_base == reference_base and read_base != "N":
            return self.match
        return self.mismatch

    def jump(self, kind: JumpKind) -> int:
        if kind is JumpKind.SAME_STRAND:
            return self.jump_same_strand
        if kind is JumpKind.STRAND_FLIP:
            return self.jump_strand_flip
        return self.jump_inter_reference


@dataclass(frozen=True)
class AlignmentStats:
    percent_identity: float
    mismatches: int
    gaps: int
    score: int


@dataclass(frozen=True)
class AlignmentResult:
    reference_id: int
    orientation: Orientation
    score: int
    read_start: int
    read_end: int
    reference_start: int
    reference_end: int
    edits: tuple[EditRun, ...] = field(default_factory=tuple)
    read_length: int = 0

    def __post_init__(self):
        read_span, reference_span = consumed_lengths(self.edits)
        if read_span != self.read_span or reference_span != self.reference_span:
            raise AlignmentInvariantError(
                f"Edits {self.cigar()} consume {read_span} read and {reference_span} reference bases, "
                f"but the alignment spans {self.read_span} and {self.reference_span}")

    @classmethod
    def empty(cls, reference_id: int = -1, orientation: Orientation = Orientation.FORWARD, read_length: int = 0):
        return cls(reference_id, orientation, 0, 0, 0, 0, 0, tuple(), read_length)

    @property
    def read_span(self) -> int:
        return self.read_end - self.read_start

    @property
    def reference_span(self) -> int:
        return self.reference_end - self.reference_start

    @property
    def aligned(self) -> bool:
        return self.score > 0 and len(self.edits) > 0

    def _count(self, *operations: EditOperation) -> int:
        return sum(run.length for run in self.edits if run.operation in operations)

    @property
    def matches(self) -> int:
        return self._count(EditOperation.MATCH)

    @property
    def mismatches(self) -> int:
        return self._count(EditOperation.MISMATCH)

    @property
    def gaps(self) -> int:
        return self._count(EditOperation.INSERTION, EditOperation.DELETION)

    @property
    def length(self) -> int:
        return sum(run.length for run in self.edits)

    @property
    def percent_identity(self) -> float:
        if self.length == 0:
            return 0.0
        return self.matches / self.length

    def stats(self) -> AlignmentStats:
        return AlignmentStats(
            percent_identity=self.percent_identity,
            mismatches=self.mismatches,
            gaps=self.gaps,
            score=self.score
        )

    def cigar(self, soft_clips: bool = False) -> str:
        body = "".join(str(run) for run in self.edits)
        if not soft_clips or not self.edits:
            return body
        leading = f"{self.read_start}S" if self.read_start > 0 else ""
        trailing_length = self.read_length - self.read_end
        trailing = f"{trailing_length}S" if trailing_length > 0 else ""
        return leading + body + trailing


@dataclass(frozen=True)
class StitchedAlignment:
    """Non-overlapping alignments chained along the read, one jump between each pair of neighbours."""
    segments: tuple[AlignmentResult, ...]
    jumps: tuple[JumpKind, ...]
    score: int

    def __post_init__(self):
        if len(self.jumps) != len(self.segments) - 1:
            raise AlignmentInvariantError(
                f"{len(self.segments)} stitched segments need {len(self.segments) - 1} jumps, got {len(self.jumps)}")
        for previous, following in zip(self.segments, self.segments[1:]):
            if previous.read_end > following.read_start:
                raise AlignmentInvariantError(
                    f"Stitched segments overlap on the read at {following.read_start}-{previous.read_end}")

    @property
    def read_start(self) -> int:
        return self.segments[0].read_start

    @property
    def read_end(self) -> int:
        return self.segments[-1].read_end

    @property
    def aligned_bases(self) -> int:
        return sum(segment.read_span for segment in self.segments)
