from typing import Iterable, Sequence, Union

from vecscreen.engine.structures.alignment import AlignmentResult, JumpKind, ScoringScheme, StitchedAlignment
from vecscreen.engine.structures.classification import Classification, Clean, Contaminated
from vecscreen.engine.structures.sequences import Read

# (score, segment positions, jumps) of the best chain ending at a segment
_Chain = tuple[int, tuple[int, ...], tuple[JumpKind, ...]]


def _best_key(result: AlignmentResult):
    return (-result.score, -result.read_span, result.reference_id)


def _alternative_key(result: AlignmentResult):
    return (-result.score, result.reference_id, -result.read_span, result.read_start, result.orientation)


def _chain_key(chain: _Chain):
    score, positions, jumps = chain
    return (-score, len(jumps), tuple(jump.preference for jump in jumps), positions)


def jump_kind(previous: AlignmentResult, following: AlignmentResult) -> JumpKind:
    if previous.reference_id != following.reference_id:
        return JumpKind.INTER_REFERENCE
    if previous.orientation is not following.orientation:
        return JumpKind.STRAND_FLIP
    return JumpKind.SAME_STRAND


def stitch(results: Sequence[AlignmentResult], scoring: ScoringScheme) -> Union[StitchedAlignment, None]:
    """Chains alignments that follow each other along the read into one stitched alignment.

    Each move to the next segment pays the jump score for staying on the same
    reference strand, flipping strand, or changing reference. Among chains of
    equal score the one with fewer jumps wins, then the one whose jumps are
    preferred in that same order. Returns None when no chain of two or more
    segments scores above the best single alignment.
    """
    segments = sorted(results, key=lambda result: (result.read_start, result.read_end, _alternative_key(result)))
    chains: list[_Chain] = []
    for position, segment in enumerate(segments):
        best: _Chain = (segment.score, (position,), ())
        for previous_position in range(position):
            previous = segments[previous_position]
            if previous.read_end > segment.read_start:
                continue
            kind = jump_kind(previous, segment)
            score, positions, jumps = chains[previous_position]
            extended: _Chain = (score + scoring.jump(kind) + segment.score, positions + (position,), jumps + (kind,))
            if _chain_key(extended) < _chain_key(best):
                best = extended
        chains.append(best)

    stitched = [chain for chain in chains if len(chain[1]) > 1]
    if not stitched:
        return None
    score, positions, jumps = min(stitched, key=_chain_key)
    if score <= max(segment.score for segment in segments):
        return None
    return StitchedAlignment(tuple(segments[position] for position in positions), jumps, score)


def classify(read: Read, results: Iterable[AlignmentResult], min_score: int,
             scoring: Union[ScoringScheme, None] = None) -> Classification:
    """Picks the best qualifying alignment, keeping the rest as alternatives.

    Candidates split by a long indel can reach the same alignment twice, so
    identical results are reported once. When a scoring scheme is given, the
    qualifying alignments are also stitched.
    """
    qualifying = list(dict.fromkeys(result for result in results if result.score >= min_score and result.aligned))
    if len(qualifying) == 0:
        return Clean(read.identifier)
    best = min(qualifying, key=_best_key)
    alternatives = [result for result in qualifying if result is not best]
    alternatives.sort(key=_alternative_key)
    stitched = stitch(qualifying, scoring) if scoring is not None and len(qualifying) > 1 else None
    return Contaminated(read.identifier, best, tuple(alternatives), stitched)


def trimming_coordinates(read: Read, classification: Classification) -> tuple[int, int]:
    """Longest read interval free of vector alignments, earliest on ties."""
    if not classification.contaminated:
        return 0, len(read)
    covered = sorted((result.read_start, result.read_end) for result in classification.alignments)
    best = (0, 0)
    cursor = 0
    for start, end in covered:
        if start - cursor > best[1] - best[0]:
            best = (cursor, start)
        cursor = max(cursor, end)
    if len(read) - cursor > best[1] - best[0]:
        best = (cursor, len(read))
    return best
