from dataclasses import replace
from typing import Sequence, Union

from vecscreen.engine.analysis.index import ReferenceIndex
from vecscreen.engine.analysis.seeding import Candidate
from vecscreen.engine.exceptions.screening import AlignmentInvariantError
from vecscreen.engine.structures.alignment import AlignmentResult, EditOperation, EditRun, ScoringScheme, run_length_encode
from vecscreen.engine.structures.sequences import Orientation, Read

_NEGATIVE_INFINITY = -(1 << 40)

# Traceback byte layout: two bits for the H source, one bit each for E/F extension
_FROM_START = 0
_FROM_DIAGONAL = 1
_FROM_DELETION = 2
_FROM_INSERTION = 3
_H_SOURCE = 0b0011
_E_EXTENDED = 0b0100
_F_EXTENDED = 0b1000


def rescore(edits: Sequence[EditRun], read_window: str, reference_window: str, read_start: int, reference_start: int,
            scoring: ScoringScheme) -> int:
    score = 0
    i, j = read_start, reference_start
    for run in edits:
        if run.operation is EditOperation.INSERTION or run.operation is EditOperation.DELETION:
            score += scoring.gap_open + (run.length - 1) * scoring.gap_extend
        else:
            for _ in range(run.length):
                score += scoring.substitution(read_window[i], reference_window[j])
                i += 1
                j += 1
            continue
        if run.operation is EditOperation.INSERTION:
            i += run.length
        else:
            j += run.length
    return score


def align(read_window: str, reference_window: str, scoring: ScoringScheme, diagonal: int = 0,
          band_width: Union[int, None] = None) -> AlignmentResult:
    """Banded Smith-Waterman alignment with affine gaps (Gotoh).

    Cells are restricted to |(i - j) - diagonal| <= band_width where i and j are
    read and reference offsets. A gap of length L scores
    gap_open + (L - 1) * gap_extend. The best cell is the highest score, ties
    going to the cell nearest the band diagonal, then the smallest read offset,
    then the smallest reference offset. Returned coordinates are offsets into the
    two windows; reference id and orientation are left for the caller to set.
    """
    n = len(read_window)
    m = len(reference_window)
    if n == 0 or m == 0:
        return AlignmentResult.empty(read_length=n)
    banded = band_width is not None and band_width < max(n, m)

    match_score = scoring.match
    mismatch_score = scoring.mismatch
    gap_open = scoring.gap_open
    gap_extend = scoring.gap_extend

    # Out-of-band H cells read as 0 so an alignment may start at any in-band cell
    h_previous = [0] * (m + 1)
    f_previous = [_NEGATIVE_INFINITY] * (m + 1)
    traceback = [bytes(m + 1)]
    best_score = 0
    best_key = None
    best_cell = (0, 0)

    for i in range(1, n + 1):
        read_base = read_window[i - 1]
        if banded:
            low = max(1, i - diagonal - band_width)
            high = min(m, i - diagonal + band_width)
        else:
            low, high = 1, m
        h_current = [0] * (m + 1)
        f_current = [_NEGATIVE_INFINITY] * (m + 1)
        pointers = bytearray(m + 1)
        e = _NEGATIVE_INFINITY
        for j in range(low, high + 1):
            e_open = h_current[j - 1] + gap_open
            e_extend = e + gap_extend
            if e_extend > e_open:
                e = e_extend
                pointer = _E_EXTENDED
            else:
                e = e_open
                pointer = 0

            f_open = h_previous[j] + gap_open
            f_extend = f_previous[j] + gap_extend
            if f_extend > f_open:
                f = f_extend
                pointer |= _F_EXTENDED
            else:
                f = f_open
            f_current[j] = f

            reference_base = reference_window[j - 1]
            if read_base == reference_base and read_base != "N":
                h = h_previous[j - 1] + match_score
            else:
                h = h_previous[j - 1] + mismatch_score
            source = _FROM_DIAGONAL
            if f > h:
                h = f
                source = _FROM_INSERTION
            if e > h:
                h = e
                source = _FROM_DELETION
            if h <= 0:
                h = 0
                source = _FROM_START
            h_current[j] = h
            pointers[j] = pointer | source

            if h > 0 and h >= best_score:
                key = (abs(i - j - diagonal), i, j)
                if h > best_score or key < best_key:
                    best_score = h
                    best_key = key
                    best_cell = (i, j)
        traceback.append(bytes(pointers))
        h_previous = h_current
        f_previous = f_current

    if best_score <= 0:
        return AlignmentResult.empty(read_length=n)

    operations: list[EditOperation] = []
    i, j = best_cell
    state = _FROM_DIAGONAL
    while True:
        pointer = traceback[i][j]
        if state == _FROM_DELETION:
            operations.append(EditOperation.DELETION)
            state = _FROM_DELETION if pointer & _E_EXTENDED else _FROM_DIAGONAL
            j -= 1
            continue
        if state == _FROM_INSERTION:
            operations.append(EditOperation.INSERTION)
            state = _FROM_INSERTION if pointer & _F_EXTENDED else _FROM_DIAGONAL
            i -= 1
            continue
        source = pointer & _H_SOURCE
        if source == _FROM_START:
            break
        if source == _FROM_DIAGONAL:
            read_base = read_window[i - 1]
            if read_base == reference_window[j - 1] and read_base != "N":
                operations.append(EditOperation.MATCH)
            else:
                operations.append(EditOperation.MISMATCH)
            i -= 1
            j -= 1
        else:
            state = source
    operations.reverse()
    edits = run_length_encode(operations)

    end_i, end_j = best_cell
    result = AlignmentResult(
        reference_id=-1,
        orientation=Orientation.FORWARD,
        score=best_score,
        read_start=i,
        read_end=end_i,
        reference_start=j,
        reference_end=end_j,
        edits=edits,
        read_length=n
    )
    traced_score = rescore(edits, read_window, reference_window, i, j, scoring)
    if traced_score != best_score:
        raise AlignmentInvariantError(
            f"Traceback {result.cigar()} scores {traced_score} but the matrix reported {best_score}")
    return result


def _forward_coordinates(start: int, span: int, length: int, orientation: Orientation, circular: bool) -> tuple[int, int]:
    if orientation is Orientation.REVERSE:
        start = length - start - span
    if circular:
        start %= length
    return start, start + span


def align_candidate(read: Read, index: ReferenceIndex, candidate: Candidate, scoring: ScoringScheme,
                    band_width: Union[int, None]) -> AlignmentResult:
    """Aligns a read against the reference region implied by a seed candidate.

    Reverse candidates are aligned against the reverse complement of the
    reference. Reported reference coordinates are on the forward strand.
    """
    reference = index.reference(candidate.reference_id)
    strand = index.oriented_sequence(candidate.reference_id, candidate.orientation)
    length = len(strand)
    read_length = len(read)
    pad = band_width if band_width is not None else max(read_length, length)

    if reference.circular:
        projected_start = -candidate.diagonal
        shift = length * (pad // length + 1)
        copies = (shift + projected_start + read_length + pad) // length + 1
        text = strand * copies
        window_start = shift + projected_start - pad
        window_end = shift + projected_start + read_length + pad
        diagonal = -(shift + projected_start)
    else:
        text = strand
        diagonal = candidate.diagonal
        window_start = max(0, -diagonal - pad)
        window_end = min(length, read_length - diagonal + pad)
    if window_start >= window_end:
        return AlignmentResult.empty(candidate.reference_id, candidate.orientation, read_length)

    local = align(read.sequence, text[window_start:window_end], scoring, diagonal + window_start, band_width)
    if not local.aligned:
        return AlignmentResult.empty(candidate.reference_id, candidate.orientation, read_length)
    reference_start, reference_end = _forward_coordinates(
        window_start + local.reference_start, local.reference_span, length, candidate.orientation, reference.circular)
    return replace(
        local,
        reference_id=candidate.reference_id,
        orientation=candidate.orientation,
        reference_start=reference_start,
        reference_end=reference_end
    )
