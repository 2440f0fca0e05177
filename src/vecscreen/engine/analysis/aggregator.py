from collections import Counter
from typing import Any, Union

import numpy as np

from vecscreen.engine.structures.classification import Classification
from vecscreen.engine.structures.sequences import Read
from vecscreen.engine.structures.stats import AggregateStats


def new_stats(offset_bin_width: int = 1) -> AggregateStats:
    return AggregateStats(offset_bin_width=offset_bin_width)


def _ensure_mutable(stats: AggregateStats):
    if stats.finalized:
        raise RuntimeError("Aggregate statistics were finalized and can no longer be updated.")


def update(stats: AggregateStats, read: Read, classification: Classification,
           trim: Union[tuple[int, int], None] = None) -> AggregateStats:
    """Folds one read into an accumulator owned by the calling worker."""
    _ensure_mutable(stats)
    stats.total_reads += 1
    stats.total_bases += len(read)
    if trim is not None:
        stats.trimmed_bases += len(read) - (trim[1] - trim[0])
    if classification.contaminated:
        best = classification.best
        stats.contaminated_reads += 1
        if classification.stitched is not None:
            stats.stitched_reads += 1
        stats.vector_bases += best.read_span
        stats.score_histogram[best.score] += 1
        stats.reference_hits[best.reference_id] += 1
        stats.orientation_hits[best.orientation.value] += 1
        offset_bin = best.reference_start // stats.offset_bin_width * stats.offset_bin_width
        stats.offset_histograms.setdefault(best.reference_id, Counter())[offset_bin] += 1
    return stats


def record_skipped(stats: AggregateStats) -> AggregateStats:
    _ensure_mutable(stats)
    stats.skipped_reads += 1
    return stats


def merge(left: AggregateStats, right: AggregateStats) -> AggregateStats:
    if left.offset_bin_width != right.offset_bin_width:
        raise ValueError(
            f"Cannot merge statistics binned at {left.offset_bin_width} and {right.offset_bin_width} bp.")
    offset_histograms: dict[int, Counter] = {}
    for reference_id in sorted(set(left.offset_histograms) | set(right.offset_histograms)):
        offset_histograms[reference_id] = (
            left.offset_histograms.get(reference_id, Counter()) + right.offset_histograms.get(reference_id, Counter()))
    return AggregateStats(
        total_reads=left.total_reads + right.total_reads,
        contaminated_reads=left.contaminated_reads + right.contaminated_reads,
        skipped_reads=left.skipped_reads + right.skipped_reads,
        stitched_reads=left.stitched_reads + right.stitched_reads,
        total_bases=left.total_bases + right.total_bases,
        vector_bases=left.vector_bases + right.vector_bases,
        trimmed_bases=left.trimmed_bases + right.trimmed_bases,
        score_histogram=left.score_histogram + right.score_histogram,
        reference_hits=left.reference_hits + right.reference_hits,
        orientation_hits=left.orientation_hits + right.orientation_hits,
        offset_histograms=offset_histograms,
        offset_bin_width=left.offset_bin_width,
        incomplete=left.incomplete or right.incomplete,
    )


def finalize(stats: AggregateStats, incomplete: bool = False) -> AggregateStats:
    stats.incomplete = stats.incomplete or incomplete
    stats.finalized = True
    return stats


def summarize(stats: AggregateStats) -> dict[str, Any]:
    scores = np.repeat(
        np.fromiter(stats.score_histogram.keys(), dtype=np.int64, count=len(stats.score_histogram)),
        np.fromiter(stats.score_histogram.values(), dtype=np.int64, count=len(stats.score_histogram)))
    return {
        "total_reads": stats.total_reads,
        "contaminated_reads": stats.contaminated_reads,
        "clean_reads": stats.clean_reads,
        "skipped_reads": stats.skipped_reads,
        "stitched_reads": stats.stitched_reads,
        "contamination_rate": stats.contamination_rate,
        "vector_base_fraction": stats.vector_bases / stats.total_bases if stats.total_bases else 0.0,
        "trimmed_bases": stats.trimmed_bases,
        "mean_score": float(np.mean(scores)) if scores.size else 0.0,
        "median_score": float(np.median(scores)) if scores.size else 0.0,
        "max_score": int(np.max(scores)) if scores.size else 0,
        "complete": not stats.incomplete,
    }
