import csv
from os import PathLike
from typing import AsyncIterable, Iterable, Mapping, Union

from vecscreen.engine.analysis.aggregator import summarize
from vecscreen.engine.analysis.index import ReferenceIndex
from vecscreen.engine.structures.alignment import AlignmentResult
from vecscreen.engine.structures.classification import ReadOutcome
from vecscreen.engine.structures.stats import AggregateStats

READ_REPORT_HEADER = [
    "read_id", "status", "mean_quality", "reference", "orientation", "score", "read_start", "read_end",
    "reference_start", "reference_end", "cigar", "percent_identity", "mismatches", "gaps", "alternatives",
    "stitched", "stitched_score", "trim_start", "trim_end", "error"
]


def _segment_label(result: AlignmentResult, index: ReferenceIndex) -> str:
    return f"{index.reference(result.reference_id).name}:{result.orientation.value}:{result.read_start}-{result.read_end}"


def outcome_to_row(outcome: ReadOutcome, index: ReferenceIndex) -> Mapping[str, Union[str, int, float]]:
    row: dict[str, Union[str, int, float]] = {"read_id": outcome.read_id}
    if outcome.skipped or outcome.classification is None:
        row["status"] = "skipped"
        row["error"] = outcome.error or ""
        return row
    mean_quality = outcome.read.mean_quality()
    if mean_quality is not None:
        row["mean_quality"] = round(mean_quality, 2)
    if outcome.trim is not None:
        row["trim_start"], row["trim_end"] = outcome.trim
    if not outcome.classification.contaminated:
        row["status"] = "clean"
        return row
    best = outcome.classification.best
    best_stats = best.stats()
    row.update({
        "status": "contaminated",
        "reference": index.reference(best.reference_id).name,
        "orientation": best.orientation.value,
        "score": best.score,
        "read_start": best.read_start,
        "read_end": best.read_end,
        "reference_start": best.reference_start,
        "reference_end": best.reference_end,
        "cigar": best.cigar(soft_clips=True),
        "percent_identity": round(best_stats.percent_identity, 4),
        "mismatches": best_stats.mismatches,
        "gaps": best_stats.gaps,
        "alternatives": ";".join(
            f"{index.reference(alternative.reference_id).name}:{alternative.orientation.value}:{alternative.score}"
            for alternative in outcome.classification.alternatives)
    })
    stitched = outcome.classification.stitched
    if stitched is not None:
        row["stitched"] = ">".join(_segment_label(segment, index) for segment in stitched.segments)
        row["stitched_score"] = stitched.score
    return row


def _trimmed_fastq_record(outcome: ReadOutcome) -> Union[str, None]:
    if outcome.skipped or outcome.trim is None:
        return None
    start, end = outcome.trim
    if end <= start:
        return None
    read = outcome.read
    quality = read.quality[start:end] if read.quality else "I" * (end - start)
    return f"@{read.identifier}\n{read.sequence[start:end]}\n+\n{quality}\n"


async def write_outcomes(outcomes: Union[AsyncIterable[ReadOutcome], Iterable[ReadOutcome]],
                         handle: Union[str, bytes, PathLike[str], PathLike[bytes]], index: ReferenceIndex,
                         trimmed_handle: Union[str, bytes, PathLike[str], PathLike[bytes], None] = None) -> int:
    written = 0
    trimmed_file = open(trimmed_handle, "w") if trimmed_handle is not None else None
    try:
        with open(handle, "w", newline='') as filehandle:
            writer = csv.DictWriter(filehandle, fieldnames=READ_REPORT_HEADER)
            writer.writeheader()
            if isinstance(outcomes, AsyncIterable):
                async for outcome in outcomes:
                    writer.writerow(outcome_to_row(outcome, index))
                    written += 1
                    if trimmed_file is not None:
                        trimmed_file.write(_trimmed_fastq_record(outcome) or "")
            else:
                for outcome in outcomes:
                    writer.writerow(outcome_to_row(outcome, index))
                    written += 1
                    if trimmed_file is not None:
                        trimmed_file.write(_trimmed_fastq_record(outcome) or "")
    finally:
        if trimmed_file is not None:
            trimmed_file.close()
    return written


def write_reference_summary_as_csv(stats: AggregateStats, index: ReferenceIndex,
                                   handle: Union[str, bytes, PathLike[str], PathLike[bytes]]):
    header = ["reference_id", "reference", "length", "circular", "hits", "hit_fraction", "peak_offset", "peak_offset_hits"]
    with open(handle, "w", newline='') as filehandle:
        writer = csv.DictWriter(filehandle, fieldnames=header)
        writer.writeheader()
        for reference in index.references:
            hits = stats.reference_hits.get(reference.id, 0)
            offsets = stats.offset_histograms.get(reference.id)
            peak_offset, peak_hits = ("", 0)
            if offsets:
                peak_offset, peak_hits = min(offsets.items(), key=lambda item: (-item[1], item[0]))
            writer.writerow({
                "reference_id": reference.id,
                "reference": reference.name,
                "length": len(reference),
                "circular": reference.circular,
                "hits": hits,
                "hit_fraction": round(hits / stats.total_reads, 6) if stats.total_reads else 0.0,
                "peak_offset": peak_offset,
                "peak_offset_hits": peak_hits
            })


def write_summary_as_csv(stats: AggregateStats, handle: Union[str, bytes, PathLike[str], PathLike[bytes]]):
    with open(handle, "w", newline='') as filehandle:
        writer = csv.writer(filehandle)
        writer.writerow(["metric", "value"])
        for metric, value in summarize(stats).items():
            writer.writerow([metric, value])
