from collections import Counter
from dataclasses import dataclass, field


@dataclass
class AggregateStats:
    total_reads: int = 0
    contaminated_reads: int = 0
    skipped_reads: int = 0
    stitched_reads: int = 0
    total_bases: int = 0
    vector_bases: int = 0
    trimmed_bases: int = 0
    score_histogram: Counter = field(default_factory=Counter)
    reference_hits: Counter = field(default_factory=Counter)
    orientation_hits: Counter = field(default_factory=Counter)
    offset_histograms: dict[int, Counter] = field(default_factory=dict)
    offset_bin_width: int = 1
    incomplete: bool = False
    finalized: bool = False

    @property
    def clean_reads(self) -> int:
        return self.total_reads - self.contaminated_reads

    @property
    def contamination_rate(self) -> float:
        if self.total_reads == 0:
            return 0.0
        return self.contaminated_reads / self.total_reads

    def counts(self) -> tuple:
        """Comparable snapshot of every counter and histogram, ignoring lifecycle flags."""
        return (
            self.total_reads,
            self.contaminated_reads,
            self.skipped_reads,
            self.stitched_reads,
            self.total_bases,
            self.vector_bases,
            self.trimmed_bases,
            dict(self.score_histogram),
            dict(self.reference_hits),
            dict(self.orientation_hits),
            {reference_id: dict(histogram) for reference_id, histogram in self.offset_histograms.items()},
        )
