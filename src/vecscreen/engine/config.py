from dataclasses import dataclass, field
from typing import Union

from vecscreen.engine.exceptions.screening import ConfigError
from vecscreen.engine.structures.alignment import ScoringScheme

DEFAULT_SEED_K = 16
DEFAULT_MAX_CANDIDATES = 8
DEFAULT_SEED_STRIDE = 1
DEFAULT_DIAGONAL_TOLERANCE = 8
DEFAULT_BAND_WIDTH = 16
DEFAULT_MIN_SCORE = 30
DEFAULT_WORKERS = 4
DEFAULT_BATCH_SIZE = 256
DEFAULT_OFFSET_BIN_WIDTH = 10


def validate_scoring(scoring: ScoringScheme):
    if scoring.match <= 0:
        raise ConfigError("match", f"must be positive, got {scoring.match}")
    for name in ("mismatch", "gap_open", "gap_extend"):
        value = getattr(scoring, name)
        if value >= 0:
            raise ConfigError(name, f"must be a negative score, got {value}")
    for name in ("jump_same_strand", "jump_strand_flip", "jump_inter_reference"):
        value = getattr(scoring, name)
        if value > 0:
            raise ConfigError(name, f"a jump cannot be rewarded, got {value}")


@dataclass(frozen=True)
class ScreeningConfig:
    seed_k: int = DEFAULT_SEED_K
    max_candidates: int = DEFAULT_MAX_CANDIDATES
    seed_stride: int = DEFAULT_SEED_STRIDE
    diagonal_tolerance: int = DEFAULT_DIAGONAL_TOLERANCE
    band_width: Union[int, None] = DEFAULT_BAND_WIDTH
    scoring: ScoringScheme = field(default_factory=ScoringScheme)
    min_score: int = DEFAULT_MIN_SCORE
    workers: int = DEFAULT_WORKERS
    batch_size: int = DEFAULT_BATCH_SIZE
    offset_bin_width: int = DEFAULT_OFFSET_BIN_WIDTH

    def __post_init__(self):
        if self.seed_k <= 0:
            raise ConfigError("seed_k", f"must be positive, got {self.seed_k}")
        for name in ("max_candidates", "seed_stride", "batch_size", "offset_bin_width"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigError(name, f"must be positive, got {value}")
        if self.workers <= 0:
            raise ConfigError("workers", f"parallelism must be at least 1, got {self.workers}")
        if self.diagonal_tolerance < 0:
            raise ConfigError("diagonal_tolerance", f"must not be negative, got {self.diagonal_tolerance}")
        if self.band_width is not None and self.band_width < 0:
            raise ConfigError("band_width", f"must not be negative, got {self.band_width}")
        if self.min_score <= 0:
            raise ConfigError("min_score", f"must be positive, got {self.min_score}")
        validate_scoring(self.scoring)
