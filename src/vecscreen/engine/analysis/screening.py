import asyncio
import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import AbstractContextManager
from dataclasses import dataclass, replace
from itertools import islice
from typing import Any, AsyncGenerator, AsyncIterable, Iterable, Sequence, Union

from vecscreen.engine.analysis import aggregator
from vecscreen.engine.analysis.aligners import align_candidate
from vecscreen.engine.analysis.classifier import classify, trimming_coordinates
from vecscreen.engine.analysis.index import ReferenceIndex
from vecscreen.engine.analysis.seeding import find_candidates
from vecscreen.engine.config import ScreeningConfig
from vecscreen.engine.exceptions.screening import ConfigError, MalformedInputError
from vecscreen.engine.structures.classification import Clean, ReadOutcome, ReadState
from vecscreen.engine.structures.sequences import Read
from vecscreen.engine.structures.stats import AggregateStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScreeningResult:
    stats: AggregateStats

    @property
    def complete(self) -> bool:
        return not self.stats.incomplete


def screen_read(read: Read, index: ReferenceIndex, config: ScreeningConfig) -> ReadOutcome:
    """Runs one read from Pending to Classified, or to Skipped when it is malformed."""
    try:
        read = read.validated()
    except MalformedInputError as e:
        logger.warning("Skipping read: %s", e)
        return ReadOutcome(read, ReadState.SKIPPED, error=e.reason)

    candidates = find_candidates(
        read, index, config.seed_k, config.max_candidates, config.seed_stride, config.diagonal_tolerance)
    if len(candidates) == 0:
        return ReadOutcome(read, ReadState.CLASSIFIED, Clean(read.identifier), trim=(0, len(read)))

    results = [align_candidate(read, index, candidate, config.scoring, config.band_width) for candidate in candidates]
    classification = classify(read, results, config.min_score, config.scoring)
    return ReadOutcome(
        read, ReadState.CLASSIFIED, classification,
        trim=trimming_coordinates(read, classification),
        candidates=len(candidates))


class ScreeningEngine(AbstractContextManager):
    def __enter__(self):
        self._thread_pool = ThreadPoolExecutor(self._config.workers, thread_name_prefix="vector-screening")
        return self

    def __init__(self, index: ReferenceIndex, config: ScreeningConfig, max_batches_in_flight: Union[int, None] = None):
        if config.seed_k != index.k:
            raise ConfigError("seed_k", f"configured as {config.seed_k} but the index holds {index.k}-mers")
        self._index = index
        self._config = config
        self._max_batches_in_flight = max_batches_in_flight or config.workers * 2
        self._stop = threading.Event()
        self._stats = aggregator.new_stats(config.offset_bin_width)

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def cancel(self):
        """Workers finish the read in hand, remaining input is discarded."""
        if not self._stop.is_set():
            logger.warning("Screening cancelled; the aggregate will be marked incomplete.")
        self._stop.set()

    def work(self, reads: Sequence[Read]) -> tuple[list[ReadOutcome], AggregateStats]:
        partial = aggregator.new_stats(self._config.offset_bin_width)
        outcomes = []
        for read in reads:
            if self._stop.is_set():
                partial.incomplete = True
                break
            outcome = screen_read(read, self._index, self._config)
            if outcome.skipped:
                aggregator.record_skipped(partial)
                outcomes.append(outcome)
                continue
            aggregator.update(partial, outcome.read, outcome.classification, outcome.trim)  # type: ignore
            outcomes.append(replace(outcome, state=ReadState.AGGREGATED))
        return outcomes, partial

    async def _batches(self, reads: Union[Iterable[Read], AsyncIterable[Read]]) -> AsyncGenerator[list[Read], Any]:
        if isinstance(reads, AsyncIterable):
            batch: list[Read] = []
            async for read in reads:
                batch.append(read)
                if len(batch) >= self._config.batch_size:
                    yield batch
                    batch = []
            if batch:
                yield batch
        else:
            iterator = iter(reads)
            while True:
                batch = list(islice(iterator, self._config.batch_size))
                if not batch:
                    break
                yield batch

    async def _collect(self, work: Future) -> list[ReadOutcome]:
        outcomes, partial = await asyncio.wrap_future(work)
        self._stats = aggregator.merge(self._stats, partial)
        logger.debug("Merged batch of %d reads (%d screened so far)", len(outcomes), self._stats.total_reads)
        return outcomes

    async def screen(self, reads: Union[Iterable[Read], AsyncIterable[Read]]) -> AsyncGenerator[ReadOutcome, Any]:
        """Yields one outcome per screened read, in input order."""
        in_flight: deque[Future] = deque()
        try:
            async for batch in self._batches(reads):
                if self._stop.is_set():
                    self._stats.incomplete = True
                    break
                in_flight.append(self._thread_pool.submit(self.work, batch))
                while len(in_flight) >= self._max_batches_in_flight:
                    for outcome in await self._collect(in_flight.popleft()):
                        yield outcome
            while in_flight:
                for outcome in await self._collect(in_flight.popleft()):
                    yield outcome
        finally:
            for work in in_flight:
                work.cancel()

    def result(self) -> ScreeningResult:
        stats = aggregator.finalize(self._stats, incomplete=self._stop.is_set())
        logger.info("Screened %d reads: %d contaminated, %d skipped%s", stats.total_reads, stats.contaminated_reads,
                    stats.skipped_reads, "" if not stats.incomplete else " (incomplete)")
        return ScreeningResult(stats)

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()

    def shutdown(self):
        self._thread_pool.shutdown(wait=True, cancel_futures=True)
