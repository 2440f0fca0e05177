import asyncio
import datetime
import logging
import signal

from vecscreen.cli import program
from vecscreen.engine import config as defaults
from vecscreen.engine.analysis.index import build_index
from vecscreen.engine.analysis.screening import ScreeningEngine
from vecscreen.engine.config import ScreeningConfig
from vecscreen.engine.exceptions.screening import ConfigError, MalformedInputError
from vecscreen.engine.reading import read_references, read_sequencing_reads
from vecscreen.engine.structures.alignment import ScoringScheme
from vecscreen.engine.writing import write_outcomes, write_reference_summary_as_csv, write_summary_as_csv

logger = logging.getLogger(__name__)

parser = program.subparsers.add_parser("screen", help="Screen sequencing reads for vector contamination.")

parser.add_argument(
    "vectors",
    help="FASTA file with the vector reference sequences."
)

parser.add_argument(
    "reads",
    help="FASTQ (or FASTA) file of reads to screen. Gzipped files are accepted."
)

parser.add_argument(
    "out",
    nargs="?",
    default=f'./{datetime.datetime.now().strftime(r"%Y%m%d%H%M%S")}',
    help="The output prefix. Reports are written to <out>_reads.csv, <out>_references.csv and <out>_summary.csv."
)

parser.add_argument(
    "--seed-length", "-k",
    dest="seed_k",
    default=defaults.DEFAULT_SEED_K,
    type=int,
    help="Seed (k-mer) length used for indexing and read lookups."
)

parser.add_argument(
    "--seed-stride",
    dest="seed_stride",
    default=defaults.DEFAULT_SEED_STRIDE,
    type=int,
    help="Distance between consecutive read seeds. Larger is faster and less sensitive."
)

parser.add_argument(
    "--max-candidates",
    dest="max_candidates",
    default=defaults.DEFAULT_MAX_CANDIDATES,
    type=int,
    help="Maximum number of seeded regions aligned per read."
)

parser.add_argument(
    "--diagonal-tolerance",
    dest="diagonal_tolerance",
    default=defaults.DEFAULT_DIAGONAL_TOLERANCE,
    type=int,
    help="Seeds whose diagonals differ by at most this much are merged into one candidate."
)

parser.add_argument(
    "--band-width", "-w",
    dest="band_width",
    default=defaults.DEFAULT_BAND_WIDTH,
    type=int,
    help="Alignment band width around the seeded diagonal."
)

parser.add_argument(
    "--full-band",
    action="store_true",
    dest="full_band",
    default=False,
    help="Disable banding and align over the full reference window."
)

parser.add_argument("--match", dest="match", default=ScoringScheme.match, type=int, help="Match score.")
parser.add_argument("--mismatch", dest="mismatch", default=ScoringScheme.mismatch, type=int, help="Mismatch score.")
parser.add_argument("--gap-open", dest="gap_open", default=ScoringScheme.gap_open, type=int,
                    help="Score of the first position of a gap.")
parser.add_argument("--gap-extend", dest="gap_extend", default=ScoringScheme.gap_extend, type=int,
                    help="Score of each additional gap position.")
parser.add_argument("--jump-same-strand", dest="jump_same_strand", default=ScoringScheme.jump_same_strand, type=int,
                    help="Score for stitching two alignments on the same vector strand.")
parser.add_argument("--jump-strand-flip", dest="jump_strand_flip", default=ScoringScheme.jump_strand_flip, type=int,
                    help="Score for stitching alignments on opposite strands of one vector.")
parser.add_argument("--jump-inter-reference", dest="jump_inter_reference", default=ScoringScheme.jump_inter_reference,
                    type=int, help="Score for stitching alignments to two different vectors.")

parser.add_argument(
    "--min-score",
    dest="min_score",
    default=defaults.DEFAULT_MIN_SCORE,
    type=int,
    help="Minimum alignment score for a read to be called contaminated."
)

parser.add_argument(
    "--threads", "-t",
    dest="workers",
    default=defaults.DEFAULT_WORKERS,
    type=int,
    help="Number of screening worker threads."
)

parser.add_argument(
    "--batch-size",
    dest="batch_size",
    default=defaults.DEFAULT_BATCH_SIZE,
    type=int,
    help="Reads dispatched to a worker at a time."
)

parser.add_argument(
    "--offset-bin-width",
    dest="offset_bin_width",
    default=defaults.DEFAULT_OFFSET_BIN_WIDTH,
    type=int,
    help="Bin width (bp) of the per-vector hit position histogram."
)

parser.add_argument(
    "--circular",
    action="store_true",
    dest="circular",
    default=False,
    help="Treat every vector reference as circular (plasmids)."
)

parser.add_argument(
    "--trimmed",
    action="store_true",
    dest="trimmed",
    default=False,
    help="Also write the vector-free part of every read to <out>_trimmed.fastq."
)


def config_from_args(args) -> ScreeningConfig:
    return ScreeningConfig(
        seed_k=args.seed_k,
        max_candidates=args.max_candidates,
        seed_stride=args.seed_stride,
        diagonal_tolerance=args.diagonal_tolerance,
        band_width=None if args.full_band else args.band_width,
        scoring=ScoringScheme(args.match, args.mismatch, args.gap_open, args.gap_extend,
                              args.jump_same_strand, args.jump_strand_flip, args.jump_inter_reference),
        min_score=args.min_score,
        workers=args.workers,
        batch_size=args.batch_size,
        offset_bin_width=args.offset_bin_width
    )


async def run(args):
    screening_config = config_from_args(args)
    references = await read_references(args.vectors, circular=args.circular)
    index = build_index(references, screening_config.seed_k)
    with ScreeningEngine(index, screening_config) as engine:
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, engine.cancel)
        except NotImplementedError:
            logger.debug("Cancelling with SIGINT is not supported on this platform.")
        trimmed_path = args.out + "_trimmed.fastq" if args.trimmed else None
        await write_outcomes(engine.screen(read_sequencing_reads(args.reads)), args.out + "_reads.csv", index,
                             trimmed_path)
        result = engine.result()
    write_reference_summary_as_csv(result.stats, index, args.out + "_references.csv")
    write_summary_as_csv(result.stats, args.out + "_summary.csv")
    if not result.complete:
        logger.warning("Screening stopped early; reports cover %d reads.", result.stats.total_reads)


def run_asynchronously(args):
    try:
        asyncio.run(run(args))
    except (ConfigError, MalformedInputError) as e:
        parser.error(str(e))


parser.set_defaults(func=run_asynchronously)
