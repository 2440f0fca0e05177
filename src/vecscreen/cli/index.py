import asyncio

from vecscreen.cli import program
from vecscreen.engine.analysis.index import build_index
from vecscreen.engine.config import DEFAULT_SEED_K
from vecscreen.engine.exceptions.screening import ConfigError
from vecscreen.engine.reading import read_references

parser = program.subparsers.add_parser("index", help="Report statistics for a vector seed index.")

parser.add_argument(
    "vectors",
    help="FASTA file with the vector reference sequences."
)

parser.add_argument(
    "--seed-length", "-k",
    dest="seed_k",
    required=False,
    default=DEFAULT_SEED_K,
    type=int,
    help="The seed (k-mer) length to index."
)

parser.add_argument(
    "--circular",
    action="store_true",
    dest="circular",
    required=False,
    default=False,
    help="Treat every vector reference as circular."
)


async def run(args):
    references = await read_references(args.vectors, circular=args.circular)
    index = build_index(references, args.seed_k)
    for reference in index.references:
        print(f"{reference.id}\t{reference.name}\t{len(reference)} bp{' (circular)' if reference.circular else ''}")
    print(f"{len(index)} distinct {index.k}-mers, {index.seed_count} seed occurrences, "
          f"{index.skipped_references} references skipped")


def run_asynchronously(args):
    try:
        asyncio.run(run(args))
    except ConfigError as e:
        parser.error(str(e))


parser.set_defaults(func=run_asynchronously)
