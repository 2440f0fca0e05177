import asyncio
import gzip
from io import TextIOWrapper
from typing import Any, AsyncGenerator, Generator, Union

from Bio import SeqIO

from vecscreen.engine.exceptions.screening import MalformedInputError
from vecscreen.engine.structures.genomics import NamedString
from vecscreen.engine.structures.sequences import Read, VectorReference


def _open_text(handle_path: str):
    if handle_path.endswith(".gz"):
        return gzip.open(handle_path, "rt")
    return open(handle_path)


async def read_fasta(handle: Union[str, TextIOWrapper]) -> AsyncGenerator[NamedString, Any]:
    fasta_sequences = asyncio.to_thread(SeqIO.parse, handle=handle, format="fasta")
    for fasta_sequence in await fasta_sequences:
        yield NamedString(fasta_sequence.id, str(fasta_sequence.seq))


async def read_references(handle: Union[str, TextIOWrapper], circular: bool = False) -> list[VectorReference]:
    references = []
    async for named_string in read_fasta(handle):
        references.append(VectorReference(len(references), named_string.name, named_string.sequence, circular))
    return references


def read_fastq(handle_path: str) -> Generator[Read, Any, None]:
    """Lazily yields four-line FASTQ records without validating them.

    A quality string whose length differs from its sequence is passed through,
    so screening skips and counts that read and carries on with the rest.
    Only a record that is not laid out as title, sequence, separator and
    quality lines stops reading.
    """
    with _open_text(handle_path) as handle:
        while True:
            title = handle.readline()
            if not title:
                break
            if not title.strip():
                continue
            sequence = handle.readline().rstrip("\r\n")
            separator = handle.readline()
            quality = handle.readline().rstrip("\r\n")
            if not title.startswith("@") or not separator.startswith("+"):
                raise MalformedInputError(title.strip(), "not a four-line FASTQ record")
            fields = title[1:].split(None, 1)
            yield Read(fields[0] if fields else "", sequence, quality)


def read_fasta_reads(handle_path: str) -> Generator[Read, Any, None]:
    with _open_text(handle_path) as handle:
        for record in SeqIO.parse(handle, "fasta"):
            yield Read(record.id, str(record.seq))


def read_sequencing_reads(handle_path: str) -> Generator[Read, Any, None]:
    stem = handle_path[:-3] if handle_path.endswith(".gz") else handle_path
    if stem.lower().endswith((".fa", ".fasta", ".fna")):
        return read_fasta_reads(handle_path)
    return read_fastq(handle_path)
