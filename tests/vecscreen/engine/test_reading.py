import gzip
import tempfile
from os import path

import pytest

from vecscreen.engine.exceptions.screening import MalformedInputError
from vecscreen.engine.reading import read_fasta, read_fastq, read_references, read_sequencing_reads


async def test_fasta_reader_not_none():
    async for named_string in read_fasta("tests/resources/vectors.fasta"):
        assert named_string.name is not None
        assert named_string.sequence is not None


async def test_references_are_numbered_in_file_order():
    references = await read_references("tests/resources/vectors.fasta")
    assert [(reference.id, reference.name) for reference in references] == [(0, "pUC19_MCS"), (1, "TruSeq_adapter")]
    assert len(references[0]) == 84
    assert not any(reference.circular for reference in references)


async def test_references_can_be_circular():
    references = await read_references("tests/resources/vectors.fasta", circular=True)
    assert all(reference.circular for reference in references)


def test_fastq_reads_in_file_order():
    reads = list(read_fastq("tests/resources/reads.fastq"))
    assert [read.identifier for read in reads] == [
        "insert_then_puc19", "poly_t", "short_quality", "bad_symbols", "truseq_adapter"]
    assert len(reads[0]) == 51
    assert reads[0].quality == "I" * 51


def test_fastq_reads_are_not_validated_while_reading():
    reads = list(read_fastq("tests/resources/reads.fastq"))
    assert (reads[2].sequence, reads[2].quality) == ("ACGTACGTAC", "III")
    assert reads[3].sequence == "ACGTXXACGTACGTACGTAC"
    assert reads[4].sequence.islower()


def test_gzipped_fastq_is_read():
    with open("tests/resources/reads.fastq", "rb") as plain:
        content = plain.read()
    with tempfile.TemporaryDirectory() as temp_dir:
        gzipped_path = path.join(temp_dir, "reads.fastq.gz")
        with gzip.open(gzipped_path, "wb") as gzipped:
            gzipped.write(content)
        reads = list(read_sequencing_reads(gzipped_path))
    assert len(reads) == 5
    assert reads[1].sequence == "T" * 30


def test_fasta_reads_are_dispatched_by_extension():
    reads = list(read_sequencing_reads("tests/resources/vectors.fasta"))
    assert [read.identifier for read in reads] == ["pUC19_MCS", "TruSeq_adapter"]
    assert reads[0].quality == ""


def test_fastq_without_record_layout_raises():
    with tempfile.TemporaryDirectory() as temp_dir:
        fastq_path = path.join(temp_dir, "broken.fastq")
        with open(fastq_path, "w") as handle:
            handle.write("@good\nACGT\n+\nIIII\nnot a title\nACGT\n+\nIIII\n")
        reads = read_fastq(fastq_path)
        assert next(reads).identifier == "good"
        with pytest.raises(MalformedInputError):
            next(reads)
