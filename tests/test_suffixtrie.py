# Copyright (C) 2022 Leiden University Medical Center
# This file is part of suffixtrie
#
# suffixtrie is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# suffixtrie is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with suffixtrie.  If not, see <https://www.gnu.org/licenses/

import gzip
import logging

from suffixtrie import (
    SuffixTrie,
    first_symbol,
    locate_queries,
    main,
    read_sequence,
    similarity_files,
    trie_stats,
    write_sequence,
)

import pytest


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger("suffixtrie")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


def test_read_sequence_plain_text(tmp_path):
    path = tmp_path / "sequence.txt"
    path.write_text("ACGT  \n  acgt\n\nGG\n")
    assert read_sequence(str(path)) == "ACGTACGTGG"


def test_read_sequence_fasta(tmp_path):
    path = tmp_path / "sequence.fasta"
    path.write_text(">first\nACGT\nAC\n>second\nggtt\n")
    assert read_sequence(str(path)) == "ACGTACGGTT"


def test_read_sequence_fastq(tmp_path):
    path = tmp_path / "sequence.fastq"
    path.write_text("@read1\nGATTACA\n+\nIIIIIII\n@read2\nTT\n+\nII\n")
    assert read_sequence(str(path)) == "GATTACATT"


def test_read_sequence_gzip(tmp_path):
    path = tmp_path / "sequence.fasta.gz"
    with gzip.open(path, "wt") as handle:
        handle.write(">chr\nACGTTGCA\n")
    assert read_sequence(str(path)) == "ACGTTGCA"


def test_write_sequence(tmp_path):
    path = tmp_path / "run.txt"
    write_sequence(str(path), "ACGT")
    assert path.read_text() == "ACGT\n"


def test_write_sequence_gzip(tmp_path):
    path = tmp_path / "run.txt.gz"
    write_sequence(str(path), "GATTACA")
    with gzip.open(path, "rt") as handle:
        assert handle.read() == "GATTACA\n"


def test_trie_stats():
    stats = trie_stats(SuffixTrie("ACGT"))
    lines = stats.splitlines()
    assert lines[0].split() == ["depth", "terminal", "1", "2", "3", "4", "5",
                                "total"]
    assert lines[1].split() == ["0", "0", "0", "0", "0", "0", "1", "1"]
    assert lines[2].split() == ["1", "5", "0", "0", "0", "0", "0", "5"]
    assert lines[3].split() == ["total", "5", "0", "0", "0", "0", "1", "6"]
    assert "Text length: 5" in stats
    assert "Number of nodes: 6" in stats


def test_locate_queries(tmp_path):
    path = tmp_path / "reference.txt"
    path.write_text("AACAACTTCG\nTAAGGTT\n")
    results = locate_queries(str(path), ["AAC", "ACTTCGTAAG", "aag", "TTT"])
    assert results[0][0] == "AAC"
    assert results[0][1] in {0, 3}
    assert results[1] == ("ACTTCGTAAG", 4)
    assert results[2] == ("aag", 11)
    assert results[3] == ("TTT", None)


def test_locate_queries_debug_stats(tmp_path, caplog):
    path = tmp_path / "reference.txt"
    path.write_text("ACGT\n")
    with caplog.at_level(logging.DEBUG, logger="suffixtrie"):
        locate_queries(str(path), ["ACG"])
    assert "Number of nodes: 6" in caplog.text
    assert "Found 1 out of 1 queries." in caplog.text


def test_locate_queries_invalid_reference(tmp_path):
    path = tmp_path / "reference.txt"
    path.write_text("ACGTN\n")
    with pytest.raises(ValueError) as error:
        locate_queries(str(path), ["ACG"])
    error.match("'N' at position 4")


def test_similarity_files(tmp_path):
    file1 = tmp_path / "file1.txt"
    file2 = tmp_path / "file2.txt"
    output = tmp_path / "output.txt"
    file1.write_text("ACGT\nACGT\n")
    file2.write_text("TTACGTTT\n")
    assert similarity_files(str(file1), str(file2), str(output)) == 0.5
    assert output.read_text() == "ACGT\n"


def test_main_locate(tmp_path, capsys):
    path = tmp_path / "reference.fasta"
    path.write_text(">reference\nACGT\n")
    main(["-q", "locate", str(path), "ACG", "CGT", "GTA"])
    out = capsys.readouterr().out
    assert out.splitlines() == ["ACG\t0", "CGT\t1", "GTA\t-1"]


def test_main_similarity(tmp_path, capsys):
    file1 = tmp_path / "file1.txt"
    file2 = tmp_path / "file2.txt"
    output = tmp_path / "output.txt"
    file1.write_text("ACGTACGT\n")
    file2.write_text("TTACGTTT\n")
    main(["-q", "similarity", str(file1), str(file2), "-o", str(output)])
    assert capsys.readouterr().out == "0.5\n"
    assert output.read_text() == "ACGT\n"


def test_main_requires_command(capsys):
    with pytest.raises(SystemExit):
        main([])


def test_locate_queries_custom_alphabet(tmp_path):
    path = tmp_path / "reference.txt"
    path.write_text("abbab\n")
    assert locate_queries(str(path), ["bb", "BAB", "aa"], alphabet="ab") == [
        ("bb", 1), ("BAB", 2), ("aa", None)]


def test_main_locate_custom_alphabet(tmp_path, capsys):
    path = tmp_path / "reference.txt"
    path.write_text("abbab\n")
    main(["-q", "locate", str(path), "bb", "-a", "ab"])
    assert capsys.readouterr().out == "bb\t1\n"


@pytest.mark.parametrize(["content", "symbol"], [
    (">chr1\nACGT\n", ">"),
    ("\n\n   @read\nACGT\n+\nIIII\n", "@"),
    ("  \n ACGT\n", "A"),
    ("\n  \n", ""),
    ("", ""),
])
def test_first_symbol(tmp_path, content, symbol):
    path = tmp_path / "sequence.txt"
    path.write_text(content)
    assert first_symbol(str(path)) == symbol


def test_first_symbol_gzip(tmp_path):
    path = tmp_path / "sequence.fasta.gz"
    with gzip.open(path, "wt") as handle:
        handle.write("\n>chr\nACGT\n")
    assert first_symbol(str(path)) == ">"


def test_read_sequence_fasta_after_blank_lines(tmp_path):
    path = tmp_path / "sequence.fasta"
    path.write_text("\n\n>first\nACGT\n>second\nTT\n")
    assert read_sequence(str(path)) == "ACGTTT"


def test_read_sequence_empty_file(tmp_path):
    path = tmp_path / "sequence.txt"
    path.write_text("")
    assert read_sequence(str(path)) == ""
