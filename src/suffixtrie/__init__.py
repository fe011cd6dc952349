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

import argparse
import datetime
import functools
import io
import logging
import resource
import time
from typing import Iterator, List, Optional, Tuple

import dnaio

import xopen

from ._similarity import similarity_analyser
from ._trie import DEFAULT_ALPHABET, SuffixTrie, TERMINATOR

__all__ = [
    "DEFAULT_ALPHABET",
    "SuffixTrie",
    "TERMINATOR",
    "first_symbol",
    "locate_queries",
    "main",
    "read_sequence",
    "similarity_analyser",
    "similarity_files",
    "trie_stats",
    "write_sequence",
]

DEFAULT_SIMILARITY_OUTPUT = "similarity.txt"
NOT_FOUND = -1


class Timer:
    """Simple timer object to reduce timing boilerplate"""
    def __init__(self):
        self.start_time = time.time()

    def get_difference(self) -> datetime.timedelta:
        current_time = time.time()
        delta = datetime.timedelta(seconds=round(current_time - self.start_time))
        self.start_time = current_time
        return delta


def file_to_sequence_reader(filename: str) -> Iterator[dnaio.SequenceRecord]:
    opener = functools.partial(xopen.xopen, threads=0)
    with dnaio.open(filename, mode="r", opener=opener) as reader:  # type: ignore
        yield from reader


def first_symbol(filename: str) -> str:
    """Return the first non-blank character of a file, or an empty string
    when the file holds only whitespace."""
    with xopen.xopen(filename, mode="rt", threads=0) as handle:
        for line in handle:
            stripped = line.lstrip()
            if stripped:
                return stripped[0]
    return ""


def read_sequence(filename: str) -> str:
    """
    Read a file into a single upper case sequence. FASTA and FASTQ files
    (recognised by their first character) have the sequences of all records
    concatenated. Other files have each line stripped of whitespace and the
    lines concatenated. Compressed files are supported.
    """
    if first_symbol(filename) in (">", "@"):
        sequence = "".join(record.sequence
                           for record in file_to_sequence_reader(filename))
    else:
        with xopen.xopen(filename, mode="rt", threads=0) as handle:
            sequence = "".join(line.strip() for line in handle)
    return sequence.upper()


def write_sequence(filename: str, sequence: str):
    with xopen.xopen(filename, mode="wt", compresslevel=1,
                     threads=0) as output:
        output.write(sequence + "\n")


def trie_stats(trie: SuffixTrie) -> str:
    outbuffer = io.StringIO()
    raw_stats = trie.raw_stats()
    layer_size = len(trie.alphabet) + 2
    all_totals = [0 for _ in range(layer_size + 1)]
    outbuffer.write("depth     terminal  " +
                    "".join(f"{i:10}" for i in range(1, layer_size)) +
                    "     total\n")
    for i, layer_stats in enumerate(raw_stats):
        total = sum(layer_stats)
        for j in range(layer_size):
            all_totals[j] += layer_stats[j]
        all_totals[layer_size] += total
        line = [str(i)] + layer_stats + [total]  # type: ignore
        outbuffer.write("".join(f"{i:>10}" for i in line) + "\n")
    last_line = ["total"] + all_totals  # type: ignore
    outbuffer.write("".join(f"{i:>10}" for i in last_line) + "\n")
    outbuffer.write(f"Text length: {len(trie.text)}\n"
                    f"Number of nodes: {trie.number_of_nodes}\n")
    return outbuffer.getvalue()


def locate_queries(reference: str,
                   queries: List[str],
                   alphabet: str = DEFAULT_ALPHABET,
                   ) -> List[Tuple[str, Optional[int]]]:
    """Index the sequence in the reference file and locate each query."""
    timer = Timer()
    logger = logging.getLogger("suffixtrie")
    text = read_sequence(reference)
    logger.info(f"Read {len(text)} symbols from {reference}. "
                f"({timer.get_difference()})")
    # References and queries are upper-cased, so the alphabet must be too.
    trie = SuffixTrie(text, alphabet=alphabet.upper(), compress=False)
    logger.info(f"Built trie with {trie.number_of_nodes} nodes. "
                f"({timer.get_difference()})")
    spliced = trie.compress()
    logger.info(f"Compressed trie by removing {spliced} nodes, "
                f"{trie.number_of_nodes} nodes remain. "
                f"({timer.get_difference()})")
    if logger.isEnabledFor(logging.DEBUG):
        # Do not perform expensive stats calc when not requested.
        stats = trie_stats(trie)
        logger.debug(f"Calculated stats. ({timer.get_difference()})")
        logger.debug("\n" + stats)
    results = [(query, trie.locate(query.upper())) for query in queries]
    found = sum(1 for _, offset in results if offset is not None)
    logger.info(f"Found {found} out of {len(results)} queries. "
                f"({timer.get_difference()})")
    return results


def similarity_files(file1: str, file2: str, output: str) -> float:
    """Compare the sequences in two files and write the longest matching run
    to output. Returns the similarity ratio."""
    timer = Timer()
    logger = logging.getLogger("suffixtrie")
    sequence1 = read_sequence(file1)
    sequence2 = read_sequence(file2)
    ratio, run = similarity_analyser(sequence1, sequence2)
    logger.info(f"Longest matching run has length {len(run)}. "
                f"({timer.get_difference()})")
    write_sequence(output, run)
    logger.info(f"Wrote matching run to {output}.")
    return ratio


def initiate_logger(verbose: int = 0, quiet: int = 0):
    log_level = logging.INFO - 10 * (verbose - quiet)
    logger = logging.getLogger("suffixtrie")
    logger.setLevel(log_level)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    formatter = logging.Formatter(
        "{asctime}:{levelname}:{name}: {message}",
        datefmt="%m/%d/%Y %I:%M:%S",
        style="{")
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)


def argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Locate sequences with a compressed suffix trie or "
                    "compare two sequences.")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase log verbosity.")
    parser.add_argument("-q", "--quiet", action="count", default=0,
                        help="Reduce log verbosity.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    locate_parser = subparsers.add_parser(
        "locate", help="Find an occurrence of each query in the reference.")
    locate_parser.add_argument(
        "reference", metavar="REFERENCE",
        help="Plain text, FASTA or FASTQ file with the sequence to index. "
             "Plain text files have their lines joined.")
    locate_parser.add_argument(
        "queries", metavar="QUERY", nargs="+",
        help="Sequences to locate. Offsets are printed zero-based, "
             f"{NOT_FOUND} when the query does not occur.")
    locate_parser.add_argument(
        "-a", "--alphabet", default=DEFAULT_ALPHABET,
        help=f"Symbols that may occur in the reference. Case is ignored, "
             f"like the case of the reference and the queries. "
             f"Default: '{DEFAULT_ALPHABET}'.")

    similarity_parser = subparsers.add_parser(
        "similarity",
        help="Find the longest run of matching symbols between two "
             "sequences.")
    similarity_parser.add_argument("file1", metavar="FILE1")
    similarity_parser.add_argument("file2", metavar="FILE2")
    similarity_parser.add_argument(
        "-o", "--output", default=DEFAULT_SIMILARITY_OUTPUT,
        help=f"File to write the matching run to. "
             f"Default: '{DEFAULT_SIMILARITY_OUTPUT}'.")
    return parser


def main(args: Optional[List[str]] = None):
    parsed = argument_parser().parse_args(args)
    initiate_logger(parsed.verbose, parsed.quiet)
    logger = logging.getLogger("suffixtrie")
    timer = Timer()
    if parsed.command == "locate":
        logger.info(f"Reference: {parsed.reference}")
        logger.info(f"Alphabet: {parsed.alphabet}")
        results = locate_queries(parsed.reference, parsed.queries,
                                 parsed.alphabet)
        for query, offset in results:
            print(f"{query}\t{NOT_FOUND if offset is None else offset}")
    else:
        logger.info(f"Input files: {parsed.file1}, {parsed.file2}")
        logger.info(f"Output file: {parsed.output}")
        ratio = similarity_files(parsed.file1, parsed.file2, parsed.output)
        print(ratio)
    resources = resource.getrusage(resource.RUSAGE_SELF)
    logger.info(f"Finished. Total time: {timer.get_difference()}. "
                f"Memory usage: {resources.ru_maxrss / (1024 ** 2):.2} GiB")


if __name__ == "__main__":
    main()
