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

from typing import Tuple


def similarity_analyser(sequence1: str, sequence2: str) -> Tuple[float, str]:
    """
    Brute force O(n*m) search for the longest run of matching symbols
    between two sequences.

    The longer sequence is the reference, on equal lengths the second one.
    The other sequence is placed at every offset of the reference and
    compared position by position until it runs past the reference end.

    :return: A tuple of the run length divided by the reference length and
             the run itself.
    """
    if not sequence1 or not sequence2:
        raise ValueError("Both sequences must contain at least one symbol.")
    if len(sequence1) > len(sequence2):
        reference, other = sequence1, sequence2
    else:
        reference, other = sequence2, sequence1
    reference_length = len(reference)
    best_start = 0
    best_length = 0
    for offset in range(reference_length):
        run_length = 0
        for j in range(min(len(other), reference_length - offset)):
            if reference[offset + j] == other[j]:
                run_length += 1
                if run_length > best_length:
                    best_length = run_length
                    best_start = offset + j - run_length + 1
            else:
                run_length = 0
        # A longer run is impossible once the remaining overlap is too short.
        if reference_length - offset - 1 <= best_length:
            break
    run = reference[best_start: best_start + best_length]
    return best_length / reference_length, run
