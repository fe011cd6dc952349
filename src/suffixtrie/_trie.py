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

from typing import Dict, Iterator, List, Optional, Tuple

DEFAULT_ALPHABET = "ACGT"
TERMINATOR = "$"
NO_NODE = -1
ROOT = 0


class _TrieNode:
    """One edge of the trie together with the subtree below it.

    The edge spells ``text[origin + edge_start: origin + edge_end + 1]``.
    Children and parent are indices into the arena of the owning trie.
    """
    origin: int
    edge_start: int
    edge_end: int
    children: List[int]
    parent: int

    __slots__ = ["origin", "edge_start", "edge_end", "children", "parent"]

    def __init__(self, origin: int, edge_start: int, edge_end: int,
                 parent: int, slots: int):
        self.origin = origin
        self.edge_start = edge_start
        self.edge_end = edge_end
        self.children = [NO_NODE] * slots
        self.parent = parent

    def __repr__(self):
        return (f"SuffixTrie Node origin: {self.origin} "
                f"edge: {self.edge_start}-{self.edge_end}, "
                f"children: {self.number_of_children()}")

    def number_of_children(self) -> int:
        return len(self.children) - self.children.count(NO_NODE)


class SuffixTrie:
    """Compressed trie over all suffixes of a text.

    The trie is built naively by inserting every suffix one symbol at a
    time, which costs O(n^2) time and nodes. :meth:`compress` then collapses
    all single-child chains in one O(nodes) pass. Edges never copy text: they
    are offset pairs into :attr:`text`, which is kept for the lifetime of the
    trie.
    """

    def __init__(self, text: str, alphabet: str = DEFAULT_ALPHABET,
                 compress: bool = True):
        if not alphabet:
            raise ValueError("alphabet must not be empty")
        if TERMINATOR in alphabet:
            raise ValueError(f"alphabet must not contain the terminator "
                             f"{TERMINATOR}")
        for char in alphabet:
            if alphabet.count(char) > 1:
                raise ValueError(f"{char} was repeated in the alphabet")
        if not text:
            raise ValueError("text must not be empty")
        self._alphabet = alphabet
        self._slot_of: Dict[str, int] = {
            char: slot for slot, char in enumerate(alphabet + TERMINATOR)}
        for position, char in enumerate(text):
            if char not in self._slot_of or char == TERMINATOR:
                raise ValueError(f"{char!r} at position {position} is not "
                                 f"part of alphabet {alphabet}")
        self._text = text + TERMINATOR
        slots = len(self._slot_of)
        self._nodes: List[Optional[_TrieNode]] = [
            _TrieNode(0, 0, 0, NO_NODE, slots)]
        self._number_of_nodes = 1
        self._compressed = False
        self._build()
        if compress:
            self.compress()

    @property
    def text(self) -> str:
        """The indexed text including the terminator."""
        return self._text

    @property
    def alphabet(self) -> str:
        return self._alphabet

    @property
    def number_of_nodes(self) -> int:
        return self._number_of_nodes

    @property
    def is_compressed(self) -> bool:
        return self._compressed

    def _node(self, index: int) -> _TrieNode:
        node = self._nodes[index]
        if node is None:
            raise LookupError(f"Node {index} was released by compression")
        return node

    def _build(self):
        text = self._text
        nodes = self._nodes
        slot_of = self._slot_of
        slots = len(slot_of)
        for origin in range(len(text)):
            current = ROOT
            for offset in range(len(text) - origin):
                slot = slot_of[text[origin + offset]]
                children = nodes[current].children  # type: ignore
                child = children[slot]
                if child == NO_NODE:
                    child = len(nodes)
                    nodes.append(
                        _TrieNode(origin, offset, offset, current, slots))
                    children[slot] = child
                current = child
        self._number_of_nodes = len(nodes)

    def compress(self) -> int:
        """Collapse every non-root node that has exactly one child into that
        child. Returns the number of nodes that were spliced out, which is 0
        when the trie is already compressed."""
        spliced = 0
        # The flag marks that the children of a node have been handled.
        stack: List[Tuple[int, bool]] = [(ROOT, False)]
        while stack:
            index, children_done = stack.pop()
            if not children_done:
                stack.append((index, True))
                stack.extend((child, False)
                             for child in self._node(index).children
                             if child != NO_NODE)
                continue
            # The root has no parent to attach its only child to.
            if index == ROOT:
                continue
            if self._splice(index):
                spliced += 1
        self._number_of_nodes -= spliced
        self._compressed = True
        return spliced

    def _splice(self, index: int) -> bool:
        node = self._node(index)
        if node.number_of_children() != 1:
            return False
        child_index = next(child for child in node.children
                           if child != NO_NODE)
        child = self._node(child_index)
        # Every suffix passing through node reaches it at the same depth, so
        # offsets relative to the child's origin address the same symbols.
        child.edge_start = node.edge_start
        parent = self._node(node.parent)
        parent.children[parent.children.index(index)] = child_index
        child.parent = node.parent
        self._nodes[index] = None
        return True

    def _child(self, index: int, char: str) -> Optional[_TrieNode]:
        return self._child_of(self._node(index), char)

    def _child_of(self, node: _TrieNode, char: str) -> Optional[_TrieNode]:
        child = node.children[self._slot_of[char]]
        if child == NO_NODE:
            return None
        return self._node(child)

    def locate(self, query: str) -> Optional[int]:
        """Return the offset of an occurrence of query in the text, or None
        when query does not occur. When query occurs multiple times, the
        occurrence recorded on the deepest edge of the match is returned."""
        if not query:
            raise ValueError("query must not be empty")
        for position, char in enumerate(query):
            if char not in self._slot_of or char == TERMINATOR:
                raise ValueError(f"{char!r} at position {position} of the "
                                 f"query is not part of alphabet "
                                 f"{self._alphabet}")
        text = self._text
        node = self._child(ROOT, query[0])
        query_index = 0
        edge_offset = 0
        while node is not None:
            text_index = node.origin + node.edge_start + edge_offset
            if text[text_index] != query[query_index]:
                return None
            query_index += 1
            if query_index == len(query):
                return node.origin
            edge_offset += 1
            if node.edge_start + edge_offset > node.edge_end:
                # End of the edge, continue with the next query symbol.
                node = self._child_of(node, query[query_index])
                edge_offset = 0
        return None

    def __contains__(self, query: str) -> bool:
        return self.locate(query) is not None

    def edge_label(self, origin: int, edge_start: int, edge_end: int) -> str:
        return self._text[origin + edge_start: origin + edge_end + 1]

    def iter_edges(self) -> Iterator[Tuple[int, int, int, int, int]]:
        """Yield ``(depth, origin, edge_start, edge_end, number_of_children)``
        for every node except the root, in pre-order. Children are visited
        in alphabet order with the terminator last."""
        stack = [(child, 1) for child in reversed(self._node(ROOT).children)
                 if child != NO_NODE]
        while stack:
            index, depth = stack.pop()
            node = self._node(index)
            yield (depth, node.origin, node.edge_start, node.edge_end,
                   node.number_of_children())
            stack.extend((child, depth + 1)
                         for child in reversed(node.children)
                         if child != NO_NODE)

    def raw_stats(self) -> List[List[int]]:
        """For each depth, count the nodes by their number of children.
        Depth 0 holds the root."""
        width = len(self._slot_of) + 1
        stats = [[0] * width]
        stats[0][self._node(ROOT).number_of_children()] += 1
        for depth, *_, number_of_children in self.iter_edges():
            if depth == len(stats):
                stats.append([0] * width)
            stats[depth][number_of_children] += 1
        return stats
