"""Sorted prefix index over parsed advisories.

Advisory counts are far larger than installed package counts, so the
advisories are sorted once by the longest prefix of their name pattern that
contains no glob characters. A query can then skip a whole run of
advisories sharing a prefix whenever that prefix differs from the package
name, and stop as soon as the prefixes become larger than the name.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from ..utils.logging import get_logger
from ..utils.performance import benchmark
from .models import AdvisoryEntry

GLOB_CHARACTERS = frozenset("*?[{\\")
FIRST_BYTE_SLOTS = 256


def literal_prefix_len(pattern: str) -> int:
    """Length of the longest prefix of ``pattern`` without glob characters."""
    for position, char in enumerate(pattern):
        if char in GLOB_CHARACTERS:
            return position
    return len(pattern)


def first_byte(text: str) -> int:
    """First UTF-8 byte of ``text``; 0 for an empty string.

    Lone surrogates (undecodable bytes from argv) are encoded as well, so
    byte order keeps following code point order for any ``str``.
    """
    if not text:
        return 0
    return text[0].encode("utf-8", "surrogatepass")[0]


@dataclass(frozen=True)
class IndexedEntry:
    """An advisory placed in the sorted index."""

    advisory: AdvisoryEntry
    literal_prefix_len: int
    group_skip: int = 1

    @property
    def literal_prefix(self) -> str:
        return self.advisory.name_pattern[:self.literal_prefix_len]

    @property
    def sort_key(self) -> Tuple[str, int]:
        return self.literal_prefix, self.literal_prefix_len


@dataclass(frozen=True)
class PrefixIndex:
    """Sorted advisories plus the first-byte jump table.

    ``first_byte[b]`` is the position of the first entry whose non-empty
    literal prefix starts with a byte >= ``b``, or ``len(entries)``.
    Entries with an empty literal prefix sort before all others.
    """

    entries: Tuple[IndexedEntry, ...]
    first_byte: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def empty_prefix_count(self) -> int:
        """Number of leading entries whose literal prefix is empty."""
        if self.entries and self.entries[0].literal_prefix_len == 0:
            return self.entries[0].group_skip
        return 0

    def runs(self) -> List[Sequence[IndexedEntry]]:
        """Split the index into runs of identical literal prefix."""
        runs = []
        position = 0
        while position < len(self.entries):
            skip = self.entries[position].group_skip
            runs.append(self.entries[position:position + skip])
            position += skip
        return runs


class PrefixIndexBuilder:
    """Builds a :class:`PrefixIndex` from parsed advisories."""

    def __init__(self) -> None:
        """Initialize the builder."""
        self.logger = get_logger("PrefixIndexBuilder")

    @benchmark
    def build(self, advisories: Iterable[AdvisoryEntry]) -> PrefixIndex:
        """Sort advisories by literal prefix and compute the jump tables.

        Args:
            advisories: Parsed advisory entries

        Returns:
            Read-only prefix index
        """
        indexed = [
            IndexedEntry(advisory, literal_prefix_len(advisory.name_pattern))
            for advisory in advisories
        ]
        # sorted() is stable: same-prefix advisories keep their file order
        indexed = sorted(indexed, key=lambda entry: entry.sort_key)

        entries = tuple(self._assign_group_skips(indexed))
        table = self._build_first_byte_table(entries)

        self.logger.debug(
            f"Indexed {len(entries)} advisories in {sum(1 for _ in self._run_starts(entries))} prefix runs"
        )
        return PrefixIndex(entries=entries, first_byte=table)

    def _assign_group_skips(self, indexed: List[IndexedEntry]) -> List[IndexedEntry]:
        """Give each run member the distance to the end of its run."""
        result = []
        position = 0
        while position < len(indexed):
            run_end = position + 1
            key = indexed[position].sort_key
            while run_end < len(indexed) and indexed[run_end].sort_key == key:
                run_end += 1

            run_length = run_end - position
            for offset in range(run_length):
                entry = indexed[position + offset]
                result.append(
                    IndexedEntry(entry.advisory, entry.literal_prefix_len, run_length - offset)
                )
            position = run_end
        return result

    def _build_first_byte_table(self, entries: Sequence[IndexedEntry]) -> Tuple[int, ...]:
        """Compute, for every byte value, where its entries begin."""
        table = []
        position = 0
        # Empty prefixes come first and never count as starting with a byte.
        while position < len(entries) and entries[position].literal_prefix_len == 0:
            position += 1

        for byte in range(FIRST_BYTE_SLOTS):
            while position < len(entries) and first_byte(entries[position].literal_prefix) < byte:
                position += 1
            table.append(position)
        return tuple(table)

    @staticmethod
    def _run_starts(entries: Sequence[IndexedEntry]) -> Iterable[int]:
        position = 0
        while position < len(entries):
            yield position
            position += entries[position].group_skip


def build_index(advisories: Iterable[AdvisoryEntry]) -> PrefixIndex:
    """Build a prefix index with a default builder."""
    return PrefixIndexBuilder().build(advisories)
