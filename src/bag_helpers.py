"""The multiset of unplaced pieces, encoded as a 10-digit base-3 number."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from itertools import product
from typing import Iterator, Tuple

from piece_helpers import COPIES_PER_PIECE, MAX_ROTATIONS, UNIQUE_PIECE_COUNT

BASE = COPIES_PER_PIECE + 1  # 3
BAG_COUNT = BASE ** UNIQUE_PIECE_COUNT  # 59049
MAX_BAG_PIECES = COPIES_PER_PIECE * UNIQUE_PIECE_COUNT  # 20

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Bag:
    """Remaining piece counts per type; digit t of the index is the count of type t."""

    counts: Tuple[int, ...]

    def __post_init__(self) -> None:
        if len(self.counts) != UNIQUE_PIECE_COUNT:
            raise ValueError(f"expected {UNIQUE_PIECE_COUNT} counts, got {len(self.counts)}")
        for piece_type, count in enumerate(self.counts):
            if not 0 <= count <= COPIES_PER_PIECE:
                raise ValueError(f"count for piece type {piece_type} out of range: {count}")

    @classmethod
    def from_index(cls, index: int) -> "Bag":
        """Interpret index as a ternary number of per-type counts."""
        if not 0 <= index < BAG_COUNT:
            raise ValueError(f"bag index out of range: {index}")
        counts = []
        for _ in range(UNIQUE_PIECE_COUNT):
            index, count = divmod(index, BASE)
            counts.append(count)
        return cls(tuple(counts))

    @classmethod
    def full(cls) -> "Bag":
        return cls((COPIES_PER_PIECE,) * UNIQUE_PIECE_COUNT)

    def to_index(self) -> int:
        index = 0
        for count in reversed(self.counts):
            index = index * BASE + count
        return index

    def digits(self) -> str:
        """Counts written most-significant type first, e.g. '0000000012'."""
        return "".join(str(count) for count in reversed(self.counts))

    def __repr__(self) -> str:
        return f"Bag({self.digits()})"

    def __len__(self) -> int:
        return sum(self.counts)

    def is_empty(self) -> bool:
        return not any(self.counts)

    def count(self, piece_type: int) -> int:
        return self.counts[piece_type]

    def __iter__(self) -> Iterator[int]:
        """Yield the type of every remaining physical piece, lowest type first."""
        for piece_type, count in enumerate(self.counts):
            for _ in range(count):
                yield piece_type

    def piece_types(self) -> Iterator[int]:
        """Yield each distinct remaining type once."""
        for piece_type, count in enumerate(self.counts):
            if count:
                yield piece_type

    def piece_ids(self) -> Iterator[int]:
        """Yield every packed (type, rotation) id that could be placed next."""
        for piece_type in self.piece_types():
            for rotation in range(MAX_ROTATIONS):
                yield piece_type * MAX_ROTATIONS + rotation

    def take(self, piece_type: int) -> "Bag":
        """Return a new bag with one piece of piece_type removed."""
        if not 0 <= piece_type < UNIQUE_PIECE_COUNT:
            raise ValueError(f"piece type out of range: {piece_type}")
        if self.counts[piece_type] == 0:
            raise ValueError(f"no piece of type {piece_type} left in {self!r}")
        counts = list(self.counts)
        counts[piece_type] -= 1
        return Bag(tuple(counts))

    def iter_sub_bags(self) -> Iterator["Bag"]:
        """Yield every sub-multiset with strictly fewer pieces."""
        ranges = [range(count + 1) for count in self.counts]
        for counts in product(*ranges):
            if counts != self.counts:
                yield Bag(counts)

    # =========================
    # Scoring helpers
    # =========================
    def score_flat(self) -> int:
        """Score gained per layer if every remaining piece were lifted by one level."""
        return sum(count * piece_type for piece_type, count in enumerate(self.counts))

    def score_stacked(self) -> int:
        """Optimistic score with pieces stacked two per layer, highest types on top.

        A piece can only rest on two or more pieces, so n pieces reach at most
        ceil(n / 2) layers. Assigning the most valuable pieces to the highest
        of those layers never under-estimates an arrangement on a flat table.
        """
        score = 0
        free = len(self)
        for piece_type in sorted(self, reverse=True):
            level = ((free + 1) >> 1) - 1
            score += piece_type * level
            free -= 1
        return score


def full_bag() -> Bag:
    return Bag.full()


@lru_cache(maxsize=1)
def bag_score_deltas() -> Tuple[int, ...]:
    """score_flat() of every bag, indexed by bag index."""
    deltas = []
    for index in range(BAG_COUNT):
        delta = 0
        for piece_type in range(UNIQUE_PIECE_COUNT):
            index, count = divmod(index, BASE)
            delta += count * piece_type
        deltas.append(delta)
    return tuple(deltas)


def bag_indices_by_size(max_pieces: int = MAX_BAG_PIECES) -> Tuple[Tuple[int, ...], ...]:
    """Group every bag index by piece count, from 0 pieces up to max_pieces."""
    levels = [[] for _ in range(min(max_pieces, MAX_BAG_PIECES) + 1)]
    for index in range(BAG_COUNT):
        size = len(Bag.from_index(index))
        if size < len(levels):
            levels[size].append(index)
    return tuple(tuple(level) for level in levels)
