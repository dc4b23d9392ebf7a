"""Canonical board state and the placement-legality scan."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

from bag_helpers import MAX_BAG_PIECES
from overlap_table import OverlapTable, get_overlap_table
from piece_helpers import (
    MAX_EDGE_LENGTH,
    OVERLAP_FULL,
    OVERLAP_NEIGHBOR,
    OVERLAP_NONE,
    check_piece_id,
    partial_shape_id,
    piece_type_of,
    rotation_of,
)

STATE_CAPACITY = MAX_BAG_PIECES  # 20

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placed:
    """One committed piece: packed type * 4 + rotation id, position and layer."""

    piece: int
    x: int
    y: int
    z: int

    def __post_init__(self) -> None:
        check_piece_id(self.piece)
        if self.z < 0:
            raise ValueError(f"layer out of range: {self.z}")

    @property
    def piece_type(self) -> int:
        return piece_type_of(self.piece)

    @property
    def rotation(self) -> int:
        return rotation_of(self.piece)

    def sort_key(self) -> Tuple[int, int, int, int]:
        """Top layer first, then piece id, x, y."""
        return (-self.z, self.piece, self.x, self.y)

    def shifted(self, dx: int, dy: int) -> "Placed":
        return Placed(self.piece, self.x + dx, self.y + dy, self.z)

    def encode(self) -> str:
        return f"{self.piece}:{self.x}:{self.y}:{self.z}"

    @classmethod
    def decode(cls, token: str) -> "Placed":
        parts = token.split(":")
        if len(parts) != 4:
            raise ValueError(f"invalid placement token: {token!r}")
        piece, x, y, z = (int(part) for part in parts)
        return cls(piece, x, y, z)


class State:
    """Placed pieces in canonical order, shifted so min x and min y are 0.

    Two placement orders that produce the same physical arrangement give equal
    (and equally hashed) states. States never change; every insert returns a
    new one. State() is the empty board; every other state comes from
    from_pieces, insert or decode.
    """

    __slots__ = ("pieces", "_hash")

    def __init__(self) -> None:
        self.pieces: Tuple[Placed, ...] = ()
        self._hash = hash(self.pieces)

    @classmethod
    def _canonical(cls, pieces: Tuple[Placed, ...]) -> "State":
        """Wrap pieces that are already sorted and shifted to the origin."""
        state = cls.__new__(cls)
        state.pieces = pieces
        state._hash = hash(pieces)
        return state

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, State):
            return NotImplemented
        return self.pieces == other.pieces

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        return f"State({self.encode()!r})"

    def __len__(self) -> int:
        return len(self.pieces)

    def __iter__(self) -> Iterator[Placed]:
        return iter(self.pieces)

    def is_empty(self) -> bool:
        return not self.pieces

    @classmethod
    def from_pieces(cls, pieces: Iterable[Placed]) -> "State":
        """Sort pieces canonically and shift them so min x and min y are 0."""
        pieces = sorted(pieces, key=Placed.sort_key)
        if len(pieces) > STATE_CAPACITY:
            raise ValueError(f"a state holds at most {STATE_CAPACITY} pieces, got {len(pieces)}")
        if not pieces:
            return cls()
        min_x = min(p.x for p in pieces)
        min_y = min(p.y for p in pieces)
        if min_x or min_y:
            pieces = [p.shifted(-min_x, -min_y) for p in pieces]
        return cls._canonical(tuple(pieces))

    def insert(self, placed: Placed) -> "State":
        """Return a new state with placed added, re-sorted and re-normalized."""
        if len(self.pieces) >= STATE_CAPACITY:
            raise ValueError(f"state already holds {STATE_CAPACITY} pieces")
        return State.from_pieces(self.pieces + (placed,))

    def score(self) -> int:
        """Each piece scores its type index times its layer."""
        return sum(p.piece_type * p.z for p in self.pieces)

    def size(self) -> Tuple[int, int]:
        """Footprint bound (width, height) assuming every shape spans a 4x4 block."""
        if not self.pieces:
            return (0, 0)
        return (
            max(p.x for p in self.pieces) + MAX_EDGE_LENGTH,
            max(p.y for p in self.pieces) + MAX_EDGE_LENGTH,
        )

    def layers(self) -> int:
        """Return the topmost layer index (0 for an empty or flat board)."""
        return self.pieces[0].z if self.pieces else 0

    def layer(self, z: int) -> Tuple[Placed, ...]:
        return tuple(p for p in self.pieces if p.z == z)

    def encode(self) -> str:
        return " ".join(p.encode() for p in self.pieces)

    @classmethod
    def decode(cls, text: str) -> "State":
        """Rebuild a state from encode() output."""
        return cls.from_pieces(Placed.decode(token) for token in text.split())

    # =========================
    # Placement
    # =========================
    def try_place(
        self, piece: int, x: int, y: int, table: Optional[OverlapTable] = None
    ) -> Optional["State"]:
        """Return the state with piece placed at (x, y), or None if illegal.

        The layer is implied: a piece lands on the ground when it only touches
        ground pieces edge to edge, or one layer above pieces that cover it,
        provided at least two of them share the cover and it has a neighbor
        on its own layer (unless it starts a new top layer).
        """
        check_piece_id(piece)

        # The first piece is pinned to the origin, unrotated.
        if not self.pieces:
            if x == 0 and y == 0 and rotation_of(piece) == 0:
                return self.insert(Placed(piece, 0, 0, 0))
            return None

        table = table or get_overlap_table()
        code_for = table.code_for
        shape = table.base_shape_id(piece)

        current_z = self.pieces[0].z
        neighbor_this_layer = False
        # Nothing sits above the top layer, so no neighbor is needed there.
        neighbor_prev_layer = True
        remaining = shape

        for placed in self.pieces:
            if placed.z != current_z:
                # Partly covered by the layer above: it would float.
                if remaining != shape:
                    return None
                current_z = placed.z
                neighbor_prev_layer = neighbor_this_layer
                neighbor_this_layer = False

            code = code_for(remaining, x - placed.x, y - placed.y, placed.piece)
            if code == OVERLAP_NONE:
                continue
            if code == OVERLAP_NEIGHBOR:
                neighbor_this_layer = True
            elif code == OVERLAP_FULL:
                # A single piece may not act as a pedestal.
                if remaining != shape and neighbor_prev_layer:
                    return self.insert(Placed(piece, x, y, placed.z + 1))
                return None
            else:
                remaining = partial_shape_id(code)

        if neighbor_this_layer and remaining == shape:
            return self.insert(Placed(piece, x, y, 0))
        return None
