"""Piece geometry for the stacking puzzle: 4x4 shape masks, rotation and overlap classification."""

from __future__ import annotations

import logging
from typing import Iterable, NamedTuple, Tuple

# =========================
# Piece configuration
# =========================
UNIQUE_PIECE_COUNT = 10
MAX_ROTATIONS = 4
COPIES_PER_PIECE = 2
PIECE_ID_COUNT = UNIQUE_PIECE_COUNT * MAX_ROTATIONS  # 40
MAX_EDGE_LENGTH = 4
NUM_CELLS = MAX_EDGE_LENGTH * MAX_EDGE_LENGTH  # 16
MASK_LIMIT = 1 << NUM_CELLS  # 65536

LOGGER = logging.getLogger(__name__)

# Bit i of a mask is the cell (x, y) = (3 - i % 4, i // 4), so each nibble is one row
# and the leftmost bit of a nibble is x = 0.
PIECES: Tuple[int, ...] = (
    0b1110101010101110,  # 0
    0b1100010001000100,  # 1
    0b0110011011001110,  # 2
    0b1110001001101110,  # 3
    0b0110010011100110,  # 4
    0b1110100011101110,  # 5
    0b1100100011101110,  # 6
    0b1110010011001000,  # 7
    0b0110011011001100,  # 8
    0b1110111011001100,  # 9
)

NEIGHBOR_STEPS = ((0, 1), (0, -1), (1, 0), (-1, 0))

# =========================
# Mask / cell helpers
# =========================
def check_mask(mask: int) -> int:
    """Return mask unchanged, or raise ValueError if it is not a 4x4 mask."""
    if not 0 <= mask < MASK_LIMIT:
        raise ValueError(f"shape mask out of range: {mask}")
    return mask


def cell_bit(x: int, y: int) -> int:
    """Return the mask bit for a cell inside the 4x4 block."""
    if not (0 <= x < MAX_EDGE_LENGTH and 0 <= y < MAX_EDGE_LENGTH):
        raise ValueError(f"cell outside 4x4 block: ({x}, {y})")
    return 1 << ((MAX_EDGE_LENGTH - 1 - x) + y * MAX_EDGE_LENGTH)


def decode_mask(mask: int) -> Tuple[Tuple[int, int], ...]:
    """Unpack a mask into its occupied (x, y) cells, in bit order."""
    check_mask(mask)
    return tuple(
        (MAX_EDGE_LENGTH - 1 - bit % MAX_EDGE_LENGTH, bit // MAX_EDGE_LENGTH)
        for bit in range(NUM_CELLS)
        if (mask >> bit) & 1
    )


def encode_cells(cells: Iterable[Tuple[int, int]]) -> int:
    """Pack (x, y) cells into a mask."""
    mask = 0
    for x, y in cells:
        mask |= cell_bit(x, y)
    return mask


def mask_contains(mask: int, x: int, y: int) -> bool:
    """Return True if (x, y) is occupied; cells outside the block are empty."""
    if x < 0 or y < 0 or x >= MAX_EDGE_LENGTH or y >= MAX_EDGE_LENGTH:
        return False
    return bool(mask & cell_bit(x, y))


def count_cells(mask: int) -> int:
    """Return the number of occupied cells."""
    return bin(mask).count("1")


def render_mask(mask: int, filled: str = "#", empty: str = ".") -> str:
    """Render a mask as four rows, y = 0 first."""
    rows = []
    for y in range(MAX_EDGE_LENGTH):
        rows.append(
            "".join(filled if mask_contains(mask, x, y) else empty for x in range(MAX_EDGE_LENGTH))
        )
    return "\n".join(rows)

# =========================
# Rotation
# =========================
def rotate_mask(mask: int) -> int:
    """Quarter-turn a mask in place: (x, y) -> (y, 3 - x)."""
    return encode_cells((y, MAX_EDGE_LENGTH - 1 - x) for x, y in decode_mask(mask))


def normalize_mask(mask: int) -> int:
    """Shift a mask so its minimum x and minimum y are both 0."""
    cells = decode_mask(mask)
    if not cells:
        return 0
    min_x = min(x for x, _ in cells)
    min_y = min(y for _, y in cells)
    return encode_cells((x - min_x, y - min_y) for x, y in cells)


def build_piece_masks() -> Tuple[int, ...]:
    """Return the 40 base shapes indexed by packed piece id."""
    masks = []
    for base in PIECES:
        mask = normalize_mask(base)
        for _ in range(MAX_ROTATIONS):
            masks.append(mask)
            mask = normalize_mask(rotate_mask(mask))
    return tuple(masks)


PIECE_MASKS = build_piece_masks()

# =========================
# Packed piece ids
# =========================
def piece_id(piece_type: int, rotation: int) -> int:
    """Pack a (type, rotation) pair as type * 4 + rotation."""
    if not 0 <= piece_type < UNIQUE_PIECE_COUNT:
        raise ValueError(f"piece type out of range: {piece_type}")
    if not 0 <= rotation < MAX_ROTATIONS:
        raise ValueError(f"rotation out of range: {rotation}")
    return piece_type * MAX_ROTATIONS + rotation


def check_piece_id(piece: int) -> int:
    if not 0 <= piece < PIECE_ID_COUNT:
        raise ValueError(f"piece id out of range: {piece}")
    return piece


def piece_type_of(piece: int) -> int:
    return check_piece_id(piece) // MAX_ROTATIONS


def rotation_of(piece: int) -> int:
    return check_piece_id(piece) % MAX_ROTATIONS


def piece_mask(piece: int) -> int:
    """Return the normalized mask of a packed piece id."""
    return PIECE_MASKS[check_piece_id(piece)]


def piece_area(piece_type: int) -> int:
    """Return the tile count of a base piece type."""
    return count_cells(PIECE_MASKS[piece_id(piece_type, 0)])

# =========================
# Overlap classification
# =========================
OVERLAP_NONE = 0
OVERLAP_FULL = 1
OVERLAP_NEIGHBOR = 2
OVERLAP_PARTIAL = 3

OVERLAP_NAMES = {
    OVERLAP_NONE: "none",
    OVERLAP_FULL: "full",
    OVERLAP_NEIGHBOR: "neighbor",
    OVERLAP_PARTIAL: "partial",
}


class Overlap(NamedTuple):
    """Relation between an occupying shape and a shifted candidate.

    remainder is the uncovered part of the candidate (in the candidate's own
    frame) for partial overlaps and 0 otherwise.
    """

    kind: int
    remainder: int = 0

    def __repr__(self) -> str:
        if self.kind == OVERLAP_PARTIAL:
            return f"Overlap(partial, {self.remainder:016b})"
        return f"Overlap({OVERLAP_NAMES[self.kind]})"


def overlap_code(kind: int, shape_id: int = 0) -> int:
    """Pack an outcome into a table code: 0 none, 1 full, 2 neighbor, 3 + id partial."""
    if kind == OVERLAP_PARTIAL:
        if shape_id < 0:
            raise ValueError(f"shape id out of range: {shape_id}")
        return OVERLAP_PARTIAL + shape_id
    if kind not in OVERLAP_NAMES:
        raise ValueError(f"unknown overlap kind: {kind}")
    return kind


def decode_overlap_code(code: int) -> Tuple[int, int]:
    """Unpack a table code into (kind, shape_id); shape_id is 0 unless partial."""
    if code < 0:
        raise ValueError(f"overlap code out of range: {code}")
    if code >= OVERLAP_PARTIAL:
        return OVERLAP_PARTIAL, code - OVERLAP_PARTIAL
    return code, 0


def partial_shape_id(code: int) -> int:
    return code - OVERLAP_PARTIAL


def classify(occupant: int, other: int, dx: int, dy: int) -> Overlap:
    """Classify `other`, shifted by (dx, dy), against `occupant`."""
    covered = 0
    touching = False
    cells = decode_mask(other)
    if not cells:
        return Overlap(OVERLAP_NONE)

    for x, y in cells:
        if mask_contains(occupant, x + dx, y + dy):
            covered |= cell_bit(x, y)
        for step_x, step_y in NEIGHBOR_STEPS:
            if mask_contains(occupant, x + dx + step_x, y + dy + step_y):
                touching = True

    if covered == other:
        return Overlap(OVERLAP_FULL)
    if covered:
        return Overlap(OVERLAP_PARTIAL, other & ~covered)
    if touching:
        return Overlap(OVERLAP_NEIGHBOR)
    return Overlap(OVERLAP_NONE)
