"""Overlap lookup table built by a breadth-first closure over partial-overlap remainders.

Every base (type, rotation) shape is classified against every placed
(type, rotation) shape at every offset in [-4, 4]^2. Whenever a placed shape
covers only part of the candidate, the uncovered remainder becomes a new shape
of its own and is classified in turn. Successive partial overlaps therefore
narrow a candidate down until some placed shape covers what is left, which is
how support from two or more pieces is recognised with single lookups.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter, deque
from typing import Deque, Dict, Iterator, List, Optional, Tuple

import numpy as np

from piece_helpers import (
    MAX_EDGE_LENGTH,
    NEIGHBOR_STEPS,
    OVERLAP_FULL,
    OVERLAP_NEIGHBOR,
    OVERLAP_NONE,
    OVERLAP_PARTIAL,
    PIECE_ID_COUNT,
    PIECE_MASKS,
    Overlap,
    cell_bit,
    check_piece_id,
    decode_mask,
    decode_overlap_code,
    overlap_code,
    piece_id,
)

OFFSET_SPAN = 2 * MAX_EDGE_LENGTH + 1  # 9
OFFSETS = np.arange(-MAX_EDGE_LENGTH, MAX_EDGE_LENGTH + 1)

# Padding keeps cell + offset + neighbor step inside the grid.
GRID_PAD = MAX_EDGE_LENGTH + 1
GRID_SIZE = MAX_EDGE_LENGTH + 2 * GRID_PAD

LOGGER = logging.getLogger(__name__)


class OverlapTable:
    """Read-only lookup: (occupying shape, dx, dy, placed piece) -> overlap code.

    Each shape owns one int32 block laid out as [piece][dx + 4][dy + 4], where
    piece is the packed type * 4 + rotation id of the already-placed shape.
    """

    def __init__(self, masks: List[int], blocks: List[np.ndarray]) -> None:
        if len(masks) != len(blocks):
            raise ValueError("every shape needs exactly one table block")
        self._masks: Tuple[int, ...] = tuple(masks)
        self._blocks = blocks
        # memoryview indexing hands back plain ints, which keeps the placement scan cheap.
        self._views = [memoryview(block.reshape(-1)) for block in blocks]

    @property
    def shape_count(self) -> int:
        return len(self._masks)

    def mask_of(self, shape_id: int) -> int:
        return self._masks[shape_id]

    def base_shape_id(self, piece: int) -> int:
        """Base shapes keep their packed piece id as their shape id."""
        return check_piece_id(piece)

    def code_for(self, shape_id: int, dx: int, dy: int, piece: int) -> int:
        """Return the raw overlap code; offsets outside the window never interact."""
        if dx < -MAX_EDGE_LENGTH or dx > MAX_EDGE_LENGTH or dy < -MAX_EDGE_LENGTH or dy > MAX_EDGE_LENGTH:
            return OVERLAP_NONE
        return self._views[shape_id][
            (piece * OFFSET_SPAN + dx + MAX_EDGE_LENGTH) * OFFSET_SPAN + dy + MAX_EDGE_LENGTH
        ]

    def at(self, shape_id: int, dx: int, dy: int, rotation: int, piece_type: int) -> Overlap:
        """Decoded lookup; partial remainders are reported as masks."""
        code = self.code_for(shape_id, dx, dy, piece_id(piece_type, rotation))
        kind, remainder_id = decode_overlap_code(code)
        if kind == OVERLAP_PARTIAL:
            return Overlap(OVERLAP_PARTIAL, self._masks[remainder_id])
        return Overlap(kind)

    def block(self, shape_id: int) -> np.ndarray:
        """Raw codes of one shape, shaped [piece, dx + 4, dy + 4]."""
        return self._blocks[shape_id]

    def iter_shapes(self) -> Iterator[Tuple[int, int]]:
        """Yield (shape_id, mask) in id order."""
        yield from enumerate(self._masks)

    def outcome_counts(self) -> Dict[str, int]:
        """Count table entries per outcome kind."""
        counts: Counter = Counter()
        for block in self._blocks:
            counts["none"] += int(np.count_nonzero(block == OVERLAP_NONE))
            counts["full"] += int(np.count_nonzero(block == OVERLAP_FULL))
            counts["neighbor"] += int(np.count_nonzero(block == OVERLAP_NEIGHBOR))
            counts["partial"] += int(np.count_nonzero(block >= OVERLAP_PARTIAL))
        return dict(counts)

# =========================
# Construction
# =========================
def build_piece_grids() -> np.ndarray:
    """Occupancy of every placed (type, rotation) shape as [piece, y, x] on a padded grid."""
    grids = np.zeros((PIECE_ID_COUNT, GRID_SIZE, GRID_SIZE), dtype=bool)
    for piece, mask in enumerate(PIECE_MASKS):
        for x, y in decode_mask(mask):
            grids[piece, y + GRID_PAD, x + GRID_PAD] = True
    return grids


def classify_block(grids: np.ndarray, mask: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Classify a candidate mask against every placed shape at every offset at once.

    Returns (codes, partial, remainders), each shaped [piece, dx, dy]. Partial
    entries in codes are left unresolved; the caller assigns their shape ids.
    """
    cells = decode_mask(mask)
    xs = np.array([x for x, _ in cells])
    ys = np.array([y for _, y in cells])
    bits = np.array([cell_bit(x, y) for x, y in cells], dtype=np.int64)

    cols = xs[None, None, :] + OFFSETS[:, None, None] + GRID_PAD  # [dx, 1, cell]
    rows = ys[None, None, :] + OFFSETS[None, :, None] + GRID_PAD  # [1, dy, cell]

    covered = grids[:, rows, cols]  # [piece, dx, dy, cell]
    touching = np.zeros_like(covered)
    for step_x, step_y in NEIGHBOR_STEPS:
        touching |= grids[:, rows + step_y, cols + step_x]

    any_covered = covered.any(axis=-1)
    all_covered = covered.all(axis=-1)
    remainders = np.where(covered, 0, bits).sum(axis=-1)

    codes = np.full(any_covered.shape, OVERLAP_NONE, dtype=np.int32)
    codes[touching.any(axis=-1)] = overlap_code(OVERLAP_NEIGHBOR)
    codes[all_covered] = overlap_code(OVERLAP_FULL)
    partial = any_covered & ~all_covered
    return codes, partial, remainders


def build_overlap_table(progress_every: int = 1000) -> OverlapTable:
    """Run the breadth-first closure and return the finished table."""
    start_time = time.time()
    grids = build_piece_grids()

    masks: List[int] = []
    ids_by_mask: Dict[int, int] = {}
    todo: Deque[int] = deque()

    # The 40 base shapes get fresh ids even when two rotations share a mask.
    for mask in PIECE_MASKS:
        shape_id = len(masks)
        masks.append(mask)
        ids_by_mask.setdefault(mask, shape_id)
        todo.append(shape_id)

    blocks: List[np.ndarray] = []
    while todo:
        shape_id = todo.popleft()
        if shape_id != len(blocks):
            raise RuntimeError(f"overlap closure out of order at shape {shape_id}")

        codes, partial, remainders = classify_block(grids, masks[shape_id])
        partial_remainders = remainders[partial]
        if partial_remainders.size:
            unique, inverse = np.unique(partial_remainders, return_inverse=True)
            remainder_codes = np.empty(len(unique), dtype=np.int32)
            for position, remainder in enumerate(unique.tolist()):
                remainder_id = ids_by_mask.get(remainder)
                if remainder_id is None:
                    remainder_id = len(masks)
                    masks.append(remainder)
                    ids_by_mask[remainder] = remainder_id
                    todo.append(remainder_id)
                remainder_codes[position] = overlap_code(OVERLAP_PARTIAL, remainder_id)
            codes[partial] = remainder_codes[inverse.reshape(-1)]

        blocks.append(np.ascontiguousarray(codes))

        if progress_every and len(blocks) % progress_every == 0:
            LOGGER.info(
                "overlap closure: %s shapes done, %s queued",
                f"{len(blocks):,}",
                f"{len(todo):,}",
            )

    LOGGER.info(
        "overlap table: %s shapes (%s base rotations) in %.1fs",
        f"{len(masks):,}",
        PIECE_ID_COUNT,
        time.time() - start_time,
    )
    return OverlapTable(masks, blocks)

# =========================
# Process-wide instance
# =========================
_TABLE: Optional[OverlapTable] = None
_TABLE_LOCK = threading.Lock()


def get_overlap_table() -> OverlapTable:
    """Build the table on first use; later callers share the same instance."""
    global _TABLE
    if _TABLE is None:
        with _TABLE_LOCK:
            if _TABLE is None:
                _TABLE = build_overlap_table()
    return _TABLE

