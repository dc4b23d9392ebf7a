"""Text and image renderings of a State, one layer at a time."""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

import cv2
import numpy as np

from piece_helpers import decode_mask, piece_mask
from state_helpers import State

LOGGER = logging.getLogger(__name__)

# BGR, one per piece type.
PALETTE: Tuple[Tuple[int, int, int], ...] = (
    (60, 76, 231),
    (113, 204, 46),
    (219, 152, 52),
    (182, 89, 155),
    (15, 196, 241),
    (34, 126, 230),
    (156, 188, 26),
    (166, 165, 149),
    (94, 73, 52),
    (133, 21, 199),
)

# =========================
# Cell helpers
# =========================
def layer_cells(state: State) -> Dict[int, Dict[Tuple[int, int], int]]:
    """Map layer -> {(x, y): piece type} for every covered cell."""
    layers: Dict[int, Dict[Tuple[int, int], int]] = {}
    for placed in state:
        cells = layers.setdefault(placed.z, {})
        for cx, cy in decode_mask(piece_mask(placed.piece)):
            cells[(placed.x + cx, placed.y + cy)] = placed.piece_type
    return layers


def footprint(state: State) -> Tuple[int, int]:
    """Exact (width, height) of the covered cells across all layers."""
    width = 0
    height = 0
    for cells in layer_cells(state).values():
        for x, y in cells:
            width = max(width, x + 1)
            height = max(height, y + 1)
    return width, height

# =========================
# Text
# =========================
def render_layers_text(state: State) -> str:
    """One block per layer, bottom layer first; a digit is the type covering that cell."""
    if state.is_empty():
        return "(empty)"
    width, height = footprint(state)
    blocks: List[str] = []
    for z, cells in sorted(layer_cells(state).items()):
        rows = [f"layer {z}:"]
        for y in range(height):
            rows.append("".join(str(cells[(x, y)]) if (x, y) in cells else "." for x in range(width)))
        blocks.append("\n".join(rows))
    return "\n\n".join(blocks)

# =========================
# Image
# =========================
def render_state_image(state: State, out_path: str, cell_size: int = 40, margin: int = 20) -> None:
    """Render every layer side by side, ground layer on the left."""
    layers = layer_cells(state)
    width, height = footprint(state)
    width = max(width, 1)
    height = max(height, 1)
    layer_count = max(len(layers), 1)

    panel_w = width * cell_size
    panel_h = height * cell_size
    img_w = margin + layer_count * (panel_w + margin)
    img_h = panel_h + margin * 2
    img = np.full((img_h, img_w, 3), 255, dtype=np.uint8)

    for panel, (_, cells) in enumerate(sorted(layers.items())):
        left = margin + panel * (panel_w + margin)

        # Fill covered cells
        for (x, y), piece_type in cells.items():
            x1 = left + x * cell_size + 2
            y1 = margin + y * cell_size + 2
            x2 = left + (x + 1) * cell_size - 2
            y2 = margin + (y + 1) * cell_size - 2
            cv2.rectangle(img, (x1, y1), (x2, y2), PALETTE[piece_type % len(PALETTE)], -1)

        # Draw grid
        for i in range(width + 1):
            x = left + i * cell_size
            cv2.line(img, (x, margin), (x, margin + panel_h), (0, 0, 0), 1)
        for i in range(height + 1):
            y = margin + i * cell_size
            cv2.line(img, (left, y), (left + panel_w, y), (0, 0, 0), 1)

    if not cv2.imwrite(out_path, img):
        raise OSError(f"failed to write image: {out_path}")
    LOGGER.debug("wrote %s (%sx%s, %s layers)", out_path, img_w, img_h, len(layers))
