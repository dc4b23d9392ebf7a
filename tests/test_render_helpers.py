import sys
import tempfile
import unittest
from pathlib import Path

import cv2

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from render_helpers import PALETTE, footprint, layer_cells, render_layers_text, render_state_image
from state_helpers import Placed, State

LIFTED = State.from_pieces([Placed(0, 0, 0, 0), Placed(0, 3, 0, 0), Placed(4, 2, 0, 1)])


class RenderTextTests(unittest.TestCase):
    def test_layers_bottom_first(self) -> None:
        expected = "\n".join(
            [
                "layer 0:",
                "000000",
                "0.00.0",
                "0.00.0",
                "000000",
                "",
                "layer 1:",
                "...1..",
                "...1..",
                "...1..",
                "..11..",
            ]
        )
        self.assertEqual(render_layers_text(LIFTED), expected)

    def test_empty_state(self) -> None:
        self.assertEqual(render_layers_text(State()), "(empty)")

    def test_cells_and_footprint(self) -> None:
        cells = layer_cells(LIFTED)
        self.assertEqual(sorted(cells), [0, 1])
        self.assertEqual(len(cells[0]), 20)
        self.assertEqual(len(cells[1]), 5)
        self.assertEqual(footprint(LIFTED), (6, 4))


class RenderImageTests(unittest.TestCase):
    def test_writes_layers_side_by_side(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            out_path = Path(temp_dir) / "layout.png"
            render_state_image(LIFTED, str(out_path), cell_size=40, margin=20)
            img = cv2.imread(str(out_path))

        self.assertIsNotNone(img)
        self.assertEqual(img.shape, (200, 540, 3))
        # Centre of cell (0, 0) on the ground layer, then an empty cell.
        self.assertEqual(tuple(int(v) for v in img[40, 40]), PALETTE[0])
        self.assertEqual(tuple(int(v) for v in img[80, 80]), (255, 255, 255))
        # Cell (3, 0) on the second panel holds the L piece.
        left = 20 + 6 * 40 + 20
        self.assertEqual(tuple(int(v) for v in img[40, left + 3 * 40 + 20]), PALETTE[1])

    def test_empty_state_still_writes(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            out_path = Path(temp_dir) / "empty.png"
            render_state_image(State(), str(out_path))
            self.assertTrue(out_path.exists())


if __name__ == "__main__":
    unittest.main()
