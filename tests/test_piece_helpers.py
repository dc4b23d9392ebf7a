import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from piece_helpers import (
    MASK_LIMIT,
    MAX_ROTATIONS,
    OVERLAP_FULL,
    OVERLAP_NEIGHBOR,
    OVERLAP_NONE,
    OVERLAP_PARTIAL,
    PIECE_ID_COUNT,
    PIECE_MASKS,
    PIECES,
    Overlap,
    cell_bit,
    check_mask,
    classify,
    count_cells,
    decode_mask,
    decode_overlap_code,
    encode_cells,
    normalize_mask,
    overlap_code,
    piece_area,
    piece_id,
    piece_mask,
    piece_type_of,
    render_mask,
    rotate_mask,
    rotation_of,
)

P0 = piece_mask(piece_id(0, 0))
P1 = piece_mask(piece_id(1, 0))


class MaskHelperTests(unittest.TestCase):
    def test_encode_decode_every_mask(self) -> None:
        for mask in range(MASK_LIMIT):
            self.assertEqual(encode_cells(decode_mask(mask)), mask)

    def test_four_rotations_are_identity(self) -> None:
        for mask in range(MASK_LIMIT):
            rotated = mask
            for _ in range(MAX_ROTATIONS):
                rotated = rotate_mask(rotated)
            self.assertEqual(rotated, mask)

    def test_rotation_keeps_cell_count(self) -> None:
        for mask in range(0, MASK_LIMIT, 7):
            self.assertEqual(count_cells(rotate_mask(mask)), count_cells(mask))

    def test_cell_layout(self) -> None:
        self.assertEqual(cell_bit(3, 0), 1)
        self.assertEqual(cell_bit(0, 0), 1 << 3)
        self.assertEqual(cell_bit(0, 3), 1 << 15)
        self.assertEqual(decode_mask(1 << 4), ((3, 1),))

    def test_rejects_out_of_range(self) -> None:
        with self.assertRaises(ValueError):
            cell_bit(4, 0)
        with self.assertRaises(ValueError):
            cell_bit(0, -1)
        with self.assertRaises(ValueError):
            check_mask(MASK_LIMIT)

    def test_normalize_moves_to_origin(self) -> None:
        self.assertEqual(normalize_mask(cell_bit(3, 2)), cell_bit(0, 0))
        self.assertEqual(normalize_mask(0), 0)

    def test_render_ring_piece(self) -> None:
        self.assertEqual(render_mask(P0), "###.\n#.#.\n#.#.\n###.")


class PieceTests(unittest.TestCase):
    def test_base_rotations_are_normalized(self) -> None:
        self.assertEqual(len(PIECE_MASKS), PIECE_ID_COUNT)
        for mask in PIECE_MASKS:
            self.assertEqual(normalize_mask(mask), mask)

    def test_rotations_keep_area(self) -> None:
        for piece in range(PIECE_ID_COUNT):
            self.assertEqual(count_cells(piece_mask(piece)), piece_area(piece_type_of(piece)))

    def test_area_matches_base_shape(self) -> None:
        for piece_type, mask in enumerate(PIECES):
            self.assertEqual(piece_area(piece_type), count_cells(mask))
        self.assertEqual(piece_area(1), 5)

    def test_piece_id_packing(self) -> None:
        self.assertEqual(piece_id(9, 3), 39)
        for piece in range(PIECE_ID_COUNT):
            self.assertEqual(piece_id(piece_type_of(piece), rotation_of(piece)), piece)
        with self.assertRaises(ValueError):
            piece_type_of(PIECE_ID_COUNT)
        with self.assertRaises(ValueError):
            piece_id(0, MAX_ROTATIONS)

    def test_second_rotation_of_l_piece(self) -> None:
        expected = encode_cells([(0, 0), (1, 0), (2, 0), (3, 0), (3, 1)])
        self.assertEqual(piece_mask(piece_id(1, 1)), expected)


class ClassifyTests(unittest.TestCase):
    def test_same_shape_same_place_is_full(self) -> None:
        self.assertEqual(classify(P0, P0, 0, 0), Overlap(OVERLAP_FULL))

    def test_side_by_side_is_neighbor(self) -> None:
        self.assertEqual(classify(P0, P0, 3, 0), Overlap(OVERLAP_NEIGHBOR))
        self.assertEqual(classify(P0, P0, 0, -4), Overlap(OVERLAP_NEIGHBOR))

    def test_gap_is_none(self) -> None:
        self.assertEqual(classify(P0, P0, 4, 0), Overlap(OVERLAP_NONE))
        self.assertEqual(classify(P0, P0, 3, 4), Overlap(OVERLAP_NONE))

    def test_partial_reports_uncovered_cells(self) -> None:
        result = classify(P0, P1, 0, 0)
        self.assertEqual(result.kind, OVERLAP_PARTIAL)
        self.assertEqual(result.remainder, 0b0000010001000000)
        self.assertEqual(result.remainder, encode_cells([(1, 1), (1, 2)]))

    def test_l_piece_inside_ring_wall_is_full(self) -> None:
        self.assertEqual(classify(P0, P1, 1, 0), Overlap(OVERLAP_FULL))

    def test_empty_candidate_is_none(self) -> None:
        self.assertEqual(classify(P0, 0, 0, 0), Overlap(OVERLAP_NONE))

    def test_overlap_codes(self) -> None:
        self.assertEqual(overlap_code(OVERLAP_NONE), 0)
        self.assertEqual(overlap_code(OVERLAP_PARTIAL, 7), 10)
        self.assertEqual(decode_overlap_code(10), (OVERLAP_PARTIAL, 7))
        self.assertEqual(decode_overlap_code(OVERLAP_NEIGHBOR), (OVERLAP_NEIGHBOR, 0))
        with self.assertRaises(ValueError):
            decode_overlap_code(-1)


if __name__ == "__main__":
    unittest.main()
