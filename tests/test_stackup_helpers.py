import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from bag_helpers import Bag, full_bag
from stackup_helpers import (
    MAX_LAYERS,
    fits_areas,
    is_supported,
    layer_stackups,
    stackup_layers,
    stackup_score_bound,
)


def padded(*counts: int):
    return tuple(counts) + (0,) * (MAX_LAYERS - len(counts))


class StackupRuleTests(unittest.TestCase):
    def test_support_rule(self) -> None:
        self.assertTrue(is_supported((3, 0, 0)))
        self.assertTrue(is_supported((2, 2, 1)))
        self.assertFalse(is_supported((2, 1, 1)))
        self.assertFalse(is_supported((3, 0, 1)))

    def test_area_rule(self) -> None:
        self.assertTrue(fits_areas((3, 2), [1, 1, 1, 1, 1]))
        self.assertFalse(fits_areas((2, 3), [1, 1, 1, 1, 1]))
        self.assertTrue(fits_areas((2, 1), [5, 10, 10]))


class LayerStackupTests(unittest.TestCase):
    def test_small_bag(self) -> None:
        stackups = layer_stackups(Bag.from_index(5))
        self.assertEqual(stackups, [padded(3), padded(2, 1)])

    def test_two_pieces_stay_flat(self) -> None:
        self.assertEqual(layer_stackups(Bag.from_index(2)), [padded(2)])

    def test_empty_bag(self) -> None:
        self.assertEqual(layer_stackups(Bag.from_index(0)), [padded()])

    def test_full_bag(self) -> None:
        bag = full_bag()
        stackups = layer_stackups(bag)
        self.assertEqual(stackups[0], padded(20))
        self.assertEqual(len(stackups), len(set(stackups)))
        for stackup in stackups:
            self.assertEqual(sum(stackup), 20)
            self.assertTrue(is_supported(stackup))
            self.assertLessEqual(stackup_score_bound(bag, stackup), bag.score_stacked())
        self.assertIn(padded(2, 2, 2, 2, 2, 2, 2, 2, 2, 2), stackups)
        self.assertEqual(max(stackup_layers(stackup) for stackup in stackups), MAX_LAYERS)


class StackupScoreTests(unittest.TestCase):
    def test_best_pieces_go_highest(self) -> None:
        bag = Bag.from_index(5)
        self.assertEqual(stackup_score_bound(bag, padded(3)), 0)
        self.assertEqual(stackup_score_bound(bag, padded(2, 1)), 1)

    def test_full_bag_two_per_layer(self) -> None:
        bag = full_bag()
        self.assertEqual(stackup_score_bound(bag, padded(*([2] * 10))), 570)

    def test_piece_count_mismatch(self) -> None:
        with self.assertRaises(ValueError):
            stackup_score_bound(Bag.from_index(5), padded(2))

    def test_layer_count(self) -> None:
        self.assertEqual(stackup_layers(padded(4, 3, 2)), 3)
        self.assertEqual(stackup_layers(padded()), 0)


if __name__ == "__main__":
    unittest.main()
