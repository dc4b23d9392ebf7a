import contextlib
import csv
import importlib.util
import io
import sys
import tempfile
import unittest
import unittest.mock
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

SCRIPT_PATH = SRC_DIR / "04_show_layout.py"
LAYOUT = "4:2:0:1 0:0:0:0 0:3:0:0"


def load_show_layout_module():
    spec = importlib.util.spec_from_file_location("show_layout", SCRIPT_PATH)
    if spec is None or spec.loader is None:
        raise RuntimeError("Failed to load 04_show_layout.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def write_results(path: Path) -> None:
    with path.open("w", newline="") as file:
        writer = csv.DictWriter(
            file,
            fieldnames=["bag_index", "bag_digits", "piece_count", "best_score", "layout"],
        )
        writer.writeheader()
        writer.writerow(
            {
                "bag_index": "5",
                "bag_digits": "0000000012",
                "piece_count": "3",
                "best_score": "1",
                "layout": LAYOUT,
            }
        )


class ShowLayoutTests(unittest.TestCase):
    def run_main(self, argv):
        module = load_show_layout_module()
        stdout = io.StringIO()
        with unittest.mock.patch.object(sys, "argv", argv), contextlib.redirect_stdout(stdout):
            module.main()
        return stdout.getvalue()

    def test_prints_layout_from_results(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            results_csv = Path(temp_dir) / "scores.csv"
            write_results(results_csv)
            output = self.run_main(
                ["04_show_layout.py", "5", "--results", str(results_csv), "--skip-image"]
            )

        self.assertIn("=== BAG ===", output)
        self.assertIn("bag_digits: 0000000012", output)
        self.assertIn("piece_types: 0 0 1", output)
        self.assertIn("best_score: 1", output)
        self.assertIn("layers: 2", output)
        self.assertIn(f"layout: {LAYOUT}", output)
        self.assertIn("layer 1:\n...1..", output)
        self.assertNotIn("image:", output)

    def test_writes_image(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            results_csv = Path(temp_dir) / "scores.csv"
            image_path = Path(temp_dir) / "images" / "bag.png"
            write_results(results_csv)
            output = self.run_main(
                ["04_show_layout.py", "5", "--results", str(results_csv), "--image-out", str(image_path)]
            )
            self.assertTrue(image_path.exists())

        self.assertIn(f"image: {image_path}", output)

    def test_solve_small_bag(self) -> None:
        output = self.run_main(["04_show_layout.py", "5", "--solve", "--skip-image"])
        self.assertIn("best_score: 1", output)
        self.assertIn("layout_score: 1", output)

    def test_missing_bag_exits(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            results_csv = Path(temp_dir) / "scores.csv"
            write_results(results_csv)
            with self.assertRaises(SystemExit):
                self.run_main(["04_show_layout.py", "7", "--results", str(results_csv), "--skip-image"])


if __name__ == "__main__":
    unittest.main()
