import argparse
import csv
import logging
from pathlib import Path
from typing import Dict, Optional

from bag_helpers import Bag
from overlap_table import get_overlap_table
from path_helpers import BAG_SCORES_CSV, ensure_images_dir, ensure_parent_dir
from render_helpers import render_layers_text, render_state_image
from search_helpers import Results, Worker
from state_helpers import State

LOGGER = logging.getLogger(__name__)


def find_result_row(csv_path: str, bag_index: int) -> Optional[Dict[str, str]]:
    """Find a row in the bag scores CSV by bag index."""
    with open(csv_path, "r", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            if int(row["bag_index"]) == bag_index:
                return row
    return None


def solve_with_sub_bags(bag: Bag) -> Worker:
    """Solve every strict sub-bag smallest first, then bag itself."""
    table = get_overlap_table()
    results = Results()
    for sub_bag in sorted(bag.iter_sub_bags(), key=len):
        Worker(sub_bag.to_index(), results, table).run()
    worker = Worker(bag.to_index(), results, table)
    worker.run()
    return worker


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Show the best stacked layout of one bag, layer by layer."
    )
    parser.add_argument("bag_index", type=int, help="bag index (0..59048)")
    parser.add_argument(
        "--results",
        default=str(BAG_SCORES_CSV),
        help="bag scores CSV written by 03_solve_bags.py",
    )
    parser.add_argument(
        "--solve",
        action="store_true",
        help="solve the bag now instead of reading the results CSV",
    )
    parser.add_argument("--image-out", default=None, help="PNG output path")
    parser.add_argument(
        "--skip-image",
        action="store_true",
        help="skip rendering the layout image",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        bag = Bag.from_index(args.bag_index)

        if args.solve:
            worker = solve_with_sub_bags(bag)
            best_score = worker.best_score
            state = worker.best_state
        else:
            row = find_result_row(args.results, args.bag_index)
            if not row:
                raise SystemExit("bag index not found in results CSV")
            best_score = int(row["best_score"])
            state = State.decode(row["layout"])

        print("=== BAG ===")
        print(f"bag_index: {args.bag_index}")
        print(f"bag_digits: {bag.digits()}")
        print(f"piece_count: {len(bag)}")
        print(f"piece_types: {' '.join(str(piece_type) for piece_type in bag)}")

        print("\n=== SCORE ===")
        print(f"best_score: {best_score}")
        print(f"layout_score: {state.score()}")
        print(f"layers: {state.layers() + 1 if not state.is_empty() else 0}")
        print(f"layout: {state.encode()}")

        print("\n=== LAYERS ===")
        print(render_layers_text(state))

        if not args.skip_image:
            if args.image_out:
                image_path = ensure_parent_dir(Path(args.image_out))
            else:
                image_path = ensure_images_dir() / f"bag_{args.bag_index}.png"
            render_state_image(state, str(image_path))
            print(f"\nimage: {image_path}")
    except Exception:
        LOGGER.exception("Failed to show layout")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
