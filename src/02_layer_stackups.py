import argparse
import csv
import logging
import time
from pathlib import Path

from bag_helpers import Bag, full_bag
from path_helpers import STACKUPS_CSV, ensure_output_dir, ensure_parent_dir
from stackup_helpers import MAX_LAYERS, layer_stackups, stackup_layers, stackup_score_bound

LOGGER = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="List the per-layer piece counts a bag could be stacked into."
    )
    parser.add_argument(
        "--bag-index",
        type=int,
        default=None,
        help="bag index (default: the full bag)",
    )
    parser.add_argument("--max-layers", type=int, default=MAX_LAYERS, help="highest layer count considered")
    parser.add_argument(
        "--out",
        default=str(STACKUPS_CSV),
        help="stack-ups CSV output",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        ensure_output_dir()
        out_path = ensure_parent_dir(Path(args.out))
        bag = full_bag() if args.bag_index is None else Bag.from_index(args.bag_index)

        start_time = time.time()
        stackups = layer_stackups(bag, max_layers=args.max_layers)

        best_bound = 0
        with open(out_path, "w", newline="") as out_file:
            writer = csv.writer(out_file)
            writer.writerow(["stackup_id", "layers", "counts", "score_bound"])
            for stackup_id, stackup in enumerate(stackups):
                bound = stackup_score_bound(bag, stackup)
                best_bound = max(best_bound, bound)
                counts = " ".join(str(count) for count in stackup if count)
                writer.writerow([stackup_id, stackup_layers(stackup), counts, bound])

        elapsed = time.time() - start_time
        LOGGER.info("=== DONE ===")
        LOGGER.info("bag: %r (%s pieces)", bag, len(bag))
        LOGGER.info("stackups: %s", f"{len(stackups):,}")
        LOGGER.info("best score bound: %s", best_bound)
        LOGGER.info("time: %.1f s", elapsed)
    except Exception:
        LOGGER.exception("Failed to list layer stack-ups")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
