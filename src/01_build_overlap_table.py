import argparse
import csv
import logging
import time
from pathlib import Path

from overlap_table import get_overlap_table
from path_helpers import SHAPES_CSV, ensure_output_dir, ensure_parent_dir
from piece_helpers import PIECE_ID_COUNT, count_cells, render_mask

LOGGER = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Build the shape overlap table and write every reachable shape to CSV."
    )
    parser.add_argument(
        "--shapes-out",
        default=str(SHAPES_CSV),
        help="shapes CSV output",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        ensure_output_dir()
        shapes_out_path = ensure_parent_dir(Path(args.shapes_out))

        start_time = time.time()
        table = get_overlap_table()
        elapsed = time.time() - start_time

        with open(shapes_out_path, "w", newline="") as shapes_file:
            writer = csv.writer(shapes_file)
            writer.writerow(["shape_id", "mask", "cells", "base_piece", "rendering"])
            for shape_id, mask in table.iter_shapes():
                writer.writerow(
                    [
                        shape_id,
                        mask,
                        count_cells(mask),
                        shape_id if shape_id < PIECE_ID_COUNT else "",
                        render_mask(mask).replace("\n", "/"),
                    ]
                )

        counts = table.outcome_counts()
        LOGGER.info("=== DONE ===")
        LOGGER.info("shapes: %s", f"{table.shape_count:,}")
        for kind, count in counts.items():
            LOGGER.info("%s: %s", kind, f"{count:,}")
        LOGGER.info("time: %.1f s", elapsed)
        LOGGER.info("shapes_out: %s", shapes_out_path)
    except Exception:
        LOGGER.exception("Failed to build overlap table")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
