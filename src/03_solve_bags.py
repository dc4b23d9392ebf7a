import argparse
import csv
import logging
import os
import time
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from pathlib import Path
from typing import Iterator, Optional, Tuple

from bag_helpers import MAX_BAG_PIECES, Bag, bag_indices_by_size
from overlap_table import OverlapTable, get_overlap_table
from path_helpers import BAG_SCORES_CSV, ensure_output_dir, ensure_parent_dir
from render_helpers import render_layers_text
from search_helpers import Results, Worker, solve_bag
from state_helpers import State

LOGGER = logging.getLogger(__name__)


def solve_level_in_process(
    indices: Tuple[int, ...], results: Results, table: OverlapTable
) -> Iterator[Tuple[int, int, str]]:
    """Solve bags one after another against the shared results."""
    for index in indices:
        worker = Worker(index, results, table)
        best_score = worker.run()
        yield index, best_score, worker.best_state.encode()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Find the best stacking score of every bag, smallest bags first."
    )
    parser.add_argument(
        "--max-pieces",
        type=int,
        default=MAX_BAG_PIECES,
        help="solve bags holding up to this many pieces",
    )
    parser.add_argument(
        "--results-out",
        default=str(BAG_SCORES_CSV),
        help="bag scores CSV output",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=0,
        help="number of worker processes (0 = cpu count, 1 = no multiprocessing)",
    )
    parser.add_argument(
        "--chunksize",
        type=int,
        default=16,
        help="task chunksize for multiprocessing",
    )
    parser.add_argument("--progress-every", type=int, default=1_000, help="progress interval")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        if not 0 <= args.max_pieces <= MAX_BAG_PIECES:
            raise ValueError(f"--max-pieces must be between 0 and {MAX_BAG_PIECES}")

        ensure_output_dir()
        results_out_path = ensure_parent_dir(Path(args.results_out))

        worker_count = args.workers if args.workers >= 0 else 0
        if worker_count == 0:
            worker_count = os.cpu_count() or 1
        use_multiprocessing = worker_count > 1
        progress_every = max(args.progress_every, 1)

        start_time = time.time()
        # Built before any pool starts so forked workers inherit it.
        table = get_overlap_table()
        LOGGER.info("overlap table ready: %s shapes (%.1f s)", f"{table.shape_count:,}", time.time() - start_time)

        levels = bag_indices_by_size(args.max_pieces)
        total = sum(len(level) for level in levels)
        results = Results()

        processed = 0
        best_score = -1
        best_index: Optional[int] = None
        best_layout = ""

        executor = ProcessPoolExecutor(max_workers=worker_count) if use_multiprocessing else None
        try:
            with open(results_out_path, "w", newline="") as results_file:
                writer = csv.writer(results_file)
                writer.writerow(["bag_index", "bag_digits", "piece_count", "best_score", "layout"])

                for piece_count, level in enumerate(levels):
                    level_start = time.time()
                    if executor is not None:
                        solver = partial(
                            solve_bag,
                            solved_scores=results.solved_scores(),
                            solved_layouts=results.solved_layouts(),
                        )
                        solved = executor.map(solver, level, chunksize=max(args.chunksize, 1))
                    else:
                        solved = solve_level_in_process(level, results, table)

                    level_best = 0
                    for index, score, layout in solved:
                        if executor is not None:
                            results.write_score(index, score, State.decode(layout))
                        processed += 1
                        level_best = max(level_best, score)
                        writer.writerow([index, Bag.from_index(index).digits(), piece_count, score, layout])

                        if score > best_score:
                            best_score = score
                            best_index = index
                            best_layout = layout
                            if score > 0:
                                LOGGER.info(
                                    "new best score %s for %r:\n%s",
                                    score,
                                    Bag.from_index(index),
                                    render_layers_text(State.decode(layout)),
                                )

                        if processed % progress_every == 0:
                            elapsed = time.time() - start_time
                            rate = processed / elapsed if elapsed > 0 else 0.0
                            eta = (total - processed) / rate if rate else 0
                            LOGGER.info(
                                "[%s/%s] %.2f%% | %.2f bags/s | ETA %.1f min | best %s",
                                f"{processed:,}",
                                f"{total:,}",
                                (processed / total) * 100 if total > 0 else 0.0,
                                rate,
                                eta / 60,
                                best_score,
                            )

                    results_file.flush()
                    LOGGER.info(
                        "level %s done: %s bags | best %s | %.1f s",
                        piece_count,
                        f"{len(level):,}",
                        level_best,
                        time.time() - level_start,
                    )
        finally:
            if executor is not None:
                executor.shutdown()

        elapsed = time.time() - start_time
        LOGGER.info("=== DONE ===")
        LOGGER.info("processed: %s", f"{processed:,}")
        LOGGER.info("solved: %s", f"{results.solved_count():,}")
        if best_index is not None:
            LOGGER.info("best score: %s (%r)", best_score, Bag.from_index(best_index))
            LOGGER.info("best layout: %s", best_layout)
        LOGGER.info("results_out: %s", results_out_path)
        LOGGER.info("time: %.1f min", elapsed / 60)
    except Exception:
        LOGGER.exception("Failed to solve bags")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
