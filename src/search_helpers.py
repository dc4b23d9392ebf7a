"""Branch-and-bound search per bag, backed by a shared table of solved bag scores."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Set, Tuple

from bag_helpers import BAG_COUNT, Bag, bag_score_deltas
from overlap_table import OverlapTable, get_overlap_table
from piece_helpers import MAX_EDGE_LENGTH, piece_type_of
from state_helpers import State

LOGGER = logging.getLogger(__name__)

# =========================
# Results
# =========================
class Results:
    """Best score and layout per bag index, plus the per-layer score delta of every bag.

    Each entry is a (best_score, score_delta, best_state) tuple. best_score is
    None until a Worker has solved that bag, and every key is written exactly
    once. A write replaces the whole tuple, so lock-free readers never see half
    an entry.
    """

    def __init__(self) -> None:
        empty = State()
        self._entries: List[Tuple[Optional[int], int, State]] = [
            (None, delta, empty) for delta in bag_score_deltas()
        ]
        self._solved = 0
        self._write_lock = threading.Lock()

    @classmethod
    def from_scores(cls, scores: Dict[int, int], layouts: Optional[Dict[int, str]] = None) -> "Results":
        """Build a table with the given bags already solved; layouts are State.encode() text."""
        layouts = layouts or {}
        results = cls()
        for index, score in scores.items():
            results.write_score(index, score, State.decode(layouts.get(index, "")))
        return results

    def solved_scores(self) -> Dict[int, int]:
        """Snapshot of every solved score, for handing to worker processes."""
        return {
            index: score
            for index, (score, _, _) in enumerate(self._entries)
            if score is not None
        }

    def solved_layouts(self) -> Dict[int, str]:
        """Encoded best layout of every solved bag that placed at least one piece."""
        return {
            index: state.encode()
            for index, (score, _, state) in enumerate(self._entries)
            if score is not None and not state.is_empty()
        }

    def solved_count(self) -> int:
        return self._solved

    def is_solved(self, index: int) -> bool:
        return self._entries[index][0] is not None

    def best_score(self, index: int) -> Optional[int]:
        return self._entries[index][0]

    def best_state(self, index: int) -> State:
        return self._entries[index][2]

    def score_delta(self, index: int) -> int:
        return self._entries[index][1]

    def write_score(self, index: int, score: int, state: Optional[State] = None) -> None:
        if not 0 <= index < BAG_COUNT:
            raise ValueError(f"bag index out of range: {index}")
        if score < 0:
            raise ValueError(f"score must be non-negative: {score}")
        with self._write_lock:
            best, delta, _ = self._entries[index]
            if best is not None:
                raise ValueError(f"bag {index} already solved with score {best}")
            self._entries[index] = (score, delta, state if state is not None else State())
            self._solved += 1

    def score_estimate(self, bag: Bag) -> int:
        """Exact score once solved, otherwise the optimistic stacked estimate."""
        best = self._entries[bag.to_index()][0]
        return best if best is not None else bag.score_stacked()

    def upper_subset_entry(self, bag: Bag) -> Tuple[int, State]:
        """Best (score, layout) among solved bags that are strict sub-multisets of bag."""
        best = 0
        best_state = State()
        entries = self._entries
        for sub_bag in bag.iter_sub_bags():
            score, _, state = entries[sub_bag.to_index()]
            if score is not None and (score > best or (score == best and len(state) > len(best_state))):
                best = score
                best_state = state
        return best, best_state

    def upper_subset_score(self, bag: Bag) -> int:
        """Best stored score among solved bags that are strict sub-multisets of bag."""
        return self.upper_subset_entry(bag)[0]

    def upper_score_bound(self, bag: Bag, state: State) -> int:
        """Upper bound on what the pieces left in bag can still add on top of state."""
        index = bag.to_index()
        return self.score_estimate(bag) + (state.layers() + 1) * self._entries[index][1]

# =========================
# Worker
# =========================
class Worker:
    """Depth-first branch-and-bound for one target bag.

    Sub-bags of the target must already be solved in results for the bound to
    be tight; unsolved sub-bags fall back to the stacked estimate.
    """

    def __init__(self, target: int, results: Results, table: Optional[OverlapTable] = None) -> None:
        self.target = Bag.from_index(target).to_index()
        self.results = results
        self.table = table or get_overlap_table()
        self.best_score = 0
        self.best_state = State()
        self.seen: Set[State] = set()
        self.nodes = 0

    def run(self) -> int:
        bag = Bag.from_index(self.target)
        self.best_score, self.best_state = self.results.upper_subset_entry(bag)
        LOGGER.debug(
            "solving %r (%s pieces) from initial best score %s",
            bag,
            len(bag),
            self.best_score,
        )
        self._search(bag, State())
        LOGGER.debug("solved %r: %s after %s nodes", bag, self.best_score, f"{self.nodes:,}")
        self.results.write_score(self.target, self.best_score, self.best_state)
        return self.best_score

    def _search(self, bag: Bag, state: State) -> None:
        if state in self.seen:
            return
        self.nodes += 1

        score = state.score()
        if score > self.best_score:
            LOGGER.debug("new best score %s: %s", score, state.encode())
            self.best_score = score
            self.best_state = state
        elif score == self.best_score and len(state) > len(self.best_state):
            self.best_state = state

        if bag.is_empty():
            return

        if bag.to_index() != self.target:
            # The bound covers only what the pieces left in bag can still add.
            bound = self.results.upper_score_bound(bag, state)
            if score + bound <= self.best_score:
                return

        moves = self.expand(bag, state)
        self.seen.add(state)

        for piece, child in moves:
            self._search(bag.take(piece_type_of(piece)), child)

    def expand(self, bag: Bag, state: State) -> List[Tuple[int, State]]:
        """Every legal next placement, best score and most compact first."""
        width, height = state.size()
        ranked: List[Tuple[Tuple[int, int], int, State]] = []
        for piece in bag.piece_ids():
            for x in range(-MAX_EDGE_LENGTH, width + MAX_EDGE_LENGTH + 1):
                for y in range(-MAX_EDGE_LENGTH, height + MAX_EDGE_LENGTH + 1):
                    child = state.try_place(piece, x, y, self.table)
                    if child is None:
                        continue
                    child_width, child_height = child.size()
                    ranked.append(((-child.score(), child_width + child_height), piece, child))
        ranked.sort(key=lambda item: item[0])
        return [(piece, child) for _, piece, child in ranked]


def solve_bag(
    index: int,
    solved_scores: Optional[Dict[int, int]] = None,
    solved_layouts: Optional[Dict[int, str]] = None,
) -> Tuple[int, int, str]:
    """Solve one bag against a snapshot of solved results; returns (index, score, layout)."""
    results = Results.from_scores(solved_scores or {}, solved_layouts)
    worker = Worker(index, results)
    best_score = worker.run()
    return index, best_score, worker.best_state.encode()
