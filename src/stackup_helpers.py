"""Per-layer piece counts ("stack-ups") that a bag could plausibly be built into."""

from __future__ import annotations

import logging
from typing import List, Set, Tuple

from bag_helpers import Bag
from piece_helpers import piece_area

MAX_LAYERS = 10

LOGGER = logging.getLogger(__name__)

Stackup = Tuple[int, ...]


def is_supported(stackup: Stackup) -> bool:
    """Every occupied layer above the ground needs at least two pieces beneath it."""
    return not any(
        stackup[layer] > 0 and stackup[layer - 1] < 2 for layer in range(1, len(stackup))
    )


def fits_areas(stackup: Stackup, areas: List[int]) -> bool:
    """Even the smallest pieces on a layer must fit over the largest pieces below it.

    areas is the sorted list of tile counts of every piece in the bag.
    """
    total = len(areas)
    for layer in range(1, len(stackup)):
        upper = sum(areas[: stackup[layer]])
        lower = sum(areas[total - stackup[layer - 1]:]) if stackup[layer - 1] else 0
        if upper > lower:
            return False
    return True


def layer_stackups(bag: Bag, max_layers: int = MAX_LAYERS) -> List[Stackup]:
    """Enumerate stack-ups reachable by lifting one piece at a time off the ground layer."""
    areas = sorted(piece_area(piece_type) for piece_type in bag)
    start: Stackup = (len(areas),) + (0,) * (max_layers - 1)

    todo = [start]
    seen: Set[Stackup] = set()
    rejected: Set[Stackup] = set()
    while todo:
        target = todo.pop()
        if target in seen or target in rejected:
            continue
        if not is_supported(target) or not fits_areas(target, areas):
            rejected.add(target)
            continue
        seen.add(target)

        for source in range(max_layers):
            if target[source] == 0:
                break
            for dest in range(source + 1, max_layers):
                if target[dest - 1] == 0:
                    break
                lifted = list(target)
                lifted[source] -= 1
                lifted[dest] += 1
                todo.append(tuple(lifted))

    LOGGER.debug("%r: %s stack-ups (%s rejected)", bag, len(seen), len(rejected))
    return sorted(seen, reverse=True)


def stackup_layers(stackup: Stackup) -> int:
    """Number of occupied layers."""
    return sum(1 for count in stackup if count)


def stackup_score_bound(bag: Bag, stackup: Stackup) -> int:
    """Score with the most valuable pieces on the highest layers of the stack-up."""
    if sum(stackup) != len(bag):
        raise ValueError(f"stack-up {stackup} does not hold {len(bag)} pieces")
    pieces = sorted(bag, reverse=True)
    score = 0
    position = 0
    for layer in range(len(stackup) - 1, -1, -1):
        for piece_type in pieces[position: position + stackup[layer]]:
            score += piece_type * layer
        position += stackup[layer]
    return score
