from itertools import combinations
from typing import List, Sequence, Tuple


def enumerate_subsets(universe: Sequence[str]) -> List[Tuple[str, ...]]:
    """
    Enumerate every non-empty subset of the sensor location universe.

    Subsets are grouped by size (all singletons first, then pairs, ...) and
    each group follows the combination order of the universe, so four
    locations give 15 subsets in a fixed order.
    """
    universe = list(universe)
    if not universe:
        raise ValueError("Location universe must not be empty")
    if len(set(universe)) != len(universe):
        raise ValueError(f"Location universe contains duplicates: {universe}")

    subsets = []
    for size in range(1, len(universe) + 1):
        subsets.extend(combinations(universe, size))

    return subsets


def subset_label(subset: Sequence[str]) -> str:
    """Human readable subset name, e.g. 'belt+arm'."""
    return "+".join(subset)
