from dataclasses import dataclass
from functools import reduce
from typing import Iterable, Optional

from .train import SubsetResult


@dataclass(frozen=True)
class SelectionState:
    best: SubsetResult

    @property
    def record(self):
        return self.best.record

    @property
    def model(self):
        return self.best.model


def update_selection(state: Optional[SelectionState], result: SubsetResult) -> SelectionState:
    """Keep the current best unless the new result is strictly more accurate out of sample."""
    if state is None or result.record.oos_accuracy > state.record.oos_accuracy:
        return SelectionState(best=result)
    return state


def select_best(results: Iterable[SubsetResult]) -> SelectionState:
    """
    Single pass over results in enumeration order.

    Ties keep the earlier result, so the selection is reproducible for any
    pattern of equal accuracies.
    """
    state = reduce(update_selection, results, None)
    if state is None:
        raise ValueError("Cannot select a model from an empty result list")
    return state
