"""
Branch and bound coin selection.

Depth-first search over include/exclude decisions for every candidate,
looking for the subset with the smallest change. Candidates are sorted
largest first so good solutions appear early and the bounds bite sooner.

The tree is walked with an explicit stack of frames, one per decision
point, so memory stays proportional to the candidate count. A frame is
skipped when:
- the largest values that still fit under max_inputs cannot reach the
  target plus the cheapest possible fee (cannot succeed)
- even the smallest possible addition overshoots by more than the best
  change found so far (overshoot not worth exploring)
- it already holds max_inputs outputs

An exact zero-change match (or any change within the waste tolerance) ends
the search. The number of explored frames is capped so large snapshots
finish in bounded time; for small candidate sets the search completes and
the result is optimal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from loguru import logger

from utxoselect.config import BranchAndBoundConfig
from utxoselect.errors import NoViableSelection
from utxoselect.models import SelectionContext, StrategyName, UnspentOutput, UtxoSelection
from utxoselect.strategies.base import SelectionStrategy, raise_shortfall, sort_by_value_desc


class _Frame(NamedTuple):
    depth: int  # index of the next candidate to decide on
    running_sum: int
    included: tuple[int, ...]


@dataclass
class SearchOutcome:
    """Result of a bounded branch and bound search."""

    selected: list[UnspentOutput] | None
    change: int | None
    iterations: int
    cap_reached: bool


def branch_and_bound_search(
    candidates: list[UnspentOutput],
    context: SelectionContext,
    max_iterations: int,
    waste_tolerance: int = 0,
) -> SearchOutcome:
    """
    Find the subset of candidates with the smallest non-negative change.

    Ties on change are broken by fewer inputs.

    Args:
        candidates: Outputs to choose from
        context: Selection request (target, fee function, max_inputs)
        max_iterations: Maximum frames to explore
        waste_tolerance: Stop as soon as a solution's change is at or below this

    Returns:
        SearchOutcome with the best subset found (or None)
    """
    ordered = sort_by_value_desc(candidates)
    values = [u.value for u in ordered]
    n = len(values)
    limit = min(context.max_inputs, n)
    target = context.target

    if n == 0:
        return SearchOutcome(selected=None, change=None, iterations=0, cap_reached=False)

    # Index 0 is padding; no selection has zero inputs
    fees = [0] + [context.fee_for(k) for k in range(1, limit + 1)]

    # Cheapest / most expensive fee any selection of at least k inputs could pay
    min_fee_from = [0] * (limit + 2)
    max_fee_from = [0] * (limit + 2)
    min_fee_from[limit] = max_fee_from[limit] = fees[limit]
    for k in range(limit - 1, -1, -1):
        min_fee_from[k] = min(fees[k], min_fee_from[k + 1])
        max_fee_from[k] = max(fees[k], max_fee_from[k + 1])

    prefix = [0]
    for value in values:
        prefix.append(prefix[-1] + value)
    smallest_value = values[-1]

    best: tuple[int, ...] | None = None
    best_change: int | None = None
    iterations = 0
    cap_reached = False

    stack = [_Frame(depth=0, running_sum=0, included=())]

    while stack:
        if iterations >= max_iterations:
            cap_reached = True
            break

        frame = stack.pop()
        iterations += 1
        count = len(frame.included)

        # Only frames whose last decision was an inclusion hold a new subset
        if count and frame.included[-1] == frame.depth - 1:
            change = frame.running_sum - target - fees[count]
            if change >= 0 and (
                best_change is None
                or change < best_change
                or (change == best_change and best is not None and count < len(best))
            ):
                best = frame.included
                best_change = change
                if change <= waste_tolerance:
                    break

        if frame.depth >= n or count >= limit:
            continue

        # Every new subset below this frame adds at least one more input
        free_slots = limit - count
        reach = frame.running_sum + prefix[min(frame.depth + free_slots, n)] - prefix[frame.depth]
        if reach < target + min_fee_from[count + 1]:
            continue

        if best_change is not None and best is not None:
            floor = frame.running_sum + smallest_value - target - max_fee_from[count + 1]
            if floor > best_change or (floor == best_change and count + 1 >= len(best)):
                continue

        # Exclude is pushed first so the include branch is explored first
        stack.append(_Frame(frame.depth + 1, frame.running_sum, frame.included))
        stack.append(
            _Frame(
                frame.depth + 1,
                frame.running_sum + values[frame.depth],
                frame.included + (frame.depth,),
            )
        )

    selected = [ordered[i] for i in best] if best is not None else None
    return SearchOutcome(
        selected=selected,
        change=best_change,
        iterations=iterations,
        cap_reached=cap_reached,
    )


class BranchAndBoundStrategy(SelectionStrategy):
    name = StrategyName.BRANCH_AND_BOUND

    def __init__(self, config: BranchAndBoundConfig | None = None):
        self.config = config or BranchAndBoundConfig()

    def search(
        self,
        candidates: list[UnspentOutput],
        context: SelectionContext,
        max_iterations: int | None = None,
    ) -> SearchOutcome:
        """Run the bounded search without turning failure into an exception."""
        return branch_and_bound_search(
            candidates,
            context,
            max_iterations=max_iterations or self.config.max_iterations,
            waste_tolerance=self.config.waste_tolerance,
        )

    def select_from(
        self, candidates: list[UnspentOutput], context: SelectionContext
    ) -> UtxoSelection:
        outcome = self.search(candidates, context)

        if outcome.selected is None:
            raise_shortfall(context)
            reason = "iteration cap reached" if outcome.cap_reached else "search space exhausted"
            raise NoViableSelection(
                f"Branch and bound found no selection ({reason} after "
                f"{outcome.iterations} frames)",
                iterations=outcome.iterations,
            )

        logger.debug(
            f"Branch and bound: {len(outcome.selected)} inputs, change {outcome.change}, "
            f"{outcome.iterations} frames"
            + (" (cap reached)" if outcome.cap_reached else "")
        )
        return UtxoSelection.build(
            outcome.selected, context, self.name, iterations=outcome.iterations
        )

    def __repr__(self) -> str:
        return f"BranchAndBoundStrategy(max_iterations={self.config.max_iterations})"
