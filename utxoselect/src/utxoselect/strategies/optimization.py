"""
Post-selection refinement.

Bounded first-improvement local search over a finished selection. Each move
produces a neighbouring input set:
- drop one input
- replace one input with one unselected output
- replace one input with two unselected outputs

A move is taken only if the new set still covers target plus fee, stays
within max_inputs and strictly improves the objective. The search stops when
no move improves or the attempt budget is spent, so refining never fails.
"""

from __future__ import annotations

from collections.abc import Iterator
from itertools import combinations

from loguru import logger

from utxoselect.config import OptimizationConfig, PrivacyConfig
from utxoselect.models import (
    OptimizationGoal,
    PrivacyLevel,
    SelectionContext,
    UnspentOutput,
    UtxoSelection,
)
from utxoselect.privacy import privacy_loss, typical_output_value
from utxoselect.strategies.base import eligible_candidates, sort_by_value_desc


def _neighbours(
    current: list[UnspentOutput], pool: list[UnspentOutput]
) -> Iterator[list[UnspentOutput]]:
    for i in range(len(current)):
        if len(current) > 1:
            yield current[:i] + current[i + 1 :]

    for i in range(len(current)):
        for replacement in pool:
            yield current[:i] + [replacement] + current[i + 1 :]

    for i in range(len(current)):
        for first, second in combinations(pool, 2):
            yield current[:i] + [first, second] + current[i + 1 :]


class OptimizationStrategy:
    """Refines selections produced by the other strategies."""

    def __init__(
        self,
        config: OptimizationConfig | None = None,
        privacy_config: PrivacyConfig | None = None,
    ):
        self.config = config or OptimizationConfig()
        self.privacy_config = privacy_config or PrivacyConfig()

    def _key(self, inputs: list[UnspentOutput], change: int) -> tuple[int, int]:
        if self.config.goal == OptimizationGoal.MINIMIZE_INPUTS:
            return (len(inputs), change)
        return (change, len(inputs))

    def refine(
        self, selection: UtxoSelection, context: SelectionContext
    ) -> tuple[UtxoSelection, int]:
        """
        Improve a selection by local search.

        Args:
            selection: A valid selection for context
            context: The request the selection was made for

        Returns:
            (refined selection, number of accepted moves). The original
            selection is returned untouched when nothing improves.
        """
        if self.config.max_swap_attempts == 0:
            return selection, 0

        guard_privacy = context.privacy_level == PrivacyLevel.HIGH
        typical = typical_output_value(context.spendable_utxos()) if guard_privacy else 0

        def change_of(inputs: list[UnspentOutput]) -> int:
            return sum(u.value for u in inputs) - context.target - context.fee_for(len(inputs))

        def loss_of(inputs: list[UnspentOutput]) -> float:
            return privacy_loss(inputs, context, self.privacy_config, typical_value=typical)

        current = list(selection.inputs)
        current_key = self._key(current, selection.change)
        current_loss = loss_of(current) if guard_privacy else 0.0

        candidates = sort_by_value_desc(eligible_candidates(context))
        attempts = 0
        swaps = 0
        improved = True

        while improved and attempts < self.config.max_swap_attempts:
            improved = False
            selected = {u.commitment for u in current}
            pool = [u for u in candidates if u.commitment not in selected]

            for neighbour in _neighbours(current, pool):
                if attempts >= self.config.max_swap_attempts:
                    break
                attempts += 1

                if len(neighbour) > context.max_inputs:
                    continue
                change = change_of(neighbour)
                if change < 0:
                    continue
                key = self._key(neighbour, change)
                if key >= current_key:
                    continue
                if guard_privacy:
                    loss = loss_of(neighbour)
                    if loss > current_loss:
                        continue
                    current_loss = loss

                current = neighbour
                current_key = key
                swaps += 1
                improved = True
                break

        if swaps == 0:
            return selection, 0

        refined = UtxoSelection.build(
            current, context, selection.strategy, iterations=selection.iterations
        )
        logger.debug(
            f"Refinement: {swaps} moves in {attempts} attempts, change "
            f"{selection.change} -> {refined.change}, inputs "
            f"{selection.input_count} -> {refined.input_count}"
        )
        return refined, swaps

    def __repr__(self) -> str:
        return (
            f"OptimizationStrategy(goal={self.config.goal.value}, "
            f"max_swap_attempts={self.config.max_swap_attempts})"
        )
