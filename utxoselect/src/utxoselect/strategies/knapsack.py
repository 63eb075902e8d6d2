"""
Knapsack coin selection.

Approximates the minimal-change subset with a bounded randomized search
instead of an exponential exact solver. Each search round walks the
candidates twice: the first pass includes each output with probability 1/2,
the second pass fills in the rest until the target is covered. Every time
the running subset covers the target it is recorded, then the last output is
dropped again to look for a closer sum.

A subset whose change is within the dust threshold ends the search. When the
budget runs out the best subset seen is used.
"""

from __future__ import annotations

import random

from loguru import logger

from utxoselect.config import KnapsackConfig
from utxoselect.errors import NoViableSelection
from utxoselect.models import SelectionContext, StrategyName, UnspentOutput, UtxoSelection
from utxoselect.strategies.base import SelectionStrategy, raise_shortfall, sort_by_value_desc


class KnapsackStrategy(SelectionStrategy):
    name = StrategyName.KNAPSACK

    def __init__(self, config: KnapsackConfig | None = None):
        self.config = config or KnapsackConfig()

    def select_from(
        self, candidates: list[UnspentOutput], context: SelectionContext
    ) -> UtxoSelection:
        ordered = sort_by_value_desc(candidates)
        near_exact = context.dust_threshold

        # A single output close enough to the target needs no search
        single_fee = context.fee_for(1)
        singles = [u for u in ordered if 0 <= u.value - context.target - single_fee <= near_exact]
        if singles:
            best_single = min(singles, key=lambda u: u.value)
            logger.debug(f"Knapsack: single output {best_single.commitment} is a near-exact match")
            return UtxoSelection.build([best_single], context, self.name, iterations=0)

        best, rounds = self._search_rounds(ordered, context, context.random_source())

        if best is None:
            raise_shortfall(context)
            raise NoViableSelection(
                f"Knapsack found no covering subset in {rounds} rounds", iterations=rounds
            )

        selected = [ordered[i] for i in best]
        logger.debug(f"Knapsack: {len(selected)} inputs after {rounds} rounds")
        return UtxoSelection.build(selected, context, self.name, iterations=rounds)

    def _search_rounds(
        self,
        ordered: list[UnspentOutput],
        context: SelectionContext,
        rng: random.Random,
    ) -> tuple[list[int] | None, int]:
        """
        Run the randomized search rounds.

        Returns:
            (indices of the best subset or None, rounds used)
        """
        values = [u.value for u in ordered]
        n = len(values)
        target = context.target
        fees = [0] + [context.fee_for(k) for k in range(1, min(context.max_inputs, n) + 1)]

        best: list[int] | None = None
        best_change: int | None = None
        rounds = 0

        for rounds in range(1, self.config.iterations + 1):
            included = [False] * n
            total = 0
            count = 0
            reached = False

            for pass_number in range(2):
                if reached:
                    break
                for i in range(n):
                    if included[i] or count >= context.max_inputs:
                        continue
                    take = rng.random() < 0.5 if pass_number == 0 else True
                    if not take:
                        continue

                    included[i] = True
                    total += values[i]
                    count += 1

                    change = total - target - fees[count]
                    if change >= 0:
                        reached = True
                        if (
                            best_change is None
                            or change < best_change
                            or (change == best_change and best is not None and count < len(best))
                        ):
                            best = [j for j in range(n) if included[j]]
                            best_change = change
                        # Step back and look for a closer sum
                        included[i] = False
                        total -= values[i]
                        count -= 1

            if best_change is not None and best_change <= context.dust_threshold:
                break

        return best, rounds

    def __repr__(self) -> str:
        return f"KnapsackStrategy(iterations={self.config.iterations})"
