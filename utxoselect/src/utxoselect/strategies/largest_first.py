"""
Largest-first coin selection.

Deterministic greedy baseline and fallback of last resort: spends the
largest outputs first, so it needs the fewest inputs of any value-ordered
approach at the cost of larger change and recognizable inputs.

With context.avoid_change, when the covering prefix leaves change, the
candidates are searched for a subset that pays target plus fee exactly
before change is accepted.
"""

from __future__ import annotations

from loguru import logger

from utxoselect.constants import BNB_MAX_ITERATIONS
from utxoselect.errors import NoViableSelection
from utxoselect.models import SelectionContext, StrategyName, UnspentOutput, UtxoSelection
from utxoselect.strategies.base import (
    SelectionStrategy,
    accumulate,
    raise_shortfall,
    sort_by_value_desc,
)
from utxoselect.strategies.branch_and_bound import branch_and_bound_search


class LargestFirstStrategy(SelectionStrategy):
    name = StrategyName.LARGEST_FIRST

    def select_from(
        self, candidates: list[UnspentOutput], context: SelectionContext
    ) -> UtxoSelection:
        ordered = sort_by_value_desc(candidates)
        selected = accumulate(ordered, context)

        if selected is None:
            raise_shortfall(context)
            raise NoViableSelection(
                f"{len(ordered)} candidates cannot cover target {context.target} "
                f"within {context.max_inputs} inputs"
            )

        if context.avoid_change:
            exact = self._exact_match(selected, ordered, context)
            if exact is not None:
                logger.debug(f"Largest-first found a no-change subset of {len(exact)} inputs")
                return UtxoSelection.build(exact, context, self.name, iterations=len(ordered))

        logger.debug(f"Largest-first covered target with {len(selected)} inputs")
        return UtxoSelection.build(selected, context, self.name, iterations=len(selected))

    def _exact_match(
        self,
        prefix: list[UnspentOutput],
        ordered: list[UnspentOutput],
        context: SelectionContext,
    ) -> list[UnspentOutput] | None:
        """Zero-change subset of the candidates, trying the covering prefix first."""
        if sum(u.value for u in prefix) - context.target - context.fee_for(len(prefix)) == 0:
            return prefix

        outcome = branch_and_bound_search(ordered, context, max_iterations=BNB_MAX_ITERATIONS)
        if outcome.change == 0:
            return outcome.selected
        return None
