"""
Random coin selection.

Accumulates outputs in a shuffled order so spending patterns (always the
largest output first, oldest first, ...) do not help output clustering.
The shuffle comes from context.random_source(): the same seed yields the
same selection. Caller priorities in context.priorities bias the order
toward heavier outputs.
"""

from __future__ import annotations

from loguru import logger

from utxoselect.errors import NoViableSelection
from utxoselect.models import SelectionContext, StrategyName, UnspentOutput, UtxoSelection
from utxoselect.strategies.base import (
    SelectionStrategy,
    accumulate,
    raise_shortfall,
    weighted_shuffle,
)


class RandomSelectionStrategy(SelectionStrategy):
    name = StrategyName.RANDOM

    def select_from(
        self, candidates: list[UnspentOutput], context: SelectionContext
    ) -> UtxoSelection:
        rng = context.random_source()
        shuffled = weighted_shuffle(candidates, context, rng)

        selected = accumulate(shuffled, context)

        if selected is None:
            raise_shortfall(context)
            raise NoViableSelection(
                f"Shuffled walk hit the {context.max_inputs} input limit before "
                f"covering target {context.target}",
                iterations=min(len(shuffled), context.max_inputs),
            )

        logger.debug(f"Random selection covered target with {len(selected)} inputs")
        return UtxoSelection.build(selected, context, self.name, iterations=len(selected))
