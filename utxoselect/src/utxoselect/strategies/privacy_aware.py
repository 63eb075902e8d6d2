"""
Privacy-aware coin selection.

Generates candidate input sets, scores each with the privacy-loss
heuristics and keeps the least revealing one. Candidates come from seeded
random accumulations (varied, usually with change) plus one short branch and
bound run (tight change, often fewer inputs).
"""

from __future__ import annotations

from loguru import logger

from utxoselect.config import BranchAndBoundConfig, PrivacyConfig
from utxoselect.errors import NoViableSelection
from utxoselect.models import SelectionContext, StrategyName, UnspentOutput, UtxoSelection
from utxoselect.privacy import privacy_loss, typical_output_value
from utxoselect.strategies.base import (
    SelectionStrategy,
    accumulate,
    raise_shortfall,
    weighted_shuffle,
)
from utxoselect.strategies.branch_and_bound import BranchAndBoundStrategy


class PrivacyAwareStrategy(SelectionStrategy):
    name = StrategyName.PRIVACY_AWARE

    def __init__(self, config: PrivacyConfig | None = None):
        self.config = config or PrivacyConfig()
        self._search = BranchAndBoundStrategy(
            BranchAndBoundConfig(max_iterations=self.config.search_cap)
        )

    def _candidate_sets(
        self, candidates: list[UnspentOutput], context: SelectionContext
    ) -> tuple[list[list[UnspentOutput]], int]:
        """Distinct covering input sets and the work spent finding them."""
        rng = context.random_source()
        seen: set[frozenset[str]] = set()
        found: list[list[UnspentOutput]] = []
        work = 0

        def keep(inputs: list[UnspentOutput]) -> None:
            key = frozenset(u.commitment for u in inputs)
            if key not in seen:
                seen.add(key)
                found.append(inputs)

        for _ in range(self.config.samples):
            shuffled = weighted_shuffle(candidates, context, rng)
            work += 1
            selected = accumulate(shuffled, context)
            if selected is not None:
                keep(selected)

        outcome = self._search.search(candidates, context)
        work += outcome.iterations
        if outcome.selected is not None:
            keep(outcome.selected)

        return found, work

    def select_from(
        self, candidates: list[UnspentOutput], context: SelectionContext
    ) -> UtxoSelection:
        found, work = self._candidate_sets(candidates, context)

        if not found:
            raise_shortfall(context)
            raise NoViableSelection(
                f"Privacy-aware search found no covering subset in {work} steps",
                iterations=work,
            )

        typical = typical_output_value(context.spendable_utxos())
        scored = []
        for inputs in found:
            loss = privacy_loss(inputs, context, self.config, typical_value=typical)
            change = sum(u.value for u in inputs) - context.target - context.fee_for(len(inputs))
            scored.append((loss, change, len(inputs), inputs))

        loss, change, _, best = min(scored, key=lambda s: s[:3])

        if loss > self.config.max_privacy_loss:
            raise NoViableSelection(
                f"Best privacy loss {loss:.2f} exceeds limit {self.config.max_privacy_loss}",
                iterations=work,
            )

        logger.debug(
            f"Privacy-aware: {len(best)} inputs, loss {loss:.2f}, change {change} "
            f"({len(found)} candidate sets scored)"
        )
        return UtxoSelection.build(best, context, self.name, iterations=work)

    def __repr__(self) -> str:
        return (
            f"PrivacyAwareStrategy(samples={self.config.samples}, "
            f"max_privacy_loss={self.config.max_privacy_loss})"
        )
