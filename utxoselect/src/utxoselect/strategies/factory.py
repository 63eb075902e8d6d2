"""
Strategy registry and fallback-chain inference.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from utxoselect.config import SelectorConfig
from utxoselect.errors import UnknownStrategyError
from utxoselect.models import PrivacyLevel, SelectionContext, StrategyName
from utxoselect.strategies.base import SelectionStrategy, eligible_candidates
from utxoselect.strategies.branch_and_bound import BranchAndBoundStrategy
from utxoselect.strategies.knapsack import KnapsackStrategy
from utxoselect.strategies.largest_first import LargestFirstStrategy
from utxoselect.strategies.privacy_aware import PrivacyAwareStrategy
from utxoselect.strategies.random_selection import RandomSelectionStrategy


@dataclass(frozen=True)
class SnapshotSummary:
    """The parts of a request that decide which strategies to try."""

    candidate_count: int
    privacy_level: PrivacyLevel = PrivacyLevel.NONE
    strategy: StrategyName | None = None
    avoid_change: bool = False

    @classmethod
    def from_context(cls, context: SelectionContext) -> SnapshotSummary:
        return cls(
            candidate_count=len(eligible_candidates(context)),
            privacy_level=context.privacy_level,
            strategy=context.strategy,
            avoid_change=context.avoid_change,
        )


def infer_strategy_order(
    summary: SnapshotSummary, config: SelectorConfig | None = None
) -> list[StrategyName]:
    """
    Ordered fallback chain for a request.

    An explicit strategy goes first. Otherwise high privacy opens with
    privacy-aware, avoid_change with branch and bound and standard privacy
    with random. Branch and bound follows, knapsack joins only for large
    snapshots and largest-first always closes the chain.
    """
    if config is None:
        config = SelectorConfig()

    order: list[StrategyName] = []
    if summary.strategy is not None:
        order.append(summary.strategy)
    elif summary.privacy_level == PrivacyLevel.HIGH:
        order.append(StrategyName.PRIVACY_AWARE)
    elif summary.avoid_change:
        order.append(StrategyName.BRANCH_AND_BOUND)
    elif summary.privacy_level == PrivacyLevel.STANDARD:
        order.append(StrategyName.RANDOM)

    order.append(StrategyName.BRANCH_AND_BOUND)
    if summary.candidate_count > config.large_snapshot_threshold:
        order.append(StrategyName.KNAPSACK)
    order.append(StrategyName.LARGEST_FIRST)

    # dict keeps first occurrence order
    return list(dict.fromkeys(order))


class SelectionStrategyFactory:
    """Builds configured strategy instances by name."""

    def __init__(self, config: SelectorConfig | None = None):
        self.config = config or SelectorConfig()
        self._builders: dict[StrategyName, Callable[[], SelectionStrategy]] = {
            StrategyName.LARGEST_FIRST: LargestFirstStrategy,
            StrategyName.RANDOM: RandomSelectionStrategy,
            StrategyName.KNAPSACK: lambda: KnapsackStrategy(self.config.knapsack),
            StrategyName.BRANCH_AND_BOUND: lambda: BranchAndBoundStrategy(
                self.config.branch_and_bound
            ),
            StrategyName.PRIVACY_AWARE: lambda: PrivacyAwareStrategy(self.config.privacy),
        }

    def create(self, name: StrategyName | str) -> SelectionStrategy:
        """
        Instantiate a strategy.

        Raises:
            UnknownStrategyError: If name is not registered
        """
        try:
            key = StrategyName(name)
        except ValueError:
            raise UnknownStrategyError(str(name)) from None

        builder = self._builders.get(key)
        if builder is None:
            raise UnknownStrategyError(key.value)
        return builder()

    def available(self) -> list[StrategyName]:
        return list(self._builders)

    def strategy_order(self, context: SelectionContext) -> list[StrategyName]:
        return infer_strategy_order(SnapshotSummary.from_context(context), self.config)
