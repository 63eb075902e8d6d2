"""
Coin selection strategies.
"""

from utxoselect.strategies.base import (
    SelectionStrategy,
    eligible_candidates,
    minimum_inputs_required,
    raise_shortfall,
)
from utxoselect.strategies.branch_and_bound import (
    BranchAndBoundStrategy,
    SearchOutcome,
    branch_and_bound_search,
)
from utxoselect.strategies.factory import (
    SelectionStrategyFactory,
    SnapshotSummary,
    infer_strategy_order,
)
from utxoselect.strategies.knapsack import KnapsackStrategy
from utxoselect.strategies.largest_first import LargestFirstStrategy
from utxoselect.strategies.optimization import OptimizationStrategy
from utxoselect.strategies.privacy_aware import PrivacyAwareStrategy
from utxoselect.strategies.random_selection import RandomSelectionStrategy

__all__ = [
    "BranchAndBoundStrategy",
    "KnapsackStrategy",
    "LargestFirstStrategy",
    "OptimizationStrategy",
    "PrivacyAwareStrategy",
    "RandomSelectionStrategy",
    "SearchOutcome",
    "SelectionStrategy",
    "SelectionStrategyFactory",
    "SnapshotSummary",
    "branch_and_bound_search",
    "eligible_candidates",
    "infer_strategy_order",
    "minimum_inputs_required",
    "raise_shortfall",
]
