"""
utxoselect - Coin selection for UTXO wallets

Chooses which unspent outputs fund a payment, trading off fee, change,
input count and privacy across several strategies.
"""

__version__ = "0.1.0"

from utxoselect.config import (
    BranchAndBoundConfig,
    KnapsackConfig,
    OptimizationConfig,
    PrivacyConfig,
    SelectorConfig,
    SelectorSettings,
    get_settings,
)
from utxoselect.errors import (
    CoinSelectionError,
    ExceedsMaxInputs,
    InsufficientFunds,
    InvalidContext,
    NoViableSelection,
    UnknownStrategyError,
)
from utxoselect.fees import calculate_tx_weight, linear_fee, weight_fee, zero_fee
from utxoselect.models import (
    FeeFunction,
    OptimizationGoal,
    PrivacyLevel,
    SelectionContext,
    SelectionGoal,
    SelectionMetadata,
    SelectionResult,
    StrategyAttempt,
    StrategyName,
    UnspentOutput,
    UtxoSelection,
)
from utxoselect.privacy import privacy_loss
from utxoselect.selector import CoinSelector
from utxoselect.strategies import (
    BranchAndBoundStrategy,
    KnapsackStrategy,
    LargestFirstStrategy,
    OptimizationStrategy,
    PrivacyAwareStrategy,
    RandomSelectionStrategy,
    SelectionStrategy,
    SelectionStrategyFactory,
    infer_strategy_order,
)

__all__ = [
    # Config
    "BranchAndBoundConfig",
    "KnapsackConfig",
    "OptimizationConfig",
    "PrivacyConfig",
    "SelectorConfig",
    "SelectorSettings",
    "get_settings",
    # Errors
    "CoinSelectionError",
    "ExceedsMaxInputs",
    "InsufficientFunds",
    "InvalidContext",
    "NoViableSelection",
    "UnknownStrategyError",
    # Fees
    "calculate_tx_weight",
    "linear_fee",
    "weight_fee",
    "zero_fee",
    # Models
    "FeeFunction",
    "OptimizationGoal",
    "PrivacyLevel",
    "SelectionContext",
    "SelectionGoal",
    "SelectionMetadata",
    "SelectionResult",
    "StrategyAttempt",
    "StrategyName",
    "UnspentOutput",
    "UtxoSelection",
    # Selection
    "CoinSelector",
    "privacy_loss",
    "BranchAndBoundStrategy",
    "KnapsackStrategy",
    "LargestFirstStrategy",
    "OptimizationStrategy",
    "PrivacyAwareStrategy",
    "RandomSelectionStrategy",
    "SelectionStrategy",
    "SelectionStrategyFactory",
    "infer_strategy_order",
]
