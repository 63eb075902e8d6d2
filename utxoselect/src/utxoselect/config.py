"""
Coin selector configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from utxoselect.constants import (
    BNB_MAX_ITERATIONS,
    BNB_WASTE_TOLERANCE,
    KNAPSACK_ITERATIONS,
    LARGE_SNAPSHOT_THRESHOLD,
    OPTIMIZATION_MAX_SWAP_ATTEMPTS,
    PRIVACY_MAX_LOSS,
    PRIVACY_SAMPLES,
    PRIVACY_SEARCH_CAP,
    ROUND_AMOUNT_UNIT,
)
from utxoselect.models import OptimizationGoal


class BranchAndBoundConfig(BaseModel):
    """Branch and bound search limits."""

    max_iterations: int = Field(
        default=BNB_MAX_ITERATIONS, ge=1, description="Maximum explored search frames"
    )
    waste_tolerance: int = Field(
        default=BNB_WASTE_TOLERANCE,
        ge=0,
        description="Stop once the best change is at or below this amount",
    )


class KnapsackConfig(BaseModel):
    """Knapsack search budget."""

    iterations: int = Field(default=KNAPSACK_ITERATIONS, ge=1, description="Random search rounds")


class PrivacyConfig(BaseModel):
    """Privacy-aware search budget and privacy-loss weights."""

    samples: int = Field(default=PRIVACY_SAMPLES, ge=1, description="Random subsets scored")
    search_cap: int = Field(
        default=PRIVACY_SEARCH_CAP, ge=1, description="Frames for the restricted exact search"
    )
    max_privacy_loss: float = Field(
        default=PRIVACY_MAX_LOSS, ge=0.0, description="Reject subsets scoring above this"
    )
    same_tag_penalty: float = Field(default=1.0, ge=0.0)
    same_height_penalty: float = Field(default=0.5, ge=0.0)
    exact_amount_penalty: float = Field(default=1.0, ge=0.0)
    change_size_weight: float = Field(default=0.5, ge=0.0)
    round_amount_penalty: float = Field(default=0.1, ge=0.0)
    round_amount_unit: int = Field(default=ROUND_AMOUNT_UNIT, ge=1)


class OptimizationConfig(BaseModel):
    """Post-selection refinement limits."""

    max_swap_attempts: int = Field(
        default=OPTIMIZATION_MAX_SWAP_ATTEMPTS, ge=0, description="Candidate moves evaluated"
    )
    goal: OptimizationGoal = OptimizationGoal.MINIMIZE_WASTE


class SelectorConfig(BaseModel):
    """Configuration for the coin selector and its strategies."""

    branch_and_bound: BranchAndBoundConfig = Field(default_factory=BranchAndBoundConfig)
    knapsack: KnapsackConfig = Field(default_factory=KnapsackConfig)
    privacy: PrivacyConfig = Field(default_factory=PrivacyConfig)
    optimization: OptimizationConfig = Field(default_factory=OptimizationConfig)

    # Fallback chain
    large_snapshot_threshold: int = Field(
        default=LARGE_SNAPSHOT_THRESHOLD,
        ge=0,
        description="Candidate count above which knapsack joins the fallback chain",
    )
    refine: bool = Field(default=True, description="Run refinement on the chosen selection")


class SelectorSettings(BaseSettings):
    """
    Selector configuration loaded from the environment.

    Nested fields use a double underscore, e.g.
    UTXOSELECT_BRANCH_AND_BOUND__MAX_ITERATIONS=50000
    """

    model_config = SettingsConfigDict(
        env_prefix="UTXOSELECT_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    branch_and_bound: BranchAndBoundConfig = Field(default_factory=BranchAndBoundConfig)
    knapsack: KnapsackConfig = Field(default_factory=KnapsackConfig)
    privacy: PrivacyConfig = Field(default_factory=PrivacyConfig)
    optimization: OptimizationConfig = Field(default_factory=OptimizationConfig)
    large_snapshot_threshold: int = Field(default=LARGE_SNAPSHOT_THRESHOLD, ge=0)
    refine: bool = True

    log_level: str = "INFO"

    def to_selector_config(self) -> SelectorConfig:
        return SelectorConfig.model_validate(self.model_dump(exclude={"log_level"}))


def get_settings() -> SelectorSettings:
    return SelectorSettings()
