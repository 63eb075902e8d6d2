"""
Coin selection data models using Pydantic for validation.
"""

from __future__ import annotations

import hashlib
import random
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from utxoselect.constants import (
    DEFAULT_DUST_THRESHOLD,
    DEFAULT_MAX_INPUTS,
    STANDARD_OUTPUT_COUNT,
)
from utxoselect.errors import InvalidContext

# (input_count, output_count) -> fee
FeeFunction = Callable[[int, int], int]


class PrivacyLevel(str, Enum):
    NONE = "none"
    STANDARD = "standard"
    HIGH = "high"


class StrategyName(str, Enum):
    LARGEST_FIRST = "largest-first"
    RANDOM = "random"
    KNAPSACK = "knapsack"
    BRANCH_AND_BOUND = "branch-and-bound"
    PRIVACY_AWARE = "privacy-aware"


class OptimizationGoal(str, Enum):
    """Objective used by post-selection refinement."""

    MINIMIZE_WASTE = "minimize-waste"
    MINIMIZE_INPUTS = "minimize-inputs"


class SelectionGoal(str, Enum):
    """Criterion for picking the best result across strategies."""

    FEE = "fee"
    WASTE = "waste"
    PRIVACY = "privacy"
    INPUTS = "inputs"


class UnspentOutput(BaseModel):
    """A spendable output as reported by the balance source."""

    commitment: str = Field(..., min_length=1)
    value: int = Field(..., ge=0)
    maturity_height: int = Field(default=0, ge=0)
    mature: bool = True
    # Opaque privacy hint, typically the originating transaction id
    tag: str | None = None
    block_height: int | None = Field(default=None, ge=0)

    model_config = {"frozen": True}

    def is_spendable(self, current_height: int | None = None) -> bool:
        """Check maturity, optionally against the current chain height."""
        if not self.mature:
            return False
        if current_height is not None and self.maturity_height > current_height:
            return False
        return True


class SelectionContext(BaseModel):
    """
    A single selection request.

    The context is built once per payment attempt from a snapshot of the
    wallet's outputs. Field types are validated by pydantic; request-level
    rules (positive target, non-empty snapshot, unique commitments) are
    enforced by check() so they surface as InvalidContext.
    """

    target: int
    fee_function: FeeFunction
    utxos: tuple[UnspentOutput, ...]
    max_inputs: int = DEFAULT_MAX_INPUTS
    dust_threshold: int = DEFAULT_DUST_THRESHOLD
    privacy_level: PrivacyLevel = PrivacyLevel.NONE
    strategy: StrategyName | None = None
    seed: int | None = None
    current_height: int | None = None
    # Prefer selections that need no change output
    avoid_change: bool = False
    # commitment -> relative weight in randomized draws (default 1.0)
    priorities: dict[str, float] | None = None

    model_config = {"frozen": True}

    def check(self) -> None:
        """
        Validate the request before any strategy runs.

        Raises:
            InvalidContext: If the request is malformed
        """
        if self.target <= 0:
            raise InvalidContext(f"Target amount must be positive, got {self.target}")
        if not self.utxos:
            raise InvalidContext("UTXO snapshot is empty")
        if self.max_inputs < 1:
            raise InvalidContext(f"max_inputs must be at least 1, got {self.max_inputs}")
        if self.dust_threshold < 0:
            raise InvalidContext(f"dust_threshold cannot be negative, got {self.dust_threshold}")

        seen: set[str] = set()
        for utxo in self.utxos:
            if utxo.commitment in seen:
                raise InvalidContext(f"Duplicate output in snapshot: {utxo.commitment}")
            seen.add(utxo.commitment)

        for commitment, weight in (self.priorities or {}).items():
            if weight <= 0:
                raise InvalidContext(f"Priority for {commitment} must be positive, got {weight}")

    def priority_of(self, utxo: UnspentOutput) -> float:
        """Draw weight for an output; unlisted outputs weigh 1.0."""
        if not self.priorities:
            return 1.0
        return self.priorities.get(utxo.commitment, 1.0)

    def fee_for(self, input_count: int, output_count: int = STANDARD_OUTPUT_COUNT) -> int:
        """Fee for a transaction spending input_count inputs (payment + change by default)."""
        fee = self.fee_function(input_count, output_count)
        if fee < 0:
            raise InvalidContext(
                f"Fee function returned negative fee {fee} for {input_count} inputs"
            )
        return fee

    def spendable_utxos(self) -> list[UnspentOutput]:
        """Outputs that can be spent now, in snapshot order."""
        return [u for u in self.utxos if u.is_spendable(self.current_height)]

    def random_source(self) -> random.Random:
        """
        Deterministic random source for this request.

        Uses the caller's seed when given. Otherwise the seed is derived from
        the target and the snapshot, so identical requests shuffle identically.
        """
        if self.seed is not None:
            return random.Random(self.seed)

        digest = hashlib.sha256(str(self.target).encode("ascii"))
        for utxo in self.utxos:
            digest.update(b"\x00")
            digest.update(utxo.commitment.encode("utf-8"))
        return random.Random(int.from_bytes(digest.digest()[:8], "big"))


class UtxoSelection(BaseModel):
    """Outputs chosen to fund a payment."""

    inputs: tuple[UnspentOutput, ...] = Field(..., min_length=1)
    total: int = Field(..., ge=0)
    fee: int = Field(..., ge=0)
    change: int = Field(..., ge=0)
    strategy: str
    iterations: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_inputs(self) -> UtxoSelection:
        commitments = [u.commitment for u in self.inputs]
        if len(set(commitments)) != len(commitments):
            raise ValueError("Selection contains duplicate outputs")
        if sum(u.value for u in self.inputs) != self.total:
            raise ValueError("Selection total does not match its inputs")
        return self

    @classmethod
    def build(
        cls,
        inputs: list[UnspentOutput] | tuple[UnspentOutput, ...],
        context: SelectionContext,
        strategy: str,
        iterations: int = 0,
    ) -> UtxoSelection:
        """
        Build a selection, computing fee and change for its exact shape.

        Raises:
            ValueError: If the inputs do not cover target plus fee
        """
        inputs = tuple(inputs)
        total = sum(u.value for u in inputs)
        fee = context.fee_for(len(inputs))
        change = total - context.target - fee
        if change < 0:
            raise ValueError(
                f"Inputs worth {total} do not cover target {context.target} + fee {fee}"
            )
        return cls(
            inputs=inputs,
            total=total,
            fee=fee,
            change=change,
            strategy=strategy,
            iterations=iterations,
        )

    @property
    def input_count(self) -> int:
        return len(self.inputs)

    @property
    def has_change(self) -> bool:
        return self.change > 0

    @property
    def commitments(self) -> list[str]:
        return [u.commitment for u in self.inputs]


class StrategyAttempt(BaseModel):
    """Outcome of one strategy run inside the fallback chain."""

    strategy: str
    succeeded: bool
    iterations: int = 0
    elapsed_ms: float = 0.0
    error: str | None = None
    message: str | None = None

    model_config = {"frozen": True}


class SelectionMetadata(BaseModel):
    """Diagnostics for a single CoinSelector call. Never affects correctness."""

    attempts: list[StrategyAttempt] = Field(default_factory=list)
    waste: int = 0
    privacy_loss: float = 0.0
    refined: bool = False
    refinement_swaps: int = 0
    candidates_considered: int = 0

    @property
    def strategies_attempted(self) -> list[str]:
        return [a.strategy for a in self.attempts]


class SelectionResult(BaseModel):
    selection: UtxoSelection
    metadata: SelectionMetadata
