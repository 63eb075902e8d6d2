"""
Base selection strategy interface and shared helpers.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from loguru import logger

from utxoselect.errors import ExceedsMaxInputs, InsufficientFunds
from utxoselect.models import SelectionContext, StrategyName, UnspentOutput, UtxoSelection


def sort_by_value_desc(utxos: Iterable[UnspentOutput]) -> list[UnspentOutput]:
    """Largest value first; equal values keep snapshot order."""
    return sorted(utxos, key=lambda u: u.value, reverse=True)


def minimum_inputs_required(values: Sequence[int], context: SelectionContext) -> int | None:
    """
    Smallest input count that can cover target plus fee.

    For any count k the k largest values give the highest possible total, so
    checking prefixes of the sorted values is enough.

    Returns:
        Input count, or None if no subset covers the target
    """
    running = 0
    for count, value in enumerate(sorted(values, reverse=True), start=1):
        running += value
        if running >= context.target + context.fee_for(count):
            return count
    return None


def raise_shortfall(context: SelectionContext) -> None:
    """
    Raise the error describing why the spendable outputs cannot fund the request.

    Returns normally when some subset within max_inputs covers the target.

    Raises:
        InsufficientFunds: No subset covers target plus fee
        ExceedsMaxInputs: Covering needs more inputs than allowed
    """
    values = [u.value for u in context.spendable_utxos()]
    required_inputs = minimum_inputs_required(values, context)

    if required_inputs is None:
        raise InsufficientFunds(
            required=context.target + context.fee_for(max(len(values), 1)),
            available=sum(values),
        )
    if required_inputs > context.max_inputs:
        raise ExceedsMaxInputs(required_inputs=required_inputs, max_inputs=context.max_inputs)


def eligible_candidates(context: SelectionContext) -> list[UnspentOutput]:
    """
    Spendable outputs worth considering, in snapshot order.

    Outputs below the dust threshold are left out unless the remaining
    outputs cannot cover the target within max_inputs.
    """
    spendable = context.spendable_utxos()
    above_dust = [u for u in spendable if u.value >= context.dust_threshold]

    if len(above_dust) == len(spendable):
        return above_dust

    required = minimum_inputs_required([u.value for u in above_dust], context)
    if required is not None and required <= context.max_inputs:
        return above_dust

    logger.debug(
        f"Outputs above dust threshold {context.dust_threshold} cannot fund the payment, "
        f"including {len(spendable) - len(above_dust)} dust outputs"
    )
    return spendable


def weighted_shuffle(
    candidates: Sequence[UnspentOutput], context: SelectionContext, rng: random.Random
) -> list[UnspentOutput]:
    """
    Random order biased by context priorities.

    Without priorities this is a plain shuffle. With priorities each output
    draws key u ** (1 / weight) and outputs are taken highest key first, so the
    chance of an output being drawn first is proportional to its weight.
    """
    shuffled = list(candidates)
    if not context.priorities:
        rng.shuffle(shuffled)
        return shuffled

    keys = {u.commitment: rng.random() ** (1.0 / context.priority_of(u)) for u in shuffled}
    return sorted(shuffled, key=lambda u: keys[u.commitment], reverse=True)


def accumulate(
    ordered: Sequence[UnspentOutput], context: SelectionContext
) -> list[UnspentOutput] | None:
    """
    Take outputs in the given order until target plus fee is covered.

    Returns:
        The covering prefix, or None if max_inputs or the list ran out first
    """
    selected: list[UnspentOutput] = []
    total = 0

    for utxo in ordered[: context.max_inputs]:
        selected.append(utxo)
        total += utxo.value
        if total >= context.target + context.fee_for(len(selected)):
            return selected

    return None


class SelectionStrategy(ABC):
    """
    Abstract coin selection strategy.

    Strategies are stateless: tunables are fixed at construction and every
    call is a pure function of the context, so one instance can serve
    concurrent requests.
    """

    name: StrategyName

    def select(self, context: SelectionContext) -> UtxoSelection:
        """
        Choose inputs covering context.target plus fee.

        Raises:
            InvalidContext: Malformed request
            InsufficientFunds: No subset covers the target
            ExceedsMaxInputs: Covering needs more inputs than allowed
            NoViableSelection: The strategy gave up
        """
        context.check()

        candidates = eligible_candidates(context)
        if not candidates:
            raise_shortfall(context)

        return self.select_from(candidates, context)

    @abstractmethod
    def select_from(
        self, candidates: list[UnspentOutput], context: SelectionContext
    ) -> UtxoSelection:
        """Run the strategy over pre-filtered candidates"""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
