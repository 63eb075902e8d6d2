"""
Privacy-loss scoring for input sets.

Lower is better. The score estimates how much a set of inputs would reveal
to chain analysis:
- inputs sharing an originating transaction tag confirm co-ownership
- an input worth exactly the payment amount fingerprints the payment
- a change output far from the wallet's typical output size stands out
- round input values look hand-picked
- inputs confirmed in the same block were likely received together
"""

from __future__ import annotations

import math
import statistics
from collections import Counter
from collections.abc import Iterable, Sequence

from utxoselect.config import PrivacyConfig
from utxoselect.models import SelectionContext, UnspentOutput


def typical_output_value(utxos: Iterable[UnspentOutput]) -> int:
    """Median value of the snapshot, 0 when it holds no value."""
    values = [u.value for u in utxos if u.value > 0]
    if not values:
        return 0
    return int(statistics.median_low(values))


def shared_tag_count(inputs: Iterable[UnspentOutput]) -> int:
    """Number of inputs that share a tag with an earlier input."""
    groups = Counter(u.tag for u in inputs if u.tag is not None)
    return sum(count - 1 for count in groups.values())


def shared_height_count(inputs: Iterable[UnspentOutput]) -> int:
    """Number of inputs confirmed at the same height as an earlier input."""
    heights = Counter(u.block_height for u in inputs if u.block_height is not None)
    return sum(count - 1 for count in heights.values())


def privacy_loss(
    inputs: Sequence[UnspentOutput],
    context: SelectionContext,
    config: PrivacyConfig | None = None,
    typical_value: int | None = None,
) -> float:
    """
    Score an input set against the privacy-loss heuristics.

    Args:
        inputs: Candidate inputs (assumed to cover the target)
        context: Selection request
        config: Penalty weights
        typical_value: Precomputed typical output value (median of the snapshot)

    Returns:
        Non-negative privacy-loss score
    """
    if config is None:
        config = PrivacyConfig()

    loss = config.same_tag_penalty * shared_tag_count(inputs)
    loss += config.same_height_penalty * shared_height_count(inputs)

    if any(u.value == context.target for u in inputs):
        loss += config.exact_amount_penalty

    change = sum(u.value for u in inputs) - context.target - context.fee_for(len(inputs))
    if change > 0:
        if typical_value is None:
            typical_value = typical_output_value(context.spendable_utxos())
        if typical_value > 0:
            distance = abs(math.log10(change) - math.log10(typical_value))
            loss += config.change_size_weight * min(1.0, distance)

    round_inputs = sum(1 for u in inputs if u.value > 0 and u.value % config.round_amount_unit == 0)
    loss += config.round_amount_penalty * round_inputs

    return loss
