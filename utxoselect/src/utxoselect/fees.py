"""
Fee functions for selection contexts.

The transaction builder owns fee estimation; these helpers build the
(input_count, output_count) -> fee callables it hands to the selector.
"""

from __future__ import annotations

import math

from utxoselect.constants import INPUT_WEIGHT, OUTPUT_WEIGHT, TRANSACTION_BASE_WEIGHT
from utxoselect.models import FeeFunction


def linear_fee(per_input: int, per_output: int, base: int = 0) -> FeeFunction:
    """
    Fee growing linearly with input and output count.

    Args:
        per_input: Fee per input
        per_output: Fee per output
        base: Fixed fee per transaction

    Returns:
        Fee function
    """
    if per_input < 0 or per_output < 0 or base < 0:
        raise ValueError("Fee components cannot be negative")

    def fee(input_count: int, output_count: int) -> int:
        return base + per_input * input_count + per_output * output_count

    return fee


def calculate_tx_weight(input_count: int, output_count: int) -> int:
    """
    Estimate transaction weight in grams.

    Base overhead: 100 grams
    Inputs: 100 grams each
    Outputs: 50 grams each
    """
    return TRANSACTION_BASE_WEIGHT + input_count * INPUT_WEIGHT + output_count * OUTPUT_WEIGHT


def weight_fee(fee_per_gram: int | float) -> FeeFunction:
    """Fee proportional to estimated transaction weight, rounded up."""
    if fee_per_gram < 0:
        raise ValueError("Fee per gram cannot be negative")

    def fee(input_count: int, output_count: int) -> int:
        return math.ceil(calculate_tx_weight(input_count, output_count) * fee_per_gram)

    return fee


def zero_fee(input_count: int, output_count: int) -> int:
    return 0
