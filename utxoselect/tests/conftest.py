"""
Test configuration for coin selection tests.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import pytest

from utxoselect.fees import linear_fee
from utxoselect.models import FeeFunction, SelectionContext, UnspentOutput


def make_utxos(values: Sequence[int], prefix: str = "utxo") -> tuple[UnspentOutput, ...]:
    """Outputs with predictable commitments: utxo0, utxo1, ..."""
    return tuple(
        UnspentOutput(commitment=f"{prefix}{i}", value=value) for i, value in enumerate(values)
    )


@pytest.fixture
def fee_function() -> FeeFunction:
    """10 per input, 5 per output."""
    return linear_fee(per_input=10, per_output=5)


@pytest.fixture
def make_context(fee_function: FeeFunction) -> Callable[..., SelectionContext]:
    """Build a context from plain values; keyword arguments override defaults."""

    def _make(
        values: Sequence[int] | None = None,
        target: int = 450,
        utxos: Sequence[UnspentOutput] | None = None,
        **overrides: Any,
    ) -> SelectionContext:
        if utxos is None:
            utxos = make_utxos(values or [])
        params: dict[str, Any] = {
            "target": target,
            "fee_function": fee_function,
            "utxos": tuple(utxos),
            "seed": 7,
        }
        params.update(overrides)
        return SelectionContext(**params)

    return _make


@pytest.fixture
def example_context(make_context: Callable[..., SelectionContext]) -> SelectionContext:
    """[500, 300, 200, 100], target 450, dust 10."""
    return make_context([500, 300, 200, 100], target=450, dust_threshold=10)
